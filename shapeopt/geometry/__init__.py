# Copyright (C) 2015-2025 The shapeopt developers
#
# This file is part of shapeopt.
#
# shapeopt is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# shapeopt is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with shapeopt.  If not, see <https://www.gnu.org/licenses/>.

"""Meshes, boundary quadrature, bounding boxes and mesh deformations.

The :py:func:`regular_mesh <shapeopt.geometry.regular_mesh>` command creates 2D
rectangle meshes, which are great for testing and development.
"""

from shapeopt.geometry import bounding_box
from shapeopt.geometry import deformation_handler
from shapeopt.geometry import measure
from shapeopt.geometry import mesh
from shapeopt.geometry.bounding_box import BoundingBox
from shapeopt.geometry.deformation_handler import DeformationHandler
from shapeopt.geometry.measure import boundary_average
from shapeopt.geometry.measure import boundary_measure
from shapeopt.geometry.measure import boundary_quadrature
from shapeopt.geometry.measure import BoundaryQuadrature
from shapeopt.geometry.mesh import Mesh
from shapeopt.geometry.mesh import regular_mesh

__all__ = [
    "bounding_box",
    "deformation_handler",
    "measure",
    "mesh",
    "BoundingBox",
    "DeformationHandler",
    "boundary_average",
    "boundary_measure",
    "boundary_quadrature",
    "BoundaryQuadrature",
    "Mesh",
    "regular_mesh",
]
