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

"""Parametrizations, which turn sensitivities into deformations of the mesh."""

from shapeopt._optimization.parametrizations.boundary_displacement import (
    BoundaryDisplacement,
)
from shapeopt._optimization.parametrizations.design_element import DesignElement
from shapeopt._optimization.parametrizations.ffd import FFD
from shapeopt._optimization.parametrizations.ffd_ls import FFDLeastSquares
from shapeopt._optimization.parametrizations.parametrization import (
    BoundaryParametrization,
)
from shapeopt._optimization.parametrizations.parametrization import Parametrization

__all__ = [
    "BoundaryDisplacement",
    "DesignElement",
    "FFD",
    "FFDLeastSquares",
    "BoundaryParametrization",
    "Parametrization",
]
