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

r"""shapeopt is a gradient based shape optimization software for python.

shapeopt deforms a two-dimensional triangular mesh in order to decrease a cost
functional, which is supplied together with its shape sensitivity by a user defined
:py:class:`Problem <shapeopt.Problem>`. The shape can be parametrized by a direct
displacement of the boundary, by polynomial design elements or by free-form
deformations, optionally under a volume constraint.
"""

from shapeopt import geometry
from shapeopt import io
from shapeopt import log
from shapeopt._optimization.shape_optimization_problem import (
    ShapeOptimizationProblem,
)
from shapeopt.geometry import boundary_average
from shapeopt.geometry import regular_mesh
from shapeopt.io import import_mesh
from shapeopt.io import load_config
from shapeopt.log import LogLevel
from shapeopt.log import set_log_level
from shapeopt.problem import create_problem
from shapeopt.problem import fix_lateral_control_points
from shapeopt.problem import fix_outer_control_points
from shapeopt.problem import Problem
from shapeopt.problem import register_problem

__version__ = "1.0.0"

__all__ = [
    "geometry",
    "io",
    "log",
    "ShapeOptimizationProblem",
    "boundary_average",
    "regular_mesh",
    "import_mesh",
    "load_config",
    "LogLevel",
    "set_log_level",
    "create_problem",
    "fix_lateral_control_points",
    "fix_outer_control_points",
    "Problem",
    "register_problem",
]
