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

"""Optimization algorithms, parametrizations and constraints for the shape."""

from shapeopt._optimization import line_search
from shapeopt._optimization import optimization_algorithm
from shapeopt._optimization import parametrizations
from shapeopt._optimization import volume_constraint
from shapeopt._optimization.line_search import ArmijoLineSearch
from shapeopt._optimization.optimization_algorithm import OptimizationAlgorithm
from shapeopt._optimization.volume_constraint import VolumeConstraint

__all__ = [
    "line_search",
    "optimization_algorithm",
    "parametrizations",
    "volume_constraint",
    "ArmijoLineSearch",
    "OptimizationAlgorithm",
    "VolumeConstraint",
]
