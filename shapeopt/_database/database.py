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

"""Main database for all of shapeopt."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shapeopt._database import geometry_database
from shapeopt._database import parameter_database

if TYPE_CHECKING:
    from shapeopt import io
    from shapeopt import problem as _problem


class Database:
    """Database for the configuration, the parameters and the geometry."""

    def __init__(self, config: io.Config, problem: _problem.Problem) -> None:
        """Initialize the database.

        Args:
            config: The configuration for the problem.
            problem: The problem which supplies the state, adjoint and gradient.

        """
        self.config = config
        self.problem = problem

        self.parameter_db: parameter_database.ParameterDatabase = (
            parameter_database.ParameterDatabase(config, problem.name)
        )
        self.geometry_db: geometry_database.GeometryDatabase = (
            geometry_database.GeometryDatabase(problem.mesh)
        )
