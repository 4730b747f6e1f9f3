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

"""Database for parameters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shapeopt import _exceptions

if TYPE_CHECKING:
    from shapeopt import io


class ParameterDatabase:
    """A database for many parameters."""

    def __init__(self, config: io.Config, problem_name: str) -> None:
        """Initializes the database.

        Args:
            config: The configuration.
            problem_name: The name of the problem, used as prefix for the output.

        """
        self.config = config
        self.problem_name = problem_name

        self._technique = ""
        self.technique = self.config.get("OptimizationRoutine", "technique").casefold()
        self.volume_constraint: bool = self.config.getboolean(
            "OptimizationRoutine", "volume_constraint"
        )
        self.optimization_state: dict = {
            "iteration": 0,
            "stepsize": self.config.getfloat("OptimizationRoutine", "step"),
            "accepted": True,
            "converged": False,
        }

    @property
    def technique(self) -> str:
        """Returns the (casefolded) name of the parametrization technique."""
        return self._technique

    @technique.setter
    def technique(self, value: str) -> None:
        if value in ["boundarydisplacement", "designelement", "ffd", "ffd_ls"]:
            self._technique = value
        else:
            raise _exceptions.InputError(
                "ParameterDatabase",
                "technique",
                "technique has to be one of 'BoundaryDisplacement', "
                "'DesignElement', 'FFD' or 'FFD_LS'.",
            )
