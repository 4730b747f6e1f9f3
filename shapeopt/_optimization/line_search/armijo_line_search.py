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

"""Armijo rule for the acceptance of a deformation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shapeopt import log

if TYPE_CHECKING:
    from shapeopt._database import database


class ArmijoLineSearch:
    """Armijo rule with halving of the step size.

    In contrast to a classical backtracking line search, only a single trial step is
    made per iteration of the optimization algorithm. If it is rejected, the step size
    is halved and the next iteration starts from the previous mesh.
    """

    def __init__(self, db: database.Database) -> None:
        """Initializes self.

        Args:
            db: The database of the problem.

        """
        self.db = db
        self.config = self.db.config

        self.stepsize = self.config.getfloat("OptimizationRoutine", "step")
        self.armijo_slope = self.config.getfloat("OptimizationRoutine", "armijo_slope")
        self.beta_armijo = 2.0

    def _satisfies_armijo_condition(
        self,
        objective_step: float,
        current_function_value: float,
        decrease_measure: float,
    ) -> bool:
        """Checks whether the sufficient decrease condition is satisfied.

        Args:
            objective_step: The new objective value, after taking the step
            current_function_value: The old objective value
            decrease_measure: The squared norm of the sensitivity before the step.

        Returns:
            A boolean flag which is True in case the condition is satisfied.

        """
        return bool(
            objective_step
            <= current_function_value
            - self.armijo_slope * self.stepsize * decrease_measure
        )

    def check(
        self,
        objective_step: float,
        current_function_value: float,
        decrease_measure: float,
    ) -> bool:
        """Decides whether a trial step is accepted.

        On rejection, the step size is divided by ``beta_armijo``.

        Args:
            objective_step: The new objective value, after taking the step
            current_function_value: The old objective value
            decrease_measure: The squared norm of the sensitivity before the step.

        Returns:
            ``True`` if the step is accepted, ``False`` otherwise.

        """
        threshold = current_function_value - (
            self.armijo_slope * self.stepsize * decrease_measure
        )
        log.debug(
            f"Armijo rule: new cost function value {objective_step:.6e}, "
            f"threshold {threshold:.6e}."
        )

        if self._satisfies_armijo_condition(
            objective_step, current_function_value, decrease_measure
        ):
            log.debug("Accepting tentative step based on Armijo decrease condition.")
            return True

        self.reject()
        return False

    def reject(self) -> None:
        """Reduces the step size after a rejected step."""
        self.stepsize /= self.beta_armijo
        log.info(f"Step rejected. New step size: {self.stepsize:.3e}")
