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

"""The outer loop of the shape optimization."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import numpy as np

from shapeopt import _exceptions
from shapeopt import log

if TYPE_CHECKING:
    from shapeopt import io
    from shapeopt._database import database
    from shapeopt._optimization import line_search as ls
    from shapeopt._optimization import parametrizations
    from shapeopt._optimization import volume_constraint as vc
    from shapeopt.geometry import deformation_handler as dh


class OptimizationAlgorithm:
    """Gradient descent for the shape with an Armijo rule and mesh rollback.

    Each iteration solves the state and adjoint system (if necessary), deforms the mesh
    with the parametrization, validates the mesh and re-evaluates the cost functional.
    The deformation is accepted according to the Armijo rule, otherwise the mesh is
    rolled back and the step size is halved.
    """

    def __init__(
        self,
        db: database.Database,
        parametrization: parametrizations.Parametrization,
        deformation_handler: dh.DeformationHandler,
        line_search: ls.ArmijoLineSearch,
        output_manager: io.OutputManager,
        volume_constraint: vc.VolumeConstraint | None = None,
    ) -> None:
        """Initializes self.

        Args:
            db: The database of the problem.
            parametrization: The parametrization of the shape.
            deformation_handler: The deformation handler of the mesh.
            line_search: The Armijo rule.
            output_manager: The output manager.
            volume_constraint: The volume constraint, or ``None`` if the volume is
                not constrained.

        """
        self.db = db
        self.config = self.db.config
        self.problem = self.db.problem
        self.mesh = self.db.geometry_db.mesh

        self.parametrization = parametrization
        self.deformation_handler = deformation_handler
        self.line_search = line_search
        self.output_manager = output_manager
        self.volume_constraint = volume_constraint

        self.maximum_iterations = self.config.getint(
            "OptimizationRoutine", "max_iterations"
        )
        self.tolerance = self.config.getfloat("OptimizationRoutine", "tolerance")
        self.inversion_policy = self.config.get(
            "OptimizationRoutine", "inversion_policy"
        ).casefold()

        self.state: Any = None
        self.objective_value_old = 0.0
        self.needs_state_solve = True
        self.converged = False

        self.db.parameter_db.optimization_state["no_state_solves"] = 0
        self.db.parameter_db.optimization_state["no_rejections"] = 0
        self._iteration = 0
        self._objective_value = 0.0
        self._lagrange_multiplier = 0.0

    @property
    def iteration(self) -> int:
        """The current iteration of the solver."""
        return self._iteration

    @iteration.setter
    def iteration(self, value: int) -> None:
        self.db.parameter_db.optimization_state["iteration"] = value
        self._iteration = value

    @property
    def objective_value(self) -> float:
        """The cost functional of the current trial step."""
        return self._objective_value

    @objective_value.setter
    def objective_value(self, value: float) -> None:
        self.db.parameter_db.optimization_state["objective_value"] = float(value)
        self._objective_value = value

    @property
    def stepsize(self) -> float:
        """The current step size."""
        return self.line_search.stepsize

    @property
    def lagrange_multiplier(self) -> float:
        """The Lagrange multiplier which is added to the sensitivity."""
        return self._lagrange_multiplier

    @lagrange_multiplier.setter
    def lagrange_multiplier(self, value: float) -> None:
        self.db.parameter_db.optimization_state["lagrange_multiplier"] = float(value)
        self._lagrange_multiplier = value

    def _solve_state(self) -> None:
        """Solves the state and adjoint system on the current mesh."""
        self.state = self.problem.solve_state_and_adjoint(self.iteration)
        self.db.parameter_db.optimization_state["no_state_solves"] += 1
        self.objective_value_old = float(
            self.problem.evaluate_cost_functional(self.state)
        )
        self.needs_state_solve = False

    def _update_lagrange_multiplier(self) -> None:
        """Updates the Lagrange multiplier of the volume constraint."""
        if self.volume_constraint is None:
            self.lagrange_multiplier = 0.0
            return

        raw_estimate = self.problem.lagrange_multiplier(self.state)
        if self.iteration == 1:
            self.volume_constraint.initialize(raw_estimate)
        self.lagrange_multiplier = self.volume_constraint.update(raw_estimate)
        log.info(f"Lagrange multiplier: {self.lagrange_multiplier:.6e}")

    def _rollback(self) -> None:
        """Restores the mesh and the coefficients before the deformation."""
        self.deformation_handler.revert_transformation()
        self.parametrization.revert_to_checkpoint()

    def _deform(self) -> bool:
        """Deforms the mesh with the parametrization and validates it.

        Returns:
            ``True`` if the deformed mesh is valid, ``False`` if it was inverted and
            the step is to be rejected.

        """
        self.deformation_handler.store_checkpoint()
        self.parametrization.store_checkpoint()

        perturbation = self.parametrization.compute_perturbation(
            self.state, self.stepsize, self.lagrange_multiplier
        )
        self.parametrization.apply_perturbation(perturbation, self.stepsize)

        try:
            self.deformation_handler.check_domain()
        except _exceptions.InvertedMeshError:
            self._rollback()
            if self.inversion_policy == "abort":
                log.error("The deformed mesh is invalid. Aborting the optimization.")
                raise

            log.warning("The deformed mesh is invalid. Rejecting the step.")
            return False

        return True

    def _record(self, accepted: bool, relative_change: float) -> None:
        optimization_state = self.db.parameter_db.optimization_state
        optimization_state["accepted"] = accepted
        optimization_state["relative_change"] = float(relative_change)
        optimization_state["volume"] = self.mesh.volume()
        if not accepted:
            optimization_state["no_rejections"] += 1

    def iterate(self) -> bool:
        """Performs a single iteration of the optimization algorithm.

        Returns:
            ``True`` if the algorithm has converged, ``False`` otherwise.

        """
        self.db.parameter_db.optimization_state["stepsize"] = self.stepsize

        if self.needs_state_solve:
            self._solve_state()

        self._update_lagrange_multiplier()

        gradient_norm = float(self.problem.squared_gradient_norm(self.state))
        self.db.parameter_db.optimization_state["gradient_norm"] = gradient_norm

        if not self._deform():
            self.objective_value = self.objective_value_old
            self.output_manager.output_deformation(np.zeros_like(self.mesh.coordinates))
            self.line_search.reject()
            self._record(False, 1.0)
            self.output_manager.output()
            return False

        log.debug(f"Deformed volume: {self.mesh.volume():.6e}")
        self.output_manager.output_deformation(self.deformation_handler.displacement())

        trial_state = self.problem.solve_state_and_adjoint(self.iteration)
        self.db.parameter_db.optimization_state["no_state_solves"] += 1
        self.objective_value = float(self.problem.evaluate_cost_functional(trial_state))
        difference = abs(self.objective_value - self.objective_value_old)
        reference_value = abs(self.objective_value_old)
        if reference_value != 0.0:
            relative_change = min(1.0, difference / reference_value)
        else:
            relative_change = 1.0

        if not self.line_search.check(
            self.objective_value, self.objective_value_old, gradient_norm
        ):
            self._rollback()
            self.needs_state_solve = True
            self._record(False, relative_change)
            self.output_manager.output()
            return False

        self.state = trial_state
        self._record(True, relative_change)
        self.output_manager.output()

        if difference <= self.tolerance * reference_value:
            return True

        self.objective_value_old = self.objective_value
        return False

    def run(self) -> None:
        """Solves the shape optimization problem."""
        self.output_manager.initialize()
        log.info(f"Initial volume: {self.mesh.volume():.6e}")

        for iteration in range(1, self.maximum_iterations + 1):
            self.iteration = iteration
            log.begin(f"Iteration {iteration}.", level=log.DEBUG)
            try:
                self.converged = self.iterate()
            finally:
                log.end()

            if self.converged:
                break

        self.db.parameter_db.optimization_state["converged"] = self.converged
        if self.converged:
            log.info("Convergence achieved.")
        else:
            log.warning("Maximum number of iterations reached.")

        self.output_manager.output_summary()
        self.output_manager.post_process()
