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

"""Direct displacement of the mesh nodes."""

from __future__ import annotations

from typing import Any

import numpy as np

from shapeopt import _exceptions
from shapeopt import log
from shapeopt._optimization.parametrizations import parametrization


class BoundaryDisplacement(parametrization.Parametrization):
    """Moves the nodes along the harmonic extension of the sensitivity.

    The perturbation is the displacement field computed by
    :py:meth:`shapeopt.Problem.harmonic_extension`, each movable vertex ``x`` is moved
    to ``x + step * V(x)``.
    """

    def compute_perturbation(
        self, state: Any, step: float, lagrange: float
    ) -> np.ndarray:
        """Computes the harmonic extension of the sensitivity.

        Args:
            state: The state, as returned by the problem.
            step: The current step size.
            lagrange: The Lagrange multiplier of the volume constraint.

        Returns:
            The displacement field, of shape (num_nodes, 2).

        """
        field = np.asarray(
            self.problem.harmonic_extension(state, lagrange), dtype=float
        )
        if field.shape != self.mesh.coordinates.shape:
            raise _exceptions.InputError(
                "shapeopt.Problem.harmonic_extension",
                "field",
                f"The displacement field has shape {field.shape}, but shape "
                f"{self.mesh.coordinates.shape} is required.",
            )
        log.debug(
            f"Maximum nodal displacement: {np.max(np.linalg.norm(field, axis=1)):.3e}"
        )
        return field

    def apply_perturbation(self, perturbation: np.ndarray, step: float) -> None:
        """Moves the vertices by ``step`` times the displacement field.

        Args:
            perturbation: The displacement field.
            step: The current step size.

        """
        deformed = self.mesh.coordinates + step * perturbation
        self.deformation_handler.deform(lambda node: deformed[node])
