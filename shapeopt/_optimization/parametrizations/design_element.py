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

"""Polynomial parametrization of the upper and lower boundary."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import numpy as np

from shapeopt import _exceptions
from shapeopt import log
from shapeopt._optimization.parametrizations import parametrization

if TYPE_CHECKING:
    from shapeopt import problem as _problem
    from shapeopt.geometry import bounding_box as bbox
    from shapeopt.geometry import deformation_handler as dh


def projection_matrix(order: int) -> np.ndarray:
    """Builds the matrix, which pins both boundary curves at the corners of the box.

    Args:
        order: The number of coefficients of each curve.

    Returns:
        The symmetric projection matrix of shape (2 * order, 2 * order).

    """
    n = 2 * order
    half = order
    matrix = np.identity(n)

    for i in range(n):
        for j in range(n):
            if (
                (i == half - 1 and j <= half - 1)
                or (i == n - 1 and j >= half)
                or (j == half - 1 and i <= half - 1)
                or (j == n - 1 and i >= half)
            ):
                matrix[i, j] = -1.0

    matrix[half - 1, half - 1] = order - 1
    matrix[n - 1, n - 1] = order - 1

    return 0.5 * matrix


class DesignElement(parametrization.BoundaryParametrization):
    r"""Design element method for the upper and lower boundary of a box.

    The vertical displacement of a point with normalized coordinates :math:`(x, y)`
    is :math:`H (y f_\text{up}(x) + (1 - y) f_\text{down}(x))`, where :math:`H` is
    the height of the bounding box and

    .. math:: f(x) = \sum_{k=0}^{p-1} \mu_k x^{k+1}

    are polynomials of the configured order :math:`p`. The first half of ``mu``
    belongs to the upper, the second half to the lower curve.

    Note:
        The gradient is projected onto coefficients whose curves vanish at both
        :math:`x = 0` and :math:`x = 1`. For ``order = 1`` the only curve is
        :math:`\mu_0 x`, so the projection is zero and the domain is not deformed.
        Use ``order >= 2`` for an actual shape change.
    """

    def __init__(
        self,
        problem: _problem.Problem,
        deformation_handler: dh.DeformationHandler,
        bounding_box: bbox.BoundingBox,
        order: int = 3,
        quadrature_points: int = 2,
    ) -> None:
        """Initializes self.

        Args:
            problem: The problem, which supplies the sensitivities.
            deformation_handler: The deformation handler for the mesh of the problem.
            bounding_box: The box on which the polynomials are defined.
            order: The number of coefficients of each polynomial.
            quadrature_points: The number of quadrature points per boundary side.

        """
        if order < 1:
            raise _exceptions.InputError(
                "shapeopt.DesignElement", "order", "order needs to be at least 1"
            )
        super().__init__(problem, deformation_handler, bounding_box, quadrature_points)

        self.order = order
        self.mu = np.zeros(2 * order)
        self.gradient = np.zeros(2 * order)
        self.projection = projection_matrix(order)

    def compute_perturbation(
        self, state: Any, step: float, lagrange: float
    ) -> np.ndarray:
        """Computes the projected gradient with respect to the coefficients.

        Args:
            state: The state, as returned by the problem.
            step: The current step size.
            lagrange: The Lagrange multiplier of the volume constraint.

        Returns:
            The projected gradient.

        """
        weighted, normals, ref_points = self._integration_data(state, lagrange)
        height = self.bounding_box.height
        x = ref_points[:, 0]
        y = ref_points[:, 1]

        powers = np.power.outer(x, np.arange(1, self.order + 1))
        flux = weighted * normals[:, 1]

        self.gradient = np.zeros(2 * self.order)
        self.gradient[: self.order] = powers.T @ (flux * y)
        self.gradient[self.order :] = powers.T @ (flux * (height - y))
        self.gradient = self.projection @ self.gradient

        log.debug(f"DesignElement gradient: {self.gradient.tolist()}")
        return self.gradient.copy()

    def apply_perturbation(self, perturbation: np.ndarray, step: float) -> None:
        """Updates the coefficients and deforms the mesh.

        Args:
            perturbation: The projected gradient.
            step: The current step size.

        """
        self.mu -= step * perturbation
        log.debug(f"DesignElement coefficients: {self.mu.tolist()}")
        self._deform_from_reference(self.deform)

    def curves(self, x: np.ndarray | float) -> tuple[np.ndarray, np.ndarray]:
        """Evaluates the upper and lower polynomial with Horner's scheme.

        Args:
            x: The normalized horizontal coordinate(s).

        Returns:
            The values of the upper and lower curve.

        """
        x = np.asarray(x, dtype=float)
        upper = self.mu[: self.order]
        lower = self.mu[self.order :]

        f_up = np.full_like(x, upper[-1])
        f_down = np.full_like(x, lower[-1])
        for k in range(self.order - 2, -1, -1):
            f_up = f_up * x + upper[k]
            f_down = f_down * x + lower[k]

        return f_up * x, f_down * x

    def deform(self, points: np.ndarray) -> np.ndarray:
        """Maps reference points to their deformed position.

        Args:
            points: The reference point(s), last axis of length 2.

        Returns:
            The deformed point(s).

        """
        points = np.asarray(points, dtype=float)
        ref_points = self.bounding_box.psi(points)
        x = ref_points[..., 0]
        y = ref_points[..., 1]
        f_up, f_down = self.curves(x)

        deformed = points.copy()
        deformed[..., 1] += self.bounding_box.height * (y * f_up + (1.0 - y) * f_down)
        return deformed
