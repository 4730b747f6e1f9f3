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

"""Free-form deformation with a lattice of control points."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import numpy as np
from scipy import special

from shapeopt import _exceptions
from shapeopt import log
from shapeopt._optimization.parametrizations import parametrization
from shapeopt.geometry import bounding_box as bbox

if TYPE_CHECKING:
    from shapeopt import problem as _problem
    from shapeopt.geometry import deformation_handler as dh


def bernstein(degree: int, index: int, t: np.ndarray | float) -> np.ndarray:
    r"""Evaluates a Bernstein polynomial.

    Args:
        degree: The degree :math:`n` of the polynomial.
        index: The index :math:`i` of the polynomial.
        t: The point(s) of evaluation.

    Returns:
        :math:`\binom{n}{i} (1 - t)^{n - i} t^i`

    """
    t = np.asarray(t, dtype=float)
    return special.comb(degree, index, exact=True) * (1.0 - t) ** (degree - index) * (
        t**index
    )


class FFD(parametrization.BoundaryParametrization):
    """Free-form deformation based on tensor product Bernstein polynomials.

    The control points form a lattice with ``subdivisions[1] + 1`` rows and
    ``subdivisions[0] + 1`` columns, row 0 being the top row. The basis function with
    index ``(k, l)`` belongs to the control point in row ``rows - 1 - l`` and column
    ``k``, so that ``l`` counts from the bottom.
    """

    def __init__(
        self,
        problem: _problem.Problem,
        deformation_handler: dh.DeformationHandler,
        bounding_box: bbox.BoundingBox,
        subdivisions: tuple[int, int] = (4, 4),
        quadrature_points: int = 2,
    ) -> None:
        """Initializes self.

        Args:
            problem: The problem, which supplies the sensitivities.
            deformation_handler: The deformation handler for the mesh of the problem.
            bounding_box: The box, which is spanned by the control points.
            subdivisions: The number of subdivisions of the box in x- and
                y-direction.
            quadrature_points: The number of quadrature points per boundary side.

        """
        if len(subdivisions) != 2 or min(subdivisions) < 1:
            raise _exceptions.InputError(
                "shapeopt.FFD",
                "subdivisions",
                "Two positive numbers of subdivisions are required.",
            )
        super().__init__(problem, deformation_handler, bounding_box, quadrature_points)

        self.subdivisions = (int(subdivisions[0]), int(subdivisions[1]))
        self.rows = self.subdivisions[1] + 1
        self.cols = self.subdivisions[0] + 1

        self.control_grid = self._build_control_grid()
        self.bounding_box = bbox.BoundingBox(
            self.control_grid[-1, 0], self.control_grid[0, -1]
        )

        self.mu = np.zeros((self.rows, self.cols, 2))
        self.gradient = np.zeros((self.rows, self.cols, 2))

    def _build_control_grid(self) -> np.ndarray:
        dx = self.bounding_box.width / self.subdivisions[0]
        dy = self.bounding_box.height / self.subdivisions[1]
        south_west = self.bounding_box.south_west

        grid = np.zeros((self.rows, self.cols, 2))
        for i in range(self.rows):
            for j in range(self.cols):
                grid[self.rows - 1 - i, j] = south_west + np.array([dx * j, dy * i])

        return grid

    def basis(self, k: int, l: int, ref_point: np.ndarray) -> np.ndarray:
        """Evaluates a single basis function.

        Args:
            k: The index in x-direction.
            l: The index in y-direction, counted from the bottom.
            ref_point: The point(s) in normalized coordinates.

        Returns:
            The value(s) of the basis function.

        """
        ref_point = np.asarray(ref_point, dtype=float)
        return bernstein(self.cols - 1, k, ref_point[..., 0]) * bernstein(
            self.rows - 1, l, ref_point[..., 1]
        )

    def lattice_basis(self, ref_points: np.ndarray) -> np.ndarray:
        """Evaluates all basis functions, arranged like the control points.

        Args:
            ref_points: Array of shape (num_points, 2) in normalized coordinates.

        Returns:
            Array of shape (num_points, rows, cols), the entry ``[p, rows - 1 - l, k]``
            is the basis function ``(k, l)`` evaluated at point ``p``.

        """
        ref_points = np.asarray(ref_points, dtype=float).reshape(-1, 2)
        basis_x = np.column_stack(
            [bernstein(self.cols - 1, k, ref_points[:, 0]) for k in range(self.cols)]
        )
        basis_y = np.column_stack(
            [bernstein(self.rows - 1, l, ref_points[:, 1]) for l in range(self.rows)]
        )

        return np.einsum("pr,pk->prk", basis_y[:, ::-1], basis_x)

    def compute_perturbation(
        self, state: Any, step: float, lagrange: float
    ) -> np.ndarray:
        """Computes the gradient with respect to the control point displacements.

        Args:
            state: The state, as returned by the problem.
            step: The current step size.
            lagrange: The Lagrange multiplier of the volume constraint.

        Returns:
            The gradient, of shape (rows, cols, 2).

        """
        weighted, normals, ref_points = self._integration_data(state, lagrange)
        basis = self.lattice_basis(ref_points)
        extent = self.bounding_box.extent

        self.gradient = np.zeros((self.rows, self.cols, 2))
        for i in range(2):
            self.gradient[..., i] = np.einsum(
                "prk,p->rk", basis, weighted * extent[i] * normals[:, i]
            )

        log.debug(f"FFD gradient norm: {np.linalg.norm(self.gradient):.3e}")
        return self.gradient.copy()

    def apply_perturbation(self, perturbation: np.ndarray, step: float) -> None:
        """Updates the control point displacements and deforms the mesh.

        Args:
            perturbation: The gradient with respect to the displacements.
            step: The current step size.

        """
        self.mu -= step * perturbation
        self.problem.fix_control_points(self.control_grid, self.mu)
        self._deform_from_reference(self.deform)

    def deform(self, points: np.ndarray) -> np.ndarray:
        """Maps reference points to their deformed position.

        Args:
            points: Array of reference points, last axis of length 2.

        Returns:
            The deformed points.

        """
        points = np.asarray(points, dtype=float)
        basis = self.lattice_basis(self.bounding_box.psi(points))
        displacement = self.bounding_box.extent * np.einsum(
            "prk,rkd->pd", basis, self.mu
        )
        return points + displacement.reshape(points.shape)
