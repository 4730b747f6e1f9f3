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

"""Free-form deformation fitted to the boundary by regularized least squares."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import numpy as np
from scipy import linalg

from shapeopt import _exceptions
from shapeopt import log
from shapeopt._optimization.parametrizations import ffd as _ffd
from shapeopt._optimization.parametrizations import parametrization

if TYPE_CHECKING:
    from shapeopt import problem as _problem
    from shapeopt.geometry import bounding_box as bbox
    from shapeopt.geometry import deformation_handler as dh


class FFDLeastSquares(parametrization.Parametrization):
    r"""Free-form deformation, whose displacements are fitted to a boundary target.

    Each boundary vertex :math:`x_i` is assigned the target
    :math:`x_i - t g(x_i) n(x_i)`, where :math:`t` is the step size, :math:`g` the
    sensitivity and :math:`n` the averaged outer normal. The displacements of the
    control points are then computed from the regularized normal equations

    .. math:: (\beta B^T B + (1 - \beta) I) \mu = B^T f,

    where :math:`B` contains the basis functions evaluated at the reference boundary
    vertices and :math:`f` is the displacement of the target from the reference.
    The lattice, the basis and the deformation are those of the wrapped
    :py:class:`FFD`.
    """

    def __init__(
        self,
        problem: _problem.Problem,
        deformation_handler: dh.DeformationHandler,
        bounding_box: bbox.BoundingBox,
        subdivisions: tuple[int, int] = (4, 4),
        beta: float = 0.99,
        quadrature_points: int = 2,
    ) -> None:
        """Initializes self.

        Args:
            problem: The problem, which supplies the sensitivities.
            deformation_handler: The deformation handler for the mesh of the problem.
            bounding_box: The box, which is spanned by the control points.
            subdivisions: The number of subdivisions of the box in x- and
                y-direction.
            beta: The relaxation coefficient, which weights the fidelity to the
                target against the size of the displacements.
            quadrature_points: The number of quadrature points per boundary side.

        """
        super().__init__(problem, deformation_handler)
        self.ffd = _ffd.FFD(
            problem, deformation_handler, bounding_box, subdivisions, quadrature_points
        )
        self.beta = float(beta)

        self.boundary_sides = [
            (sides[0], sides[-1])
            for sides in (
                self.mesh.side_nodes(cell, side)
                for cell, side in self.ffd.reference_mesh.boundary_sides()
            )
        ]
        self.boundary_nodes = np.array(
            [start for start, _ in self.boundary_sides], dtype=np.int64
        )

        rows = self.ffd.rows
        cols = self.ffd.cols
        reference = self.ffd.reference_mesh.coordinates[self.boundary_nodes]
        lattice = self.ffd.lattice_basis(self.ffd.bounding_box.psi(reference))
        # column l * cols + k belongs to the basis function (k, l)
        basis = lattice[:, ::-1, :].reshape(len(self.boundary_nodes), rows * cols)

        extent = self.ffd.bounding_box.extent
        self.design_matrices = (basis * extent[0], basis * extent[1])
        self.factorizations = tuple(
            self._factorize(matrix) for matrix in self.design_matrices
        )

    def _factorize(self, matrix: np.ndarray) -> tuple[np.ndarray, bool]:
        normal_matrix = self.beta * matrix.T @ matrix + (1.0 - self.beta) * np.identity(
            matrix.shape[1]
        )
        try:
            return linalg.cho_factor(normal_matrix)
        except linalg.LinAlgError as error:
            raise _exceptions.InputError(
                "shapeopt.FFDLeastSquares",
                "beta",
                "The regularized normal matrix is not positive definite. "
                "Please choose beta in [0, 1).",
            ) from error

    @property
    def mu(self) -> np.ndarray:
        """The displacements of the control points."""
        return self.ffd.mu

    @property
    def gradient(self) -> np.ndarray:
        """The gradient with respect to the displacements."""
        return self.ffd.gradient

    def boundary_normals(self) -> np.ndarray:
        """Computes the averaged outer normals at the boundary vertices.

        The tangents of both boundary sides incident to a vertex are summed up and
        rotated clockwise by 90 degrees.

        Returns:
            The unit normals, ordered like ``boundary_nodes``.

        """
        coordinates = self.mesh.coordinates
        position = {int(node): i for i, node in enumerate(self.boundary_nodes)}
        tangents = np.zeros((len(self.boundary_nodes), 2))

        for start, end in self.boundary_sides:
            tangent = coordinates[end] - coordinates[start]
            tangents[position[start]] += tangent
            if end in position:
                tangents[position[end]] += tangent

        length = np.linalg.norm(tangents, axis=1)
        degenerate = np.nonzero(length == 0.0)[0]
        if len(degenerate) > 0:
            raise _exceptions.DegenerateGeometryError(
                "The averaged boundary normal vanishes at the nodes "
                f"{self.boundary_nodes[degenerate].tolist()}."
            )

        return np.column_stack([tangents[:, 1], -tangents[:, 0]]) / length[:, None]

    def compute_perturbation(
        self, state: Any, step: float, lagrange: float
    ) -> np.ndarray:
        """Fits the control point displacements to the boundary target.

        The result is expressed as gradient, so that the update of :py:class:`FFD`
        reproduces the least squares solution.

        Args:
            state: The state, as returned by the problem.
            step: The current step size.
            lagrange: The Lagrange multiplier of the volume constraint.

        Returns:
            The gradient, of shape (rows, cols, 2).

        """
        coordinates = self.mesh.coordinates[self.boundary_nodes]
        reference = self.ffd.reference_mesh.coordinates[self.boundary_nodes]
        normals = self.boundary_normals()

        sensitivity = np.array(
            [self.problem.compute_gradient(state, point) for point in coordinates]
        )
        target = coordinates - step * (sensitivity + lagrange)[:, None] * normals
        displacement = target - reference

        gradient = np.zeros((self.ffd.rows, self.ffd.cols, 2))
        for i in range(2):
            matrix = self.design_matrices[i]
            solution = linalg.cho_solve(
                self.factorizations[i], matrix.T @ displacement[:, i]
            )
            lattice = solution.reshape(self.ffd.rows, self.ffd.cols)[::-1, :]
            gradient[..., i] = (self.ffd.mu[..., i] - lattice) / step

        self.ffd.gradient = gradient
        log.debug(f"FFD_LS gradient norm: {np.linalg.norm(gradient):.3e}")
        return gradient.copy()

    def apply_perturbation(self, perturbation: np.ndarray, step: float) -> None:
        """Updates the control point displacements and deforms the mesh.

        Args:
            perturbation: The gradient with respect to the displacements.
            step: The current step size.

        """
        self.ffd.apply_perturbation(perturbation, step)

    def store_checkpoint(self) -> None:
        """Saves the displacements of the control points."""
        self.ffd.store_checkpoint()

    def revert_to_checkpoint(self) -> None:
        """Restores the displacements of the control points."""
        self.ffd.revert_to_checkpoint()
