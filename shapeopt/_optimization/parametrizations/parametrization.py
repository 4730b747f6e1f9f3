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

"""Abstract parametrizations of the shape."""

from __future__ import annotations

import abc
from typing import Any, Callable, TYPE_CHECKING

import numpy as np

from shapeopt.geometry import measure

if TYPE_CHECKING:
    from shapeopt import problem as _problem
    from shapeopt.geometry import bounding_box as bbox
    from shapeopt.geometry import deformation_handler as dh


class Parametrization(abc.ABC):
    """Base class for the parametrizations of the shape.

    A parametrization turns the sensitivity of the cost functional into a
    perturbation (:py:meth:`compute_perturbation`) and deforms the mesh according to
    this perturbation (:py:meth:`apply_perturbation`).
    """

    def __init__(
        self, problem: _problem.Problem, deformation_handler: dh.DeformationHandler
    ) -> None:
        """Initializes self.

        Args:
            problem: The problem, which supplies the sensitivities.
            deformation_handler: The deformation handler for the mesh of the problem.

        """
        self.problem = problem
        self.mesh = problem.mesh
        self.deformation_handler = deformation_handler

    @abc.abstractmethod
    def compute_perturbation(
        self, state: Any, step: float, lagrange: float
    ) -> np.ndarray:
        """Computes the perturbation from the current sensitivity.

        Args:
            state: The state, as returned by the problem.
            step: The current step size.
            lagrange: The Lagrange multiplier of the volume constraint, which is added
                to the sensitivity.

        Returns:
            The perturbation.

        """
        pass

    @abc.abstractmethod
    def apply_perturbation(self, perturbation: np.ndarray, step: float) -> None:
        """Deforms the mesh in place according to a perturbation.

        Args:
            perturbation: The perturbation, as computed by
                :py:meth:`compute_perturbation`.
            step: The current step size.

        """
        pass

    def store_checkpoint(self) -> None:
        """Saves the coefficients, so that a rejected update can be reverted."""
        pass

    def revert_to_checkpoint(self) -> None:
        """Restores the coefficients saved by :py:meth:`store_checkpoint`."""
        pass


class BoundaryParametrization(Parametrization):
    """Parametrizations in terms of basis functions defined on a bounding box.

    The basis functions are evaluated in the normalized coordinates of the reference
    boundary, while the sensitivity is integrated over the current boundary.
    """

    def __init__(
        self,
        problem: _problem.Problem,
        deformation_handler: dh.DeformationHandler,
        bounding_box: bbox.BoundingBox,
        quadrature_points: int = 2,
    ) -> None:
        """Initializes self.

        Args:
            problem: The problem, which supplies the sensitivities.
            deformation_handler: The deformation handler for the mesh of the problem.
            bounding_box: The box on which the basis functions are defined.
            quadrature_points: The number of quadrature points per boundary side.

        """
        super().__init__(problem, deformation_handler)
        self.bounding_box = bounding_box
        self.quadrature_points = quadrature_points

        self.reference_mesh = self.mesh.copy()
        self.reference_points = measure.boundary_quadrature(
            self.reference_mesh, self.quadrature_points
        ).points.reshape(-1, 2)
        self.mu = np.zeros(0)
        self._old_mu: np.ndarray | None = None

    def store_checkpoint(self) -> None:
        """Saves the coefficients, so that a rejected update can be reverted."""
        self._old_mu = self.mu.copy()

    def revert_to_checkpoint(self) -> None:
        """Restores the coefficients saved by :py:meth:`store_checkpoint`."""
        if self._old_mu is not None:
            self.mu[...] = self._old_mu

    def _integration_data(
        self, state: Any, lagrange: float
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Evaluates the sensitivity on the current boundary.

        Args:
            state: The state, as returned by the problem.
            lagrange: The Lagrange multiplier, which is added to the sensitivity.

        Returns:
            A tuple ``(weighted, normals, ref_points)``, where ``weighted`` contains
            the sensitivity times the quadrature weight, ``normals`` the outer unit
            normals of the current boundary and ``ref_points`` the normalized
            coordinates of the corresponding reference quadrature points.

        """
        quadrature = measure.boundary_quadrature(self.mesh, self.quadrature_points)
        points = quadrature.points.reshape(-1, 2)
        weights = quadrature.weights.reshape(-1)
        normals = quadrature.normals.reshape(-1, 2)

        sensitivity = np.array(
            [self.problem.compute_gradient(state, point) for point in points]
        )
        weighted = (sensitivity + lagrange) * weights
        ref_points = self.bounding_box.psi(self.reference_points)

        return weighted, normals, ref_points

    def _deform_from_reference(
        self, deform_points: Callable[[np.ndarray], np.ndarray]
    ) -> None:
        """Moves the vertices of the mesh to the image of their reference position.

        Args:
            deform_points: Maps an array of reference points to the deformed points.

        """
        deformed = deform_points(self.reference_mesh.coordinates)
        self.deformation_handler.deform(lambda node: deformed[node])
