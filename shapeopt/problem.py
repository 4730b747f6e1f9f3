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

"""Interface for the problems, which supply states, adjoints and sensitivities.

The discretization of the governing PDE (e.g., linear elasticity or a Stokes energy
problem) is not part of shapeopt. Instead, a concrete problem derives from
:py:class:`Problem`, implements the solution of the state and adjoint equations as
well as the evaluation of the cost functional and its shape sensitivity, and is
registered under a name with :py:func:`register_problem`.
"""

from __future__ import annotations

import abc
from typing import Any, Callable, TYPE_CHECKING, TypeVar

import numpy as np

from shapeopt import _exceptions

if TYPE_CHECKING:
    from shapeopt import io
    from shapeopt.geometry import mesh as _mesh

_problem_registry: dict[str, type[Problem]] = {}

ProblemType = TypeVar("ProblemType", bound="type[Problem]")


class Problem(abc.ABC):
    """Base class for a PDE constrained shape optimization problem.

    The state object returned by :py:meth:`solve_state_and_adjoint` is opaque to
    shapeopt, it is only passed back to the other methods of the problem.
    """

    registered_name: str | None = None

    def __init__(self, mesh: _mesh.Mesh, name: str | None = None) -> None:
        """Initializes self.

        Args:
            mesh: The mesh on which the problem is posed. It is deformed in place
                during the optimization.
            name: The name of the problem, used as prefix for all output files. If
                this is ``None``, the registered name (or the class name) is used.

        """
        self.mesh = mesh
        if name is not None:
            self.name = name
        elif self.registered_name is not None:
            self.name = self.registered_name
        else:
            self.name = type(self).__name__

    @abc.abstractmethod
    def solve_state_and_adjoint(self, iteration: int) -> Any:
        """Solves the state and adjoint system on the current mesh.

        Args:
            iteration: The current iteration of the optimization.

        Returns:
            The state (and adjoint) variables.

        """
        pass

    @abc.abstractmethod
    def evaluate_cost_functional(self, state: Any) -> float:
        """Evaluates the cost functional.

        Args:
            state: The state, as returned by :py:meth:`solve_state_and_adjoint`.

        Returns:
            The value of the cost functional.

        """
        pass

    @abc.abstractmethod
    def compute_gradient(self, state: Any, point: np.ndarray) -> float:
        """Evaluates the shape sensitivity at a point of the boundary.

        Args:
            state: The state, as returned by :py:meth:`solve_state_and_adjoint`.
            point: A point on the current boundary.

        Returns:
            The pointwise sensitivity of the cost functional.

        """
        pass

    @abc.abstractmethod
    def squared_gradient_norm(self, state: Any) -> float:
        """Computes the squared L2 norm of the sensitivity on the boundary.

        Args:
            state: The state, as returned by :py:meth:`solve_state_and_adjoint`.

        Returns:
            The squared norm, which is used in the Armijo rule.

        """
        pass

    @abc.abstractmethod
    def lagrange_multiplier(self, state: Any) -> float:
        """Estimates the Lagrange multiplier of the volume constraint.

        A natural estimate is the boundary average of the sensitivity, see
        :py:func:`shapeopt.geometry.boundary_average`.

        Args:
            state: The state, as returned by :py:meth:`solve_state_and_adjoint`.

        Returns:
            The raw estimate of the Lagrange multiplier.

        """
        pass

    def harmonic_extension(self, state: Any, lagrange: float) -> np.ndarray:
        """Extends the negative sensitivity from the boundary into the domain.

        Only needed for the BoundaryDisplacement technique.

        Args:
            state: The state, as returned by :py:meth:`solve_state_and_adjoint`.
            lagrange: The Lagrange multiplier, which is added to the sensitivity.

        Returns:
            The displacement field, an array of shape (num_nodes, 2).

        """
        raise NotImplementedError(
            f"The problem {self.name} does not implement a harmonic extension, "
            "which is required for the BoundaryDisplacement technique."
        )

    def to_be_moved(self, node: int, point: np.ndarray) -> bool:
        """Decides, whether a node of the mesh may be moved.

        Args:
            node: The id of the node.
            point: The current coordinates of the node.

        Returns:
            ``True`` if the node may be moved. By default, all nodes are movable.

        """
        return True

    def fix_control_points(self, control_grid: np.ndarray, mu: np.ndarray) -> None:
        """Constrains the displacements of the free-form deformation lattice.

        The displacements have to be modified in place. By default, nothing is done.

        Args:
            control_grid: The control points, shape (rows, cols, 2), row 0 on top.
            mu: The displacements of the control points, shape (rows, cols, 2).

        """
        pass


def register_problem(name: str) -> Callable[[ProblemType], ProblemType]:
    """Registers a problem under a name, so that it can be selected in the config.

    Args:
        name: The name of the problem, e.g., ``"Elasticity"`` or ``"StokesEnergy"``.

    Returns:
        A class decorator.

    """

    def decorator(cls: ProblemType) -> ProblemType:
        if not (isinstance(cls, type) and issubclass(cls, Problem)):
            raise _exceptions.InputError(
                "shapeopt.register_problem",
                "cls",
                "Only subclasses of shapeopt.Problem can be registered.",
            )
        cls.registered_name = name
        _problem_registry[name.casefold()] = cls
        return cls

    return decorator


def create_problem(
    config: io.Config, mesh: _mesh.Mesh | None = None, **kwargs: Any
) -> Problem:
    """Instantiates the problem selected in the section Problem of the config.

    Args:
        config: The configuration.
        mesh: The mesh, on which the problem is posed. If this is ``None``, the mesh
            is imported from the file given in the section Mesh of the config.
        **kwargs: Further keyword arguments, which are passed to the problem.

    Returns:
        The problem.

    """
    name = config.get("Problem", "name")
    try:
        problem_class = _problem_registry[name.casefold()]
    except KeyError as error:
        raise _exceptions.InputError(
            "shapeopt.create_problem",
            "name",
            f"No problem is registered under the name {name}. "
            f"Registered problems are {sorted(_problem_registry.keys())}.",
        ) from error

    if mesh is None:
        if not config.has_option("Mesh", "mesh_file"):
            raise _exceptions.InputError(
                "shapeopt.create_problem",
                "mesh",
                "No mesh was supplied and the config does not specify a mesh_file.",
            )
        from shapeopt.io import mesh as iomesh  # pylint: disable=import-outside-toplevel

        mesh = iomesh.import_mesh(config.get("Mesh", "mesh_file"))

    return problem_class(mesh, **kwargs)


def fix_lateral_control_points(mu: np.ndarray) -> None:
    """Fixes the control points in the first and last column of the lattice.

    This is the policy used for the elasticity problems, where the left and right
    side of the domain must not move.

    Args:
        mu: The displacements of the control points, modified in place.

    """
    mu[:, 0] = 0.0
    mu[:, -1] = 0.0


def fix_outer_control_points(mu: np.ndarray) -> None:
    """Fixes all control points on the border of the lattice.

    This is the policy used for the Stokes energy problems, where only the interior
    of the channel is deformed.

    Args:
        mu: The displacements of the control points, modified in place.

    """
    fix_lateral_control_points(mu)
    mu[0, :] = 0.0
    mu[-1, :] = 0.0
