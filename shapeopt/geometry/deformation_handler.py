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

"""Module for managing mesh deformations."""

from __future__ import annotations

from typing import Callable, TYPE_CHECKING

import numpy as np

from shapeopt import _exceptions
from shapeopt import log

if TYPE_CHECKING:
    from shapeopt.geometry import mesh as _mesh


def _always_movable(node: int, point: np.ndarray) -> bool:
    return True


class DeformationHandler:
    """A class, which implements mesh deformations.

    The vertices of the mesh are moved by a user supplied map, all other nodes of a
    cell are placed evenly along the (moved) sides of the cell afterwards, so that
    higher order cells stay geometrically consistent.
    """

    def __init__(
        self,
        mesh: _mesh.Mesh,
        is_movable: Callable[[int, np.ndarray], bool] | None = None,
    ) -> None:
        """Initializes self.

        Args:
            mesh: The mesh which is to be deformed.
            is_movable: A predicate ``is_movable(node, point)``, which decides whether
                a node may be moved. If this is ``None``, all nodes are movable.

        """
        self.mesh = mesh
        self.is_movable = is_movable if is_movable is not None else _always_movable
        self.old_coordinates: np.ndarray | None = None

    @log.profile_execution_time("deforming the mesh")
    def deform(self, vertex_map: Callable[[int], np.ndarray]) -> None:
        """Moves the mesh in place.

        Every movable vertex is assigned ``vertex_map(node)`` exactly once. Afterwards,
        the ``j``-th of the ``s`` nodes on a side from vertex ``A`` to ``B`` is placed at
        ``(1 - w) A + w B`` with ``w = (j + 1) / (s + 1)``.

        Args:
            vertex_map: Maps the id of a vertex to its new position.

        """
        coordinates = self.mesh.coordinates
        subdivisions = self.mesh.subdivisions_per_side
        has_moved = np.zeros(self.mesh.num_nodes, dtype=bool)

        for cell in self.mesh.cells:
            for node in cell[:3]:
                if not has_moved[node] and self.is_movable(
                    int(node), coordinates[node]
                ):
                    coordinates[node] = vertex_map(int(node))
                    has_moved[node] = True

            for n in range(3, len(cell)):
                node = cell[n]
                if not has_moved[node] and self.is_movable(
                    int(node), coordinates[node]
                ):
                    side = (n - 3) // subdivisions
                    ordinal = (n - 3) - subdivisions * side
                    weight = (ordinal + 1) / (subdivisions + 1)

                    start = coordinates[cell[side]]
                    end = coordinates[cell[(side + 1) % 3]]
                    coordinates[node] = (1.0 - weight) * start + weight * end
                    has_moved[node] = True

    def store_checkpoint(self) -> None:
        """Saves the current coordinates, so that a deformation can be reverted."""
        self.old_coordinates = self.mesh.coordinates.copy()

    def revert_transformation(self) -> None:
        """Reverts the mesh to the last checkpoint.

        This is used when the deformed mesh is not valid, or when the step is rejected
        due to lack of sufficient decrease in the Armijo rule.
        """
        if self.old_coordinates is None:
            raise _exceptions.InputError(
                "shapeopt.geometry.DeformationHandler.revert_transformation",
                "old_coordinates",
                "There is no checkpoint to revert to.",
            )
        self.mesh.coordinates[:, :] = self.old_coordinates

    def displacement(self) -> np.ndarray:
        """Returns the displacement of all nodes since the last checkpoint."""
        if self.old_coordinates is None:
            return np.zeros_like(self.mesh.coordinates)
        return self.mesh.coordinates - self.old_coordinates

    def inverted_cells(self) -> np.ndarray:
        """Returns the indices of the cells with non-positive volume."""
        return np.nonzero(self.mesh.cell_volumes() <= 0.0)[0]

    def check_domain(self) -> None:
        """Checks whether the mesh is a valid finite element mesh.

        Raises:
            InvertedMeshError: If a cell has a non-positive volume.

        """
        inverted = self.inverted_cells()
        if len(inverted) > 0:
            log.debug(f"Inverted cells after deformation: {inverted.tolist()}")
            raise _exceptions.InvertedMeshError(inverted.tolist())
