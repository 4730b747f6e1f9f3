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

"""Triangular meshes with linear or quadratic geometry."""

from __future__ import annotations

import functools
from typing import Any, Callable

import numpy as np

from shapeopt import _exceptions
from shapeopt import log

# (xi, eta) of the degree 2 quadrature on the reference triangle, weights 1/6
_CELL_QUADRATURE = np.array([[0.5, 0.0], [0.5, 0.5], [0.0, 0.5]])


def _p2_shape_derivatives(xi: float, eta: float) -> tuple[np.ndarray, np.ndarray]:
    """Derivatives of the quadratic Lagrange shape functions on the reference cell.

    Args:
        xi: First reference coordinate.
        eta: Second reference coordinate.

    Returns:
        A tuple (d_xi, d_eta) of arrays of length 6, ordered vertices first and then
        the midpoints of the sides (0, 1), (1, 2), (2, 0).

    """
    l0 = 1.0 - xi - eta
    l1 = xi
    l2 = eta

    d_xi = np.array(
        [-(4.0 * l0 - 1.0), 4.0 * l1 - 1.0, 0.0, 4.0 * (l0 - l1), 4.0 * l2, -4.0 * l2]
    )
    d_eta = np.array(
        [-(4.0 * l0 - 1.0), 0.0, 4.0 * l2 - 1.0, -4.0 * l1, 4.0 * l1, 4.0 * (l0 - l2)]
    )
    return d_xi, d_eta


class Mesh:
    """A two-dimensional triangular mesh.

    The nodes of a cell are ordered vertices first, followed by the nodes subdividing
    side 0 (from vertex 0 to vertex 1), side 1 (vertex 1 to 2) and side 2 (vertex 2
    to 0). Only the coordinates of a mesh may change after construction, the cell
    connectivity is immutable.
    """

    def __init__(self, coordinates: np.ndarray, cells: np.ndarray) -> None:
        """Initializes self.

        Args:
            coordinates: Array of shape (num_nodes, 2) with the node coordinates.
            cells: Integer array of shape (num_cells, 3) for linear or (num_cells, 6)
                for quadratic triangles.

        """
        coordinates = np.array(coordinates, dtype=float)
        cells = np.array(cells, dtype=np.int64)

        if coordinates.ndim != 2 or coordinates.shape[1] != 2:
            raise _exceptions.InputError(
                "shapeopt.geometry.Mesh",
                "coordinates",
                "The coordinates have to be an array of shape (num_nodes, 2).",
            )
        if cells.ndim != 2 or cells.shape[1] not in (3, 6):
            raise _exceptions.InputError(
                "shapeopt.geometry.Mesh",
                "cells",
                "Only linear (3 nodes) and quadratic (6 nodes) triangles are "
                "supported.",
            )
        if cells.size > 0 and (cells.min() < 0 or cells.max() >= len(coordinates)):
            raise _exceptions.InputError(
                "shapeopt.geometry.Mesh",
                "cells",
                "The cells reference nodes which do not exist.",
            )

        self.coordinates = coordinates
        self._cells = cells
        self._cells.setflags(write=False)
        self.subdivisions_per_side = cells.shape[1] // 3 - 1
        self._neighbors = self._compute_neighbors()
        self._neighbors.setflags(write=False)

    @property
    def cells(self) -> np.ndarray:
        """The (read-only) cell connectivity."""
        return self._cells

    @property
    def neighbors(self) -> np.ndarray:
        """The neighbor cell across each side, ``-1`` marks a boundary side."""
        return self._neighbors

    @property
    def num_nodes(self) -> int:
        """The number of nodes of the mesh."""
        return int(self.coordinates.shape[0])

    @property
    def num_cells(self) -> int:
        """The number of cells of the mesh."""
        return int(self._cells.shape[0])

    @property
    def dim(self) -> int:
        """The geometric dimension of the mesh."""
        return int(self.coordinates.shape[1])

    def _compute_neighbors(self) -> np.ndarray:
        neighbors = np.full((self.num_cells, 3), -1, dtype=np.int64)
        sides: dict[tuple[int, int], tuple[int, int]] = {}

        for cell_idx, cell in enumerate(self._cells):
            for side in range(3):
                a = int(cell[side])
                b = int(cell[(side + 1) % 3])
                key = (min(a, b), max(a, b))
                if key in sides:
                    other_cell, other_side = sides.pop(key)
                    neighbors[cell_idx, side] = other_cell
                    neighbors[other_cell, other_side] = cell_idx
                else:
                    sides[key] = (cell_idx, side)

        return neighbors

    def side_nodes(self, cell: int, side: int) -> list[int]:
        """Returns the nodes of a cell's side, ordered from start to end vertex.

        Args:
            cell: The index of the cell.
            side: The local index of the side (0, 1 or 2).

        Returns:
            The node ids along the side, including both vertices.

        """
        nodes = self._cells[cell]
        s = self.subdivisions_per_side
        inner = [int(nodes[3 + side * s + j]) for j in range(s)]
        return [int(nodes[side])] + inner + [int(nodes[(side + 1) % 3])]

    def boundary_sides(self) -> list[tuple[int, int]]:
        """Returns the boundary sides in cell iteration order.

        Returns:
            A list of (cell, side) pairs for which no neighboring cell exists.

        """
        return [
            (int(cell), int(side))
            for cell, side in zip(*np.nonzero(self._neighbors == -1))
        ]

    def vertex_ids(self) -> np.ndarray:
        """Returns the sorted ids of all nodes which are cell vertices."""
        return np.unique(self._cells[:, :3])

    def cell_volumes(self) -> np.ndarray:
        """Computes the signed volume (area) of each cell.

        Counter-clockwise cells have a positive volume. For quadratic cells, curved
        sides are taken into account exactly.

        Returns:
            The array of signed cell volumes.

        """
        x = self.coordinates[self._cells]
        if self.subdivisions_per_side == 0:
            d1 = x[:, 1] - x[:, 0]
            d2 = x[:, 2] - x[:, 0]
            return 0.5 * (d1[:, 0] * d2[:, 1] - d1[:, 1] * d2[:, 0])

        volumes = np.zeros(self.num_cells)
        for xi, eta in _CELL_QUADRATURE:
            d_xi, d_eta = _p2_shape_derivatives(xi, eta)
            jac_xi = np.einsum("j,cjd->cd", d_xi, x)
            jac_eta = np.einsum("j,cjd->cd", d_eta, x)
            det = jac_xi[:, 0] * jac_eta[:, 1] - jac_xi[:, 1] * jac_eta[:, 0]
            volumes += det / 6.0

        return volumes

    def volume(self) -> float:
        """Computes the volume (area) of the mesh."""
        return float(np.sum(self.cell_volumes()))

    def copy(self) -> Mesh:
        """Returns a deep copy of the mesh with identical topology."""
        return Mesh(self.coordinates.copy(), np.array(self._cells))

    def has_same_topology(self, other: Mesh) -> bool:
        """Checks, whether another mesh has the same nodes and connectivity.

        Args:
            other: The mesh to compare with.

        Returns:
            ``True`` if node count and cell connectivity coincide.

        """
        return bool(
            self.num_nodes == other.num_nodes
            and self._cells.shape == other.cells.shape
            and np.array_equal(self._cells, other.cells)
        )

    def write(self, path: str, point_data: dict[str, np.ndarray] | None = None) -> None:
        """Writes the mesh to a file, see :py:func:`shapeopt.io.write_out_mesh`.

        Args:
            path: The output path, the format is deduced from the file extension.
            point_data: Optional nodal fields which are written alongside.

        """
        from shapeopt.io import mesh as iomesh  # pylint: disable=import-outside-toplevel

        iomesh.write_out_mesh(self, path, point_data=point_data)


def _get_mesh_stats(mode: str) -> Callable[..., Callable[..., Mesh]]:
    """A decorator for mesh importing / generating function which logs stats.

    Args:
        mode: A string indicating whether the mesh is being generated or imported.

    Returns:
        The decorated function.

    """

    def decorator_stats(func: Callable[..., Mesh]) -> Callable[..., Mesh]:
        @functools.wraps(func)
        def wrapper_stats(*args: Any, **kwargs: Any) -> Mesh:
            word = "importing" if mode.casefold() == "import" else "generating"
            worded = "imported" if mode.casefold() == "import" else "generated"
            log.begin(f"{word.capitalize()} mesh.", level=log.INFO)

            try:
                mesh = func(*args, **kwargs)
                cell_type = (
                    "triangle" if mesh.subdivisions_per_side == 0 else "triangle6"
                )

                log.info(f"Successfully {worded} {mesh.dim}-dimensional mesh.")
                log.info(
                    f"Mesh contains {mesh.num_nodes:,} nodes and "
                    f"{mesh.num_cells:,} cells of type {cell_type}."
                )
            finally:
                log.end()
            return mesh

        return wrapper_stats

    return decorator_stats


@_get_mesh_stats("generate")
def regular_mesh(
    n: int = 10,
    length_x: float = 1.0,
    length_y: float = 1.0,
    quadratic: bool = True,
) -> Mesh:
    r"""Creates a mesh corresponding to a rectangle.

    The domain is :math:`[0, length_x] \times [0, length_y]`. The resulting mesh uses
    ``n`` squares along the shortest direction and accordingly many along the longer
    one, each square is split along its diagonal into two counter-clockwise
    triangles.

    Args:
        n: Number of elements in the shortest coordinate direction.
        length_x: Length in x-direction.
        length_y: Length in y-direction.
        quadratic: If ``True``, quadratic (6 node) triangles are generated, otherwise
            linear ones.

    Returns:
        The generated mesh.

    """
    if length_x <= 0.0:
        raise _exceptions.InputError(
            "shapeopt.geometry.regular_mesh", "length_x", "length_x needs to be positive"
        )
    if length_y <= 0.0:
        raise _exceptions.InputError(
            "shapeopt.geometry.regular_mesh", "length_y", "length_y needs to be positive"
        )
    if n < 1:
        raise _exceptions.InputError(
            "shapeopt.geometry.regular_mesh", "n", "n needs to be at least 1"
        )

    size_min = min(length_x, length_y)
    num_x = max(1, int(round(n * length_x / size_min)))
    num_y = max(1, int(round(n * length_y / size_min)))

    factor = 2 if quadratic else 1
    points_x = factor * num_x + 1
    points_y = factor * num_y + 1

    x_coords = np.linspace(0.0, length_x, points_x)
    y_coords = np.linspace(0.0, length_y, points_y)
    xx, yy = np.meshgrid(x_coords, y_coords)
    coordinates = np.column_stack([xx.ravel(), yy.ravel()])

    def idx(i: int, j: int) -> int:
        return j * points_x + i

    cells = []
    for q in range(num_y):
        for p in range(num_x):
            i = factor * p
            j = factor * q
            a = idx(i, j)
            b = idx(i + factor, j)
            c = idx(i + factor, j + factor)
            d = idx(i, j + factor)
            if quadratic:
                cells.append(
                    [a, b, c, idx(i + 1, j), idx(i + 2, j + 1), idx(i + 1, j + 1)]
                )
                cells.append(
                    [a, c, d, idx(i + 1, j + 1), idx(i + 1, j + 2), idx(i, j + 1)]
                )
            else:
                cells.append([a, b, c])
                cells.append([a, c, d])

    return Mesh(coordinates, np.array(cells, dtype=np.int64))
