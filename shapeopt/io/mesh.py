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

"""Import and export of meshes via meshio."""

from __future__ import annotations

import pathlib

import meshio
import numpy as np

from shapeopt import _exceptions
from shapeopt import log
from shapeopt.geometry import mesh as _mesh

_CELL_TYPES = {0: "triangle", 1: "triangle6"}
# permutation reversing the orientation of a quadratic cell
_FLIP_TRIANGLE6 = [0, 2, 1, 5, 4, 3]


@_mesh._get_mesh_stats("import")  # pylint: disable=protected-access
def import_mesh(path: str) -> _mesh.Mesh:
    """Imports a triangular mesh from a file.

    Every format supported by meshio can be read, e.g., Gmsh .msh files. Quadratic
    cells are used if the file contains any, otherwise linear ones. Nodes which do not
    belong to a cell are removed and clockwise cells are reoriented, so that all cells
    of the resulting mesh have a positive volume.

    Args:
        path: The path to the mesh file.

    Returns:
        The imported mesh.

    """
    file = pathlib.Path(path)
    if not file.is_file():
        raise _exceptions.InputError(
            "shapeopt.io.import_mesh",
            "path",
            f"Could not find the specified mesh file {path}.",
        )

    meshio_mesh = meshio.read(path)
    cells = None
    for cell_type in ("triangle6", "triangle"):
        blocks = [block.data for block in meshio_mesh.cells if block.type == cell_type]
        if blocks:
            cells = np.concatenate(blocks)
            break

    if cells is None:
        raise _exceptions.InputError(
            "shapeopt.io.import_mesh",
            "path",
            "The mesh file does not contain triangular cells.",
        )

    used_nodes, inverse = np.unique(cells, return_inverse=True)
    cells = inverse.reshape(cells.shape)
    coordinates = meshio_mesh.points[used_nodes, :2]

    mesh = _mesh.Mesh(coordinates, cells)
    flipped = np.nonzero(mesh.cell_volumes() < 0.0)[0]
    if len(flipped) > 0:
        log.debug(f"Reorienting {len(flipped)} clockwise cell(s).")
        cells = np.array(mesh.cells)
        if mesh.subdivisions_per_side == 0:
            cells[flipped] = cells[flipped][:, [0, 2, 1]]
        else:
            cells[flipped] = cells[flipped][:, _FLIP_TRIANGLE6]
        mesh = _mesh.Mesh(coordinates, cells)

    return mesh


def write_out_mesh(
    mesh: _mesh.Mesh,
    path: str,
    point_data: dict[str, np.ndarray] | None = None,
) -> None:
    """Writes a mesh (and nodal fields) to a file.

    Two-dimensional points and vector fields are padded with a zero third component,
    as required by the VTK formats.

    Args:
        mesh: The mesh which shall be written.
        path: The output path, the format is deduced from the file extension by
            meshio.
        point_data: Optional nodal fields, each array has the number of nodes as
            first dimension.

    """
    num_nodes = mesh.num_nodes
    points = np.column_stack([mesh.coordinates, np.zeros(num_nodes)])

    padded_data = {}
    if point_data is not None:
        for name, values in point_data.items():
            values = np.asarray(values, dtype=float)
            if values.ndim == 2 and values.shape[1] == 2:
                values = np.column_stack([values, np.zeros(num_nodes)])
            padded_data[name] = values

    meshio_mesh = meshio.Mesh(
        points,
        [(_CELL_TYPES[mesh.subdivisions_per_side], np.array(mesh.cells))],
        point_data=padded_data,
    )

    pathlib.Path(path).parent.mkdir(parents=True, exist_ok=True)
    meshio.write(path, meshio_mesh)
