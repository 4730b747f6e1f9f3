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

import io
import pathlib

import meshio
import numpy as np
import pytest

import shapeopt
import shapeopt._cli


@pytest.fixture
def msh_file(mesh, tmp_path):
    points = np.column_stack([mesh.coordinates, np.zeros(mesh.num_nodes)])
    cells = np.array(mesh.cells)
    path = str(tmp_path / "mesh.msh")
    meshio.write(
        path,
        meshio.Mesh(
            points,
            [("triangle6", cells)],
            cell_data={
                "gmsh:physical": [np.ones(len(cells), dtype=int)],
                "gmsh:geometrical": [np.ones(len(cells), dtype=int)],
            },
        ),
        file_format="gmsh22",
        binary=False,
    )
    return path


@pytest.fixture(autouse=True)
def reset_log_level():
    yield
    shapeopt.set_log_level(shapeopt.LogLevel.INFO)


def test_convert_cli(msh_file):
    shapeopt._cli.convert([msh_file])

    outfile = pathlib.Path(msh_file).with_suffix(".vtu")
    assert outfile.is_file()

    mesh = shapeopt.import_mesh(str(outfile))
    assert mesh.num_nodes == 81
    assert mesh.num_cells == 32
    assert mesh.subdivisions_per_side == 1
    assert mesh.volume() == pytest.approx(1.0, rel=1e-14)
    assert shapeopt.geometry.boundary_measure(mesh) == pytest.approx(4.0, rel=1e-14)


def test_convert_output_arg(msh_file, tmp_path):
    outfile = str(tmp_path / "converted" / "test.vtu")
    shapeopt._cli.convert([msh_file, "-o", outfile])

    mesh = shapeopt.import_mesh(outfile)
    original = shapeopt.import_mesh(msh_file)
    assert np.allclose(mesh.coordinates, original.coordinates)
    assert np.array_equal(mesh.cells, original.cells)


def test_convert_quiet(msh_file):
    handler = shapeopt.log.shapeopt_logger._handler
    stream = io.StringIO()
    old_stream = handler.setStream(stream)
    try:
        shapeopt._cli.convert([msh_file, "--quiet"])
    finally:
        handler.setStream(old_stream)

    assert stream.getvalue() == ""


def test_convert_missing_file(tmp_path):
    with pytest.raises(shapeopt._exceptions.InputError):
        shapeopt._cli.convert([str(tmp_path / "missing.msh")])
