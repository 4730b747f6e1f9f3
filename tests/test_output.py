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

import json
import pathlib

import meshio
import numpy as np
import pytest

import shapeopt


@pytest.fixture
def result_dir(config):
    return pathlib.Path(config.get("Output", "result_dir"))


def test_output_txt(config, area_problem, result_dir):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2, tolerance=0.0)

    lines = (result_dir / "Area_Output.txt").read_text().splitlines()
    assert lines == [
        f"1, {0.875**2:g}, {1.0 - 0.875**2:g};",
        f"2, {0.875**4:g}, {1.0 - 0.875**2:g};",
    ]


def test_output_txt_skips_rejected_steps(config, mirror_problem, result_dir):
    config.set("OptimizationRoutine", "step", "1.5")
    config.set("OptimizationRoutine", "inversion_policy", "reject")
    sop = shapeopt.ShapeOptimizationProblem(mirror_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=3)

    lines = (result_dir / "Area_Output.txt").read_text().splitlines()
    assert lines == ["3, 0.25, 0.75;"]


def test_history_json(config, area_problem, result_dir):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2, tolerance=0.0)

    with open(result_dir / "history.json", encoding="utf-8") as file:
        history = json.load(file)

    assert history["iteration"] == [1, 2]
    assert history["accepted"] == [True, True]
    assert history["objective_value"] == pytest.approx([0.875**2, 0.875**4])
    assert history["gradient_norm"] == pytest.approx([4.0, 4.0 * 0.875])
    assert history["no_state_solves"] == [2, 3]


def test_mesh_output(config, area_problem, result_dir):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2, tolerance=0.0)

    assert (result_dir / "Area_ReferenceMesh_0.vtu").is_file()
    for i in [1, 2]:
        assert (result_dir / f"Area_Deformed{i}_0.vtu").is_file()
        assert (result_dir / f"Area_Perturbation{i}_0.vtu").is_file()

    reference = meshio.read(result_dir / "Area_ReferenceMesh_0.vtu")
    assert np.max(reference.points[:, 0]) == pytest.approx(1.0)

    deformed = meshio.read(result_dir / "Area_Deformed1_0.vtu")
    assert np.min(deformed.points[:, 0]) == pytest.approx(0.0625)
    assert np.max(deformed.points[:, 0]) == pytest.approx(0.9375)

    perturbation = meshio.read(result_dir / "Area_Perturbation1_0.vtu")
    displacement = perturbation.point_data["perturbation"]
    assert displacement.shape == (81, 3)
    expected = deformed.points[:, :2] - reference.points[:, :2]
    assert np.allclose(displacement[:, :2], expected)
    assert np.all(displacement[:, 2] == 0.0)

    # perturbations are written on the mesh they are applied to
    assert np.allclose(perturbation.points, reference.points)
    second_perturbation = meshio.read(result_dir / "Area_Perturbation2_0.vtu")
    assert np.allclose(second_perturbation.points, deformed.points)


def test_time_series(config, area_problem, result_dir):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2, tolerance=0.0)

    content = (result_dir / "Area_TimeSeries_2.pvd").read_text()
    assert content == (
        '<?xml version="1.0"?>\n'
        '<VTKFile type="Collection" version="0.1" byte_order="LittleEndian" '
        'compressor="vtkZLibDataCompressor">\n'
        "    <Collection>\n"
        '        <DataSet timestep="0" file="Area_ReferenceMesh_0.vtu"/>\n'
        '        <DataSet timestep="1" file="Area_Deformed1_0.vtu"/>\n'
        '        <DataSet timestep="2" file="Area_Deformed2_0.vtu"/>\n'
        "    </Collection>\n"
        "</VTKFile>\n"
    )


def test_rejected_deformation_is_saved(config, mirror_problem, result_dir):
    config.set("OptimizationRoutine", "step", "1.0")
    config.set("OptimizationRoutine", "inversion_policy", "reject")
    sop = shapeopt.ShapeOptimizationProblem(mirror_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=1)

    perturbation = meshio.read(result_dir / "Area_Perturbation1_0.vtu")
    assert np.all(perturbation.point_data["perturbation"] == 0.0)
    assert (result_dir / "Area_TimeSeries_1.pvd").is_file()


def test_no_output(config, area_problem, result_dir):
    config.set("Output", "save_results", "False")
    config.set("Output", "save_txt", "False")
    config.set("Output", "save_mesh", "False")
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2)

    assert not result_dir.exists()
    assert sop.solver.output_manager.output_dict["iteration"] == [1, 2]


def test_time_suffix(config, area_problem, result_dir):
    config.set("Output", "time_suffix", "True")
    config.set("Output", "save_mesh", "False")
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=1)

    suffix = sop.solver.output_manager.suffix
    suffixed_dir = pathlib.Path(f"{result_dir}_{suffix}")
    assert suffixed_dir.is_dir()
    assert (suffixed_dir / "history.json").is_file()
    assert (suffixed_dir / "Area_Output.txt").is_file()
    assert not result_dir.exists()


def test_verbose_output(config, area_problem, capsys):
    config.set("Output", "verbose", "True")
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2, tolerance=0.0)

    captured = capsys.readouterr().out
    assert "iter,  " in captured
    assert "cost function" in captured
    assert "Maximum number of iterations reached." in captured
    assert "total number of state and adjoint solves:    3" in captured
