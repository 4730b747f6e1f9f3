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

import numpy as np
import pytest

import shapeopt
from shapeopt._exceptions import InvertedMeshError
from shapeopt._optimization import parametrizations


def test_boundary_displacement_convergence(config, area_problem, mesh):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", tolerance=0.3)

    optimization_state = sop.solver.db.parameter_db.optimization_state
    assert sop.solver.converged
    assert optimization_state["iteration"] == 1
    assert optimization_state["no_state_solves"] == 2
    assert optimization_state["no_rejections"] == 0
    assert optimization_state["objective_value"] == pytest.approx(0.875**2)
    assert optimization_state["relative_change"] == pytest.approx(1.0 - 0.875**2)
    assert mesh.volume() == pytest.approx(0.875**2)
    assert area_problem.solves == 2


def test_maximum_iterations(config, area_problem, mesh):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve(max_iter=3, tolerance=0.0)

    optimization_state = sop.solver.db.parameter_db.optimization_state
    assert not sop.solver.converged
    assert not optimization_state["converged"]
    assert optimization_state["iteration"] == 3
    # the trial state of an accepted step is reused
    assert optimization_state["no_state_solves"] == 4
    assert mesh.volume() == pytest.approx(0.875**6)


def test_rejected_steps(config, ascent_problem, mesh):
    initial = mesh.coordinates.copy()
    sop = shapeopt.ShapeOptimizationProblem(ascent_problem, config)
    sop.solve("BoundaryDisplacement")

    optimization_state = sop.solver.db.parameter_db.optimization_state
    assert not sop.solver.converged
    assert optimization_state["no_rejections"] == 5
    assert optimization_state["no_state_solves"] == 10
    assert not optimization_state["accepted"]
    assert sop.solver.stepsize == pytest.approx(0.125 / 2**5)
    assert np.array_equal(mesh.coordinates, initial)

    with open(f"{config.get('Output', 'result_dir')}/Area_Output.txt") as file:
        assert file.read() == ""


def test_inverted_mesh_abort(config, mirror_problem, mesh):
    config.set("OptimizationRoutine", "step", "1.0")
    initial = mesh.coordinates.copy()
    sop = shapeopt.ShapeOptimizationProblem(mirror_problem, config)

    with pytest.raises(InvertedMeshError) as e_info:
        sop.solve("BoundaryDisplacement")

    assert len(e_info.value.cells) == mesh.num_cells
    assert np.array_equal(mesh.coordinates, initial)
    assert shapeopt.log.shapeopt_logger._indent_level == 0


def test_inverted_mesh_reject(config, mirror_problem, mesh):
    config.set("OptimizationRoutine", "step", "1.5")
    config.set("OptimizationRoutine", "inversion_policy", "reject")
    sop = shapeopt.ShapeOptimizationProblem(mirror_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=3)

    history = sop.solver.output_manager.output_dict
    optimization_state = sop.solver.db.parameter_db.optimization_state
    assert history["accepted"] == [False, False, True]
    assert history["stepsize"] == [1.5, 0.75, 0.375]
    assert optimization_state["no_rejections"] == 2
    assert optimization_state["no_state_solves"] == 2
    assert mesh.volume() == pytest.approx(0.25)


def test_volume_constraint(config, area_problem, mesh):
    config.set("OptimizationRoutine", "volume_constraint", "True")
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("BoundaryDisplacement", max_iter=2)

    optimization_state = sop.solver.db.parameter_db.optimization_state
    # the multiplier cancels the area sensitivity, so that nothing moves
    assert optimization_state["lagrange_multiplier"] == pytest.approx(-1.0)
    assert sop.solver.volume_constraint.old_lagrange == pytest.approx(-1.0)
    assert mesh.volume() == pytest.approx(1.0)


@pytest.mark.parametrize(
    "technique, step, max_iter",
    [("DesignElement", 0.125, 3), ("FFD", 0.125, 3), ("FFD_LS", 0.0625, 1)],
)
def test_boundary_parametrizations(
    config, area_problem, mesh, technique, step, max_iter
):
    config.set("OptimizationRoutine", "step", str(step))
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve(technique, max_iter=max_iter, tolerance=0.0)

    optimization_state = sop.solver.db.parameter_db.optimization_state
    assert optimization_state["iteration"] == max_iter
    assert optimization_state["no_rejections"] < max_iter
    assert mesh.volume() < 1.0
    assert np.all(mesh.cell_volumes() > 0.0)


def test_fixed_control_points(config, area_problem, mesh):
    class ChannelProblem(type(area_problem)):
        def fix_control_points(self, control_grid, mu):
            shapeopt.fix_lateral_control_points(mu)

    problem = ChannelProblem(mesh)
    left = mesh.coordinates[:, 0] == 0.0
    initial = mesh.coordinates[left].copy()

    sop = shapeopt.ShapeOptimizationProblem(problem, config)
    sop.solve("FFD", max_iter=2, tolerance=0.0)

    mu = sop.solver.parametrization.mu
    assert np.all(mu[:, [0, -1]] == 0.0)
    assert np.any(mu[:, 1:-1] != 0.0)
    # only the control points in the first column act on the left side
    assert np.allclose(mesh.coordinates[left], initial)
    assert mesh.volume() < 1.0


def test_config_overrides(config, area_problem):
    sop = shapeopt.ShapeOptimizationProblem(area_problem, config)
    sop.solve("FFD", max_iter=1, tolerance=0.5)

    assert config.get("OptimizationRoutine", "technique") == "FFD"
    assert config.getint("OptimizationRoutine", "max_iterations") == 1
    assert config.getfloat("OptimizationRoutine", "tolerance") == 0.5
    assert isinstance(sop.solver.parametrization, parametrizations.FFD)


def test_negative_cost_functional(config, area_problem, mesh):
    class ShiftedProblem(type(area_problem)):
        def evaluate_cost_functional(self, state):
            return state["volume"] - 2.0

    sop = shapeopt.ShapeOptimizationProblem(ShiftedProblem(mesh), config)
    sop.solve("BoundaryDisplacement", max_iter=1, tolerance=0.0)

    optimization_state = sop.solver.db.parameter_db.optimization_state
    assert optimization_state["accepted"]
    assert optimization_state["objective_value"] == pytest.approx(0.875**2 - 2.0)
    # the change is relative to |J_old| = |1 - 2|
    assert optimization_state["relative_change"] == pytest.approx(1.0 - 0.875**2)
