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

import pathlib

import numpy as np
import pytest

import shapeopt


class AreaProblem(shapeopt.Problem):
    """The area of the domain with the unit sensitivity and a radial extension."""

    def __init__(self, mesh, name="Area"):
        super().__init__(mesh, name=name)
        self.solves = 0

    def solve_state_and_adjoint(self, iteration):
        self.solves += 1
        return {"iteration": iteration, "volume": self.mesh.volume()}

    def evaluate_cost_functional(self, state):
        return state["volume"]

    def compute_gradient(self, state, point):
        return 1.0

    def squared_gradient_norm(self, state):
        return shapeopt.geometry.boundary_measure(self.mesh)

    def lagrange_multiplier(self, state):
        return shapeopt.boundary_average(
            self.mesh, lambda x: -self.compute_gradient(state, x)
        )

    def harmonic_extension(self, state, lagrange):
        center = np.mean(self.mesh.coordinates, axis=0)
        return -(1.0 + lagrange) * (self.mesh.coordinates - center)


class AscentProblem(AreaProblem):
    """Reports a sensitivity, for which every deformation increases the cost."""

    def evaluate_cost_functional(self, state):
        return 2.0 - state["volume"]


class MirrorProblem(AreaProblem):
    """Its extension mirrors the domain in x-direction for a unit step."""

    def harmonic_extension(self, state, lagrange):
        center = np.mean(self.mesh.coordinates, axis=0)
        field = np.zeros_like(self.mesh.coordinates)
        field[:, 0] = -2.0 * (self.mesh.coordinates[:, 0] - center[0])
        return field


@pytest.fixture()
def dir_path():
    return str(pathlib.Path(__file__).parent)


@pytest.fixture
def rng():
    return np.random.RandomState(300696)


@pytest.fixture
def mesh():
    return shapeopt.regular_mesh(4)


@pytest.fixture
def linear_mesh():
    return shapeopt.regular_mesh(4, quadratic=False)


@pytest.fixture
def area_problem(mesh):
    return AreaProblem(mesh)


@pytest.fixture
def ascent_problem(mesh):
    return AscentProblem(mesh)


@pytest.fixture
def mirror_problem(mesh):
    return MirrorProblem(mesh)


@pytest.fixture
def unit_box():
    return shapeopt.geometry.BoundingBox([0.0, 0.0], [1.0, 1.0])


@pytest.fixture
def config(tmp_path):
    config = shapeopt.io.Config()
    config.set("Output", "result_dir", str(tmp_path / "results"))
    config.set("OptimizationRoutine", "volume_constraint", "False")
    config.set("OptimizationRoutine", "max_iterations", "5")
    config.set("BoundingBox", "south_west", "[0.0, 0.0]")
    config.set("BoundingBox", "north_east", "[1.0, 1.0]")
    return config
