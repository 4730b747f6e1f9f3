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
from shapeopt._exceptions import DegenerateGeometryError
from shapeopt._exceptions import InputError
from shapeopt._optimization import parametrizations
from shapeopt._optimization.parametrizations import design_element
from shapeopt._optimization.parametrizations import ffd
from shapeopt.geometry import DeformationHandler


@pytest.fixture
def handler(mesh):
    return DeformationHandler(mesh)


@pytest.fixture
def state(area_problem):
    return area_problem.solve_state_and_adjoint(1)


def test_boundary_displacement_fixed_nodes(area_problem, mesh, state):
    handler = DeformationHandler(mesh, lambda node, point: point[1] > 0.0)
    parametrization = parametrizations.BoundaryDisplacement(area_problem, handler)
    initial = mesh.coordinates.copy()

    field = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(field, 0.125)

    bottom = initial[:, 1] == 0.0
    assert np.array_equal(mesh.coordinates[bottom], initial[bottom])
    assert mesh.volume() < 1.0


def test_boundary_displacement_wrong_shape(mesh, handler, state):
    class ShortField(shapeopt.Problem):
        def solve_state_and_adjoint(self, iteration):
            return None

        def evaluate_cost_functional(self, state):
            return 0.0

        def compute_gradient(self, state, point):
            return 0.0

        def squared_gradient_norm(self, state):
            return 0.0

        def lagrange_multiplier(self, state):
            return 0.0

        def harmonic_extension(self, state, lagrange):
            return np.zeros((3, 2))

    parametrization = parametrizations.BoundaryDisplacement(ShortField(mesh), handler)
    with pytest.raises(InputError):
        parametrization.compute_perturbation(state, 0.125, 0.0)


@pytest.mark.parametrize("order", [1, 2, 3, 5])
def test_projection_pins_corners(order):
    projection = design_element.projection_matrix(order)
    assert projection.shape == (2 * order, 2 * order)
    assert np.allclose(projection, projection.T)
    assert np.allclose(np.sum(projection[:order], axis=0), 0.0)
    assert np.allclose(np.sum(projection[order:], axis=0), 0.0)


def test_projection_of_order_one():
    assert np.array_equal(design_element.projection_matrix(1), np.zeros((2, 2)))


def test_projection_of_order_three():
    expected = 0.5 * np.array(
        [
            [1.0, 0.0, -1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, -1.0, 0.0, 0.0, 0.0],
            [-1.0, -1.0, 2.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0, 0.0, -1.0],
            [0.0, 0.0, 0.0, 0.0, 1.0, -1.0],
            [0.0, 0.0, 0.0, -1.0, -1.0, 2.0],
        ]
    )
    assert np.array_equal(design_element.projection_matrix(3), expected)


def test_design_element_order_one(area_problem, mesh, handler, unit_box, state):
    parametrization = parametrizations.DesignElement(
        area_problem, handler, unit_box, order=1
    )
    initial = mesh.coordinates.copy()

    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(gradient, 0.125)

    assert np.array_equal(gradient, np.zeros(2))
    assert np.array_equal(parametrization.mu, np.zeros(2))
    assert np.allclose(mesh.coordinates, initial)


def test_design_element_invalid_order(area_problem, handler, unit_box):
    with pytest.raises(InputError):
        parametrizations.DesignElement(area_problem, handler, unit_box, order=0)


def test_design_element_curves(area_problem, handler, unit_box):
    parametrization = parametrizations.DesignElement(
        area_problem, handler, unit_box, order=3
    )
    parametrization.mu[:] = [1.0, 2.0, 3.0, -1.0, 0.0, 1.0]
    f_up, f_down = parametrization.curves(np.array([0.0, 0.5, 1.0]))

    assert f_up == pytest.approx([0.0, 0.5 + 0.5 + 0.375, 6.0])
    assert f_down == pytest.approx([0.0, -0.5 + 0.125, 0.0])


def test_design_element_decreases_area(area_problem, mesh, handler, unit_box, state):
    parametrization = parametrizations.DesignElement(
        area_problem, handler, unit_box, order=3
    )
    corners = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
    corner_ids = [
        int(np.argmin(np.linalg.norm(mesh.coordinates - corner, axis=1)))
        for corner in corners
    ]

    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(gradient, 0.125)

    assert np.sum(parametrization.mu[:3]) == pytest.approx(0.0, abs=1e-14)
    assert np.sum(parametrization.mu[3:]) == pytest.approx(0.0, abs=1e-14)
    assert np.allclose(mesh.coordinates[corner_ids], corners)
    assert mesh.volume() < 1.0


def test_design_element_checkpoint(area_problem, handler, unit_box, state):
    parametrization = parametrizations.DesignElement(
        area_problem, handler, unit_box, order=3
    )
    parametrization.store_checkpoint()
    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(gradient, 0.125)
    assert np.any(parametrization.mu != 0.0)

    parametrization.revert_to_checkpoint()
    assert np.array_equal(parametrization.mu, np.zeros(6))


def test_bernstein():
    t = np.linspace(0.0, 1.0, 7)
    total = sum(ffd.bernstein(4, i, t) for i in range(5))
    assert np.allclose(total, 1.0)
    assert ffd.bernstein(2, 1, 0.5) == pytest.approx(0.5)


def test_ffd_lattice(area_problem, handler):
    box = shapeopt.geometry.BoundingBox([-1.0, 0.0], [2.0, 1.0])
    parametrization = parametrizations.FFD(
        area_problem, handler, box, subdivisions=(3, 2)
    )

    assert parametrization.rows == 3
    assert parametrization.cols == 4
    assert parametrization.control_grid[0, 0] == pytest.approx([-1.0, 1.0])
    assert parametrization.control_grid[-1, -1] == pytest.approx([2.0, 0.0])
    assert parametrization.control_grid[1, 2] == pytest.approx([1.0, 0.5])
    assert parametrization.mu.shape == (3, 4, 2)


def test_ffd_invalid_subdivisions(area_problem, handler, unit_box):
    with pytest.raises(InputError):
        parametrizations.FFD(area_problem, handler, unit_box, subdivisions=(0, 2))


def test_ffd_partition_of_unity(area_problem, handler, unit_box, rng):
    parametrization = parametrizations.FFD(
        area_problem, handler, unit_box, subdivisions=(4, 3)
    )
    basis = parametrization.lattice_basis(rng.rand(15, 2))
    assert basis.shape == (15, 4, 5)
    assert np.allclose(np.sum(basis, axis=(1, 2)), 1.0)


def test_ffd_basis_ordering(area_problem, handler, unit_box):
    parametrization = parametrizations.FFD(
        area_problem, handler, unit_box, subdivisions=(1, 1)
    )
    center = np.array([[0.5, 0.5]])
    assert np.allclose(parametrization.lattice_basis(center), 0.25)

    lower_right = np.array([[1.0, 0.0]])
    basis = parametrization.lattice_basis(lower_right)[0]
    assert basis[-1, -1] == pytest.approx(1.0)
    assert parametrization.basis(1, 0, lower_right[0]) == pytest.approx(1.0)
    assert np.sum(basis) == pytest.approx(1.0)


def test_ffd_decreases_area(area_problem, mesh, handler, unit_box, state):
    parametrization = parametrizations.FFD(
        area_problem, handler, unit_box, subdivisions=(1, 1)
    )
    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)

    # the area sensitivity pulls every corner of the lattice outwards
    assert np.all(gradient[:, 0, 0] < 0.0)
    assert np.all(gradient[:, -1, 0] > 0.0)
    assert np.all(gradient[0, :, 1] > 0.0)
    assert np.all(gradient[-1, :, 1] < 0.0)

    parametrization.apply_perturbation(gradient, 0.125)
    assert parametrization.mu == pytest.approx(-0.125 * gradient)
    assert mesh.volume() < 1.0


def test_ffd_fix_control_points(area_problem, mesh, handler, unit_box, state):
    class FixedProblem(type(area_problem)):
        def fix_control_points(self, control_grid, mu):
            shapeopt.fix_outer_control_points(mu)

    problem = FixedProblem(mesh)
    parametrization = parametrizations.FFD(
        problem, handler, unit_box, subdivisions=(2, 2)
    )
    initial = mesh.coordinates.copy()

    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(gradient, 0.125)

    assert np.all(parametrization.mu[[0, -1]] == 0.0)
    assert np.all(parametrization.mu[:, [0, -1]] == 0.0)
    assert np.allclose(mesh.coordinates, initial)


def test_ffd_ls_indefinite(area_problem, handler, unit_box):
    with pytest.raises(InputError) as e_info:
        parametrizations.FFDLeastSquares(area_problem, handler, unit_box, beta=2.0)

    assert e_info.value.param == "beta"


def test_ffd_ls_boundary_normals(area_problem, handler, unit_box):
    parametrization = parametrizations.FFDLeastSquares(
        area_problem, handler, unit_box
    )
    normals = parametrization.boundary_normals()
    points = area_problem.mesh.coordinates[parametrization.boundary_nodes]

    assert len(parametrization.boundary_nodes) == 16
    assert np.allclose(np.linalg.norm(normals, axis=1), 1.0)
    for point, normal in zip(points, normals):
        assert np.dot(point - 0.5, normal) > 0.0


def test_ffd_ls_degenerate(area_problem, mesh, handler, unit_box, state):
    parametrization = parametrizations.FFDLeastSquares(
        area_problem, handler, unit_box
    )
    mesh.coordinates[:] = 0.0

    with pytest.raises(DegenerateGeometryError):
        parametrization.compute_perturbation(state, 0.125, 0.0)


def test_ffd_ls_decreases_area(area_problem, mesh, handler, unit_box, state):
    parametrization = parametrizations.FFDLeastSquares(
        area_problem, handler, unit_box, beta=0.99
    )
    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(gradient, 0.125)

    assert parametrization.mu == pytest.approx(-0.125 * gradient)
    assert mesh.volume() < 1.0

    saved = parametrization.mu.copy()
    parametrization.store_checkpoint()
    gradient = parametrization.compute_perturbation(state, 0.125, 0.0)
    parametrization.apply_perturbation(gradient, 0.125)
    assert not np.allclose(parametrization.mu, saved)

    parametrization.revert_to_checkpoint()
    assert np.array_equal(parametrization.mu, saved)
