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

from shapeopt._exceptions import DegenerateGeometryError
from shapeopt._optimization import VolumeConstraint


def test_initial_volume(mesh):
    constraint = VolumeConstraint(mesh)
    assert constraint.initial_volume == pytest.approx(1.0)
    assert constraint.old_lagrange == 0.0
    assert constraint.relative_volume_change() == pytest.approx(0.0)


def test_update(mesh):
    constraint = VolumeConstraint(mesh)
    constraint.initialize(-1.0)
    mesh.coordinates *= 1.1

    expected = 0.5 * (-1.0 - 3.0) + 0.21
    assert constraint.relative_volume_change() == pytest.approx(0.21)
    assert constraint.update(-3.0) == pytest.approx(expected)
    assert constraint.old_lagrange == pytest.approx(expected)
    assert constraint.actual_lagrange == pytest.approx(expected)

    mesh.coordinates /= 1.1
    assert constraint.update(expected) == pytest.approx(expected)


def test_prescribed_initial_volume(mesh):
    constraint = VolumeConstraint(mesh, initial_volume=2.0)
    assert constraint.update(0.0) == pytest.approx(-0.5)


def test_zero_volume(mesh):
    mesh.coordinates[:, 1] = 0.0
    with pytest.raises(DegenerateGeometryError):
        VolumeConstraint(mesh)

    with pytest.raises(DegenerateGeometryError):
        VolumeConstraint(mesh, initial_volume=0.0)


@pytest.mark.parametrize("estimate", [np.nan, np.inf, -np.inf])
def test_non_finite_estimate(mesh, estimate):
    constraint = VolumeConstraint(mesh)
    with pytest.raises(DegenerateGeometryError):
        constraint.initialize(estimate)
    with pytest.raises(DegenerateGeometryError):
        constraint.update(estimate)
