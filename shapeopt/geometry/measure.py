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

"""Quadrature on the boundary of a mesh."""

from __future__ import annotations

from typing import Callable, NamedTuple, TYPE_CHECKING

import numpy as np

from shapeopt import _exceptions

if TYPE_CHECKING:
    from shapeopt.geometry import mesh as _mesh


class BoundaryQuadrature(NamedTuple):
    """Quadrature data on the boundary sides of a mesh.

    All arrays are ordered like :py:meth:`shapeopt.geometry.Mesh.boundary_sides`,
    with the quadrature points of one side being contiguous.
    """

    points: np.ndarray
    """The physical quadrature points, shape (num_sides, num_points, 2)."""
    weights: np.ndarray
    """The weights multiplied by the side Jacobian, shape (num_sides, num_points)."""
    normals: np.ndarray
    """The unit outer normals, shape (num_sides, num_points, 2)."""


def boundary_quadrature(mesh: _mesh.Mesh, num_points: int = 2) -> BoundaryQuadrature:
    """Computes a Gauss-Legendre quadrature on all boundary sides of a mesh.

    Quadratic sides are treated isoparametrically, so that curved sides are
    integrated along the actual curve.

    Args:
        mesh: The mesh.
        num_points: The number of quadrature points per side.

    Returns:
        The quadrature points, weights and outer unit normals.

    """
    if num_points < 1:
        raise _exceptions.InputError(
            "shapeopt.geometry.boundary_quadrature",
            "num_points",
            "At least one quadrature point per side is needed.",
        )

    ref_points, ref_weights = np.polynomial.legendre.leggauss(num_points)
    t = 0.5 * (ref_points + 1.0)
    w = 0.5 * ref_weights

    sides = mesh.boundary_sides()
    points = np.zeros((len(sides), num_points, 2))
    weights = np.zeros((len(sides), num_points))
    normals = np.zeros((len(sides), num_points, 2))

    for i, (cell, side) in enumerate(sides):
        nodes = mesh.coordinates[mesh.side_nodes(cell, side)]
        if mesh.subdivisions_per_side == 0:
            a, b = nodes
            x = a + np.outer(t, b - a)
            tangent = np.tile(b - a, (num_points, 1))
        else:
            a, m, b = nodes
            x = (
                np.outer((1.0 - t) * (1.0 - 2.0 * t), a)
                + np.outer(4.0 * t * (1.0 - t), m)
                + np.outer(t * (2.0 * t - 1.0), b)
            )
            tangent = (
                np.outer(4.0 * t - 3.0, a)
                + np.outer(4.0 - 8.0 * t, m)
                + np.outer(4.0 * t - 1.0, b)
            )

        length = np.linalg.norm(tangent, axis=1)
        points[i] = x
        weights[i] = w * length
        # collapsed sides have zero weight, their normal is set to zero
        rotated = np.column_stack([tangent[:, 1], -tangent[:, 0]])
        np.divide(rotated, length[:, None], out=normals[i], where=length[:, None] > 0)

    return BoundaryQuadrature(points, weights, normals)


def boundary_measure(mesh: _mesh.Mesh, num_points: int = 2) -> float:
    """Computes the length of the boundary of a mesh.

    Args:
        mesh: The mesh.
        num_points: The number of quadrature points per side.

    Returns:
        The measure of the boundary.

    """
    return float(np.sum(boundary_quadrature(mesh, num_points).weights))


def boundary_average(
    mesh: _mesh.Mesh,
    function: Callable[[np.ndarray], float],
    num_points: int = 2,
) -> float:
    r"""Computes the mean value of a function over the boundary of a mesh.

    This computes

    .. math:: \frac{\int_{\partial \Omega} f \text{ d}s}{\int_{\partial \Omega} 1
        \text{ d}s},

    which is, e.g., needed for the estimate of the Lagrange multiplier of the volume
    constraint.

    Args:
        mesh: The mesh.
        function: A function mapping a point to a scalar.
        num_points: The number of quadrature points per side.

    Returns:
        The boundary average of the function.

    """
    quadrature = boundary_quadrature(mesh, num_points)
    denominator = float(np.sum(quadrature.weights))
    if denominator <= 0.0:
        raise _exceptions.DegenerateGeometryError(
            "Cannot average over a boundary of zero measure."
        )

    numerator = 0.0
    for side_points, side_weights in zip(quadrature.points, quadrature.weights):
        for point, weight in zip(side_points, side_weights):
            numerator += function(point) * weight

    return numerator / denominator
