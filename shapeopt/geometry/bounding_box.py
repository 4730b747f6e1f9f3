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

"""Axis-aligned bounding boxes and their map to the unit square."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

from shapeopt import _exceptions

PointLike = Union[Sequence[float], np.ndarray]


class BoundingBox:
    r"""A rectangle given by its south-west and north-east corner.

    The box defines the affine map :math:`\psi` onto the unit square, which is used to
    evaluate the basis functions of the parametrizations in normalized coordinates.
    """

    def __init__(self, south_west: PointLike, north_east: PointLike) -> None:
        """Initializes self.

        Args:
            south_west: The lower left corner of the box.
            north_east: The upper right corner of the box.

        """
        self.south_west = np.array(south_west, dtype=float)
        self.north_east = np.array(north_east, dtype=float)

        if self.south_west.shape != (2,) or self.north_east.shape != (2,):
            raise _exceptions.InputError(
                "shapeopt.geometry.BoundingBox",
                "south_west, north_east",
                "The corners of the bounding box need exactly two components.",
            )
        if np.any(self.north_east - self.south_west <= 0.0):
            raise _exceptions.InputError(
                "shapeopt.geometry.BoundingBox",
                "north_east",
                "The north-east corner has to lie strictly above and to the right of "
                "the south-west corner.",
            )

    def __repr__(self) -> str:
        """Returns the string representation of the box."""
        return (
            f"BoundingBox(south_west={self.south_west.tolist()}, "
            f"north_east={self.north_east.tolist()})"
        )

    @property
    def extent(self) -> np.ndarray:
        """The side lengths of the box."""
        return self.north_east - self.south_west

    @property
    def width(self) -> float:
        """The extent of the box in x-direction."""
        return float(self.extent[0])

    @property
    def height(self) -> float:
        """The extent of the box in y-direction."""
        return float(self.extent[1])

    def psi(self, point: PointLike) -> np.ndarray:
        """Maps a point (or an array of points) from the box to the unit square.

        Args:
            point: The point(s) in physical coordinates, last axis of length 2.

        Returns:
            The point(s) in normalized coordinates.

        """
        return (np.asarray(point, dtype=float) - self.south_west) / self.extent

    def psi_inv(self, ref_point: PointLike) -> np.ndarray:
        """Maps a point (or an array of points) from the unit square to the box.

        Args:
            ref_point: The point(s) in normalized coordinates, last axis of length 2.

        Returns:
            The point(s) in physical coordinates.

        """
        return self.extent * np.asarray(ref_point, dtype=float) + self.south_west
