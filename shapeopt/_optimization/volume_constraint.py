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

"""Lagrange multiplier for the preservation of the volume."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from shapeopt import _exceptions
from shapeopt import log

if TYPE_CHECKING:
    from shapeopt.geometry import mesh as _mesh


class VolumeConstraint:
    r"""Damped update of the Lagrange multiplier of a volume constraint.

    Given a raw estimate :math:`\lambda` of the multiplier (usually the boundary
    average of the sensitivity), the multiplier is updated as

    .. math:: \lambda_{k} = \frac{1}{2} (\lambda_{k-1} + \lambda)
        + \frac{V - V_0}{V_0},

    where :math:`V` is the current and :math:`V_0` the initial volume of the mesh.
    """

    def __init__(self, mesh: _mesh.Mesh, initial_volume: float | None = None) -> None:
        """Initializes self.

        Args:
            mesh: The mesh, whose volume is to be preserved.
            initial_volume: The volume to be preserved. If this is ``None``, the
                current volume of the mesh is used.

        """
        self.mesh = mesh
        self.initial_volume = (
            self.mesh.volume() if initial_volume is None else float(initial_volume)
        )
        if self.initial_volume == 0.0 or not np.isfinite(self.initial_volume):
            raise _exceptions.DegenerateGeometryError(
                "The volume constraint cannot be used for a domain with zero volume."
            )

        self.old_lagrange = 0.0
        self.actual_lagrange = 0.0

    @staticmethod
    def _check_estimate(lagrange: float) -> float:
        lagrange = float(lagrange)
        if not np.isfinite(lagrange):
            raise _exceptions.DegenerateGeometryError(
                f"The estimate of the Lagrange multiplier is not finite: {lagrange}."
            )
        return lagrange

    def initialize(self, lagrange: float) -> None:
        """Initializes the previous multiplier with a raw estimate.

        Args:
            lagrange: The raw estimate of the multiplier.

        """
        self.old_lagrange = self._check_estimate(lagrange)

    def relative_volume_change(self) -> float:
        """Returns the change of volume relative to the initial volume."""
        return (self.mesh.volume() - self.initial_volume) / self.initial_volume

    def update(self, lagrange: float) -> float:
        """Updates the multiplier.

        Args:
            lagrange: The current raw estimate of the multiplier.

        Returns:
            The updated multiplier.

        """
        lagrange = self._check_estimate(lagrange)
        self.actual_lagrange = (
            0.5 * (self.old_lagrange + lagrange) + self.relative_volume_change()
        )
        self.old_lagrange = self.actual_lagrange
        log.debug(f"Updated Lagrange multiplier: {self.actual_lagrange:.6e}")

        return self.actual_lagrange
