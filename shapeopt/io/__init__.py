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

"""Inputs and outputs."""

from shapeopt.io import config
from shapeopt.io import managers
from shapeopt.io import mesh
from shapeopt.io import output
from shapeopt.io.config import Config
from shapeopt.io.config import load_config
from shapeopt.io.mesh import import_mesh
from shapeopt.io.mesh import write_out_mesh
from shapeopt.io.output import OutputManager

__all__ = [
    "config",
    "managers",
    "mesh",
    "output",
    "Config",
    "load_config",
    "import_mesh",
    "write_out_mesh",
    "OutputManager",
]
