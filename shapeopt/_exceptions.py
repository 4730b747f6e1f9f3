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

"""Exceptions raised by shapeopt."""

from __future__ import annotations


class ShapeOptException(Exception):
    """Base class for exceptions raised by shapeopt."""

    pass


class InputError(ShapeOptException):
    """This gets raised when the user input to a public API method is wrong."""

    def __init__(self, obj: str, param: str, message: str | None = None) -> None:
        """Initializes self.

        Args:
            obj: The object which raises the exception.
            param: The faulty input parameter.
            message: A message detailing what went wrong.

        """
        super().__init__()
        self.obj = obj
        self.param = param
        self.message = message

    def __str__(self) -> str:
        """Returns the string representation of the exception."""
        main_msg = (
            f"Not a valid input for object {self.obj}. "
            f"The faulty input is for the parameter {self.param}."
        )
        post_msg = f"\n{self.message}" if self.message is not None else ""
        return main_msg + post_msg


class ConfigError(ShapeOptException):
    """This exception gets raised when parameters in the config file are wrong."""

    pre_message = "You have some error(s) in your config file.\n"

    def __init__(self, config_errors: list[str]) -> None:
        """Initializes self.

        Args:
            config_errors: The list of errors that occurred while trying to validate
                the config.

        """
        super().__init__()
        self.config_errors = config_errors

    def __str__(self) -> str:
        """Returns the string representation of the exception."""
        except_str = f"{self.pre_message}"
        for error in self.config_errors:
            except_str += error
        return except_str


class GeometryError(ShapeOptException):
    """Base class for errors caused by an invalid geometry."""

    def __init__(self, message: str) -> None:
        """Initializes self.

        Args:
            message: A message detailing what went wrong.

        """
        super().__init__()
        self.message = message

    def __str__(self) -> str:
        """Returns the string representation of the exception."""
        return self.message


class InvertedMeshError(GeometryError):
    """This gets raised when a deformation produces cells with non-positive volume."""

    def __init__(self, cells: list[int]) -> None:
        """Initializes self.

        Args:
            cells: The indices of the inverted cells.

        """
        super().__init__(
            f"The deformed mesh has {len(cells)} cell(s) with non-positive volume."
        )
        self.cells = cells


class DegenerateGeometryError(GeometryError):
    """This gets raised when a geometric quantity would require a division by zero.

    This is the case for boundary normals of zero length, boundaries of zero measure,
    or a mesh with vanishing volume.
    """

    pass
