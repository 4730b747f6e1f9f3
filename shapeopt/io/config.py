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

"""Management of configuration files."""

from __future__ import annotations

from configparser import ConfigParser
import json
import pathlib
from typing import Any

from shapeopt import _exceptions


def load_config(path: str) -> Config:
    """Loads a config object from a config file.

    Loads the config from a .ini file via the configparser package.

    Args:
        path: The path to the .ini file storing the configuration.

    Returns:
        The output config file, which includes the path to the .ini file.

    """
    return Config(path)


def _check_for_config_list(string: str) -> bool:
    """Checks, if string is a valid python list consisting of numbers.

    Args:
        string: The input string.

    Returns:
        ``True`` if the string is valid, ``False`` otherwise

    """
    result = False

    for char in string:
        if not (
            char.isdigit()
            or char.isalpha()
            or char.isspace()
            or char in ["[", "]", ".", ",", "-", "+", '"', "'", "_"]
        ):
            return result

    if len(string) == 0 or string[0] != "[":
        return result
    if string[-1] != "]":
        return result

    return True


class Config(ConfigParser):
    """Class for handling the config in shapeopt."""

    def __init__(self, config_file: str | None = None) -> None:
        """Initializes self.

        Args:
            config_file: Path to the config file.

        """
        super().__init__()
        self.config_errors: list[str] = []

        self.config_scheme: dict[str, dict[str, dict[str, Any]]] = {
            "Mesh": {
                "mesh_file": {
                    "type": "str",
                    "attributes": ["file"],
                    "file_extension": "msh",
                },
            },
            "Problem": {
                "name": {
                    "type": "str",
                    "possible_options": ["elasticity", "stokesenergy"],
                },
            },
            "OptimizationRoutine": {
                "technique": {
                    "type": "str",
                    "possible_options": [
                        "boundarydisplacement",
                        "designelement",
                        "ffd",
                        "ffd_ls",
                    ],
                },
                "step": {
                    "type": "float",
                    "attributes": ["positive"],
                },
                "max_iterations": {
                    "type": "int",
                    "attributes": ["non_negative"],
                },
                "tolerance": {
                    "type": "float",
                    "attributes": ["non_negative"],
                },
                "volume_constraint": {
                    "type": "bool",
                },
                "armijo_slope": {
                    "type": "float",
                    "attributes": ["non_negative", "less_than_one"],
                },
                "inversion_policy": {
                    "type": "str",
                    "possible_options": ["abort", "reject"],
                },
                "quadrature_points": {
                    "type": "int",
                    "attributes": ["positive"],
                },
            },
            "BoundingBox": {
                "south_west": {
                    "type": "list",
                    "length": 2,
                },
                "north_east": {
                    "type": "list",
                    "length": 2,
                    "larger_than": ("BoundingBox", "south_west"),
                },
            },
            "FFD": {
                "subdivisions_x": {
                    "type": "int",
                    "attributes": ["positive"],
                },
                "subdivisions_y": {
                    "type": "int",
                    "attributes": ["positive"],
                },
            },
            "FFD_LS": {
                "beta": {
                    "type": "float",
                    "attributes": ["non_negative"],
                },
                "alpha": {
                    "type": "float",
                    "attributes": ["non_negative"],
                },
            },
            "DesignElement": {
                "order": {
                    "type": "int",
                    "attributes": ["positive"],
                },
            },
            "Output": {
                "result_dir": {
                    "type": "str",
                },
                "save_results": {
                    "type": "bool",
                },
                "save_txt": {
                    "type": "bool",
                },
                "save_mesh": {
                    "type": "bool",
                },
                "verbose": {
                    "type": "bool",
                },
                "precision": {
                    "type": "int",
                    "attributes": ["positive"],
                },
                "time_suffix": {
                    "type": "bool",
                },
            },
        }

        self.default_config_str = """
[Problem]
name = Elasticity

[OptimizationRoutine]
technique = BoundaryDisplacement
step = 0.125
max_iterations = 80
tolerance = 1e-3
volume_constraint = True
armijo_slope = 1e-4
inversion_policy = abort
quadrature_points = 2

[BoundingBox]
south_west = [0.0, 0.0]
north_east = [5.0, 4.0]

[FFD]
subdivisions_x = 4
subdivisions_y = 4

[FFD_LS]
beta = 0.99

[DesignElement]
order = 3

[Output]
result_dir = ./results
save_results = True
save_txt = True
save_mesh = True
verbose = False
precision = 3
time_suffix = False
"""

        self.read_string(self.default_config_str)

        if config_file is not None:
            file = pathlib.Path(config_file)
            if file.is_file():
                self.read(config_file)
            else:
                raise _exceptions.InputError(
                    "shapeopt.Config",
                    "config_file",
                    f"Could not find the specified config file {config_file}. "
                    "Please supply a path to an existing configuration file.",
                )

    def getlist(self, section: str, option: str, **kwargs: Any) -> list:
        """Extracts a list from a config file.

        Args:
            section: The section where the list is placed.
            option: The option which contains the list.
            **kwargs: A list of keyword arguments that get passed to
                :py:meth:``self.get``

        Returns:
            The list which is specified in section ``section`` and key ``option``.

        """
        if (
            self.config_scheme[section][option]["type"] == "list"
        ) and _check_for_config_list(self.get(section, option)):
            try:
                py_list: list = json.loads(self.get(section, option, **kwargs))
            except json.JSONDecodeError as error:
                raise _exceptions.InputError(
                    "Config.getlist",
                    "option",
                    f"option {option} in section {section} is not a valid list.",
                ) from error
            return py_list
        else:
            raise _exceptions.InputError(
                "Config.getlist",
                "option",
                f"option {option} in section {section} cannot be used as list.",
            )

    def validate_config(self) -> None:
        """Validates the configuration file."""
        self.config_errors = []
        self._check_sections()
        self._check_keys()

        if len(self.config_errors) > 0:
            raise _exceptions.ConfigError(self.config_errors)

    def _check_sections(self) -> None:
        """Checks whether all sections are valid."""
        for section_name, _ in self.items():
            if section_name == self.default_section:
                continue
            if section_name not in self.config_scheme:
                self.config_errors.append(
                    f"The following section is not valid: {section_name}\n"
                )

    def _check_keys(self) -> None:
        """Checks the keys of the sections."""
        for section_name, section in self.items():
            for key in section.keys():
                if section_name in self.config_scheme:
                    if key not in self.config_scheme[section_name].keys():
                        self.config_errors.append(
                            f"Key {key} is not valid for section {section_name}.\n"
                        )
                    elif self._check_key_type(section_name, key):
                        self._check_possible_options(section_name, key)
                        self._check_attributes(section_name, key)
                        self._check_list_length(section_name, key)
                        self._check_larger_than_relation(section_name, key)

    def _check_key_type(self, section: str, key: str) -> bool:
        """Checks if the type of the key is correct.

        Args:
            section: The corresponding section
            key: The corresponding key

        Returns:
            ``True`` if the type is correct, ``False`` otherwise.

        """
        key_type = self.config_scheme[section][key]["type"]
        try:
            if key_type.casefold() == "str":
                self.get(section, key)
            elif key_type.casefold() == "bool":
                self.getboolean(section, key)
            elif key_type.casefold() == "int":
                self.getint(section, key)
            elif key_type.casefold() == "float":
                self.getfloat(section, key)
            elif key_type.casefold() == "list":
                if not _check_for_config_list(self.get(section, key)):
                    raise ValueError
                values = json.loads(self.get(section, key))
                if not all(isinstance(value, (int, float)) for value in values):
                    raise ValueError
        except ValueError:
            self.config_errors.append(
                f"Key {key} in section {section} has the wrong type. "
                f"Required type is {key_type}.\n"
            )
            return False

        return True

    def _check_possible_options(self, section: str, key: str) -> None:
        """Checks, whether the given option is possible.

        Args:
            section: The corresponding section
            key: The corresponding key

        """
        if "possible_options" in self.config_scheme[section][key].keys():
            if (
                self[section][key].casefold()
                not in self.config_scheme[section][key]["possible_options"]
            ):
                self.config_errors.append(
                    f"Key {key} in section {section} has a wrong value. "
                    f"Possible options are "
                    f"{self.config_scheme[section][key]['possible_options']}.\n"
                )

    def _check_list_length(self, section: str, key: str) -> None:
        """Checks, whether a list has the required number of entries.

        Args:
            section: The corresponding section
            key: The corresponding key

        """
        if "length" in self.config_scheme[section][key].keys():
            length = self.config_scheme[section][key]["length"]
            if len(self.getlist(section, key)) != length:
                self.config_errors.append(
                    f"Key {key} in section {section} has to be a list with "
                    f"{length} entries.\n"
                )

    def _check_larger_than_relation(self, section: str, key: str) -> None:
        """Checks, whether a given option is larger than another one.

        For lists, the comparison is done componentwise.

        Args:
            section: The corresponding section
            key: The corresponding key

        """
        if "larger_than" in self.config_scheme[section][key].keys():
            partner = self.config_scheme[section][key]["larger_than"]
            if self.config_scheme[section][key]["type"] == "list":
                try:
                    higher_values = self.getlist(section, key)
                    lower_values = self.getlist(partner[0], partner[1])
                except _exceptions.InputError:
                    return
                if len(higher_values) != len(lower_values):
                    return
                is_larger = all(
                    lower < higher for lower, higher in zip(lower_values, higher_values)
                )
            else:
                is_larger = self.getfloat(partner[0], partner[1]) < self.getfloat(
                    section, key
                )

            if not is_larger:
                self.config_errors.append(
                    f"The value of key {key} in section {section} is smaller than "
                    f"the value of key {partner[1]} in section {partner[0]}, "
                    f"but it should be larger.\n"
                )

    def _check_attributes(self, section: str, key: str) -> None:
        """Checks the attributes of a key.

        Args:
            section: The corresponding section
            key: The corresponding key

        """
        if "attributes" in self.config_scheme[section][key].keys():
            key_attributes = self.config_scheme[section][key]["attributes"]
            self._check_file_attribute(section, key, key_attributes)
            self._check_non_negative_attribute(section, key, key_attributes)
            self._check_positive_attribute(section, key, key_attributes)
            self._check_less_than_one_attribute(section, key, key_attributes)

    def _check_file_attribute(
        self, section: str, key: str, key_attributes: list[str]
    ) -> None:
        """Checks, whether a file specified in key exists.

        Args:
            section: The corresponding section
            key: The corresponding key
            key_attributes: The list of attributes for key.

        """
        if "file" in key_attributes:
            file = pathlib.Path(self.get(section, key))
            if not file.is_file():
                self.config_errors.append(
                    f"Key {key} in section {section} should point to a file, "
                    f"but the file does not exist.\n"
                )

            extension = self.config_scheme[section][key]["file_extension"]
            if not self.get(section, key).split(".")[-1] == extension:
                self.config_errors.append(
                    f"Key {key} in section {section} has the wrong file extension, "
                    f"it should end in .{extension}.\n"
                )

    def _check_non_negative_attribute(
        self, section: str, key: str, key_attributes: list[str]
    ) -> None:
        """Checks, whether key is nonnegative.

        Args:
            section: The corresponding section
            key: The corresponding key
            key_attributes: The list of attributes for key.

        """
        if "non_negative" in key_attributes:
            if self.getfloat(section, key) < 0:
                self.config_errors.append(
                    f"Key {key} in section {section} is negative, but it must not be.\n"
                )

    def _check_positive_attribute(
        self, section: str, key: str, key_attributes: list[str]
    ) -> None:
        """Checks, whether key is positive.

        Args:
            section: The corresponding section
            key: The corresponding key
            key_attributes: The list of attributes for key.

        """
        if "positive" in key_attributes:
            if self.getfloat(section, key) <= 0:
                self.config_errors.append(
                    f"Key {key} in section {section} is non-positive, "
                    f"but it most be positive.\n"
                )

    def _check_less_than_one_attribute(
        self, section: str, key: str, key_attributes: list[str]
    ) -> None:
        """Checks, whether key is less than one.

        Args:
            section: The corresponding section
            key: The corresponding key
            key_attributes: The list of attributes for key.

        """
        if "less_than_one" in key_attributes:
            if self.getfloat(section, key) >= 1:
                self.config_errors.append(
                    f"Key {key} in section {section} is larger than one, "
                    f"but it must be smaller.\n"
                )
