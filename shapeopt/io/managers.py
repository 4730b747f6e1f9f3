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

"""Output managers for shapeopt."""

from __future__ import annotations

import abc
import json
import pathlib
from typing import TYPE_CHECKING

import numpy as np

from shapeopt import log
from shapeopt.io import mesh as iomesh

if TYPE_CHECKING:
    from shapeopt._database import database


output_mapping = {
    "iteration": "iter",
    "objective_value": "cost function",
    "relative_change": "rel. change",
    "gradient_norm": "sqr. grad. norm",
    "stepsize": "step size",
    "lagrange_multiplier": "lagrange mult.",
    "volume": "volume",
}


def generate_summary_str(db: database.Database, precision: int) -> str:
    """Generates a string for the summary of the optimization.

    Args:
        db: The database of the problem.
        precision: The precision used for displaying the numbers.

    Returns:
        The summary string.

    """
    optimization_state = db.parameter_db.optimization_state

    if optimization_state.get("converged", False):
        headline = "Optimization was successful.\n"
    else:
        headline = "Maximum number of iterations reached.\n"

    summary_str_list = [
        "\n",
        headline,
        "Statistics:\n",
        f"    total iterations: {optimization_state['iteration']:4d}\n",
    ]
    for key, value in output_mapping.items():
        if key in optimization_state.keys() and key != "iteration":
            parameter_name = value
            parameter_value = optimization_state[key]
            summary_str_list.append(
                f"    final {parameter_name}: {parameter_value:.{precision}e}\n"
            )

    if "no_state_solves" in optimization_state.keys():
        summary_str_list.append(
            "    total number of state and adjoint solves: "
            f"{optimization_state['no_state_solves']:4d}\n"
        )
    if "no_rejections" in optimization_state.keys():
        summary_str_list.append(
            "    total number of rejected steps: "
            f"{optimization_state['no_rejections']:4d}\n"
        )

    return "".join(summary_str_list)


def generate_output_str(db: database.Database, precision: int) -> str:
    """Generates the string which can be written to console.

    Args:
        db: The database of the problem.
        precision: The precision used for displaying the numbers.

    Returns:
        The output string, which is used later.

    """
    optimization_state = db.parameter_db.optimization_state

    iteration = optimization_state["iteration"]

    info_str_list = []
    output_str_list = []
    if iteration % 10 == 1:
        info_str_list.append("\n")

    for key, value in output_mapping.items():
        if key in optimization_state.keys():
            if key == "iteration":
                if iteration % 10 == 1:
                    info_str_list.append("iter,  ")
                output_str_list.append(f"{iteration:4d},  ")
            else:
                parameter_value = optimization_state[key]
                parameter_name = value

                temp_name_str = f"{parameter_name},  "
                temp_value_str = f"{parameter_value:.{precision}e},  "
                string_length = max(len(temp_name_str), len(temp_value_str))

                if iteration % 10 == 1:
                    info_str_list.append(f"{parameter_name},  ".rjust(string_length))

                output_str_list.append(
                    f"{parameter_value:>{string_length - 3}.{precision}e},  "
                )

    if not optimization_state.get("accepted", True):
        output_str_list.append("rejected")

    if iteration % 10 == 1:
        info_str_list.append("\n\n")

    info_str = "".join(info_str_list)
    output_str = "".join(output_str_list)

    return info_str + output_str


class IOManager(abc.ABC):
    """Abstract base class for input / output management."""

    def __init__(self, db: database.Database, result_dir: str) -> None:
        """Initializes self.

        Args:
            db: The database of the problem.
            result_dir: Path to the directory, where the results are saved.

        """
        self.db = db
        self.result_dir = result_dir

        self.config = self.db.config
        self.name = self.db.parameter_db.problem_name

    def initialize(self) -> None:
        """The output operation, which is performed before the first iteration."""
        pass

    def output_deformation(self, perturbation: np.ndarray) -> None:
        """The output operation, which is performed right after each deformation.

        Args:
            perturbation: The nodal displacement caused by the deformation.

        """
        pass

    @abc.abstractmethod
    def output(self) -> None:
        """The output operation, which is performed after every iteration."""
        pass

    @abc.abstractmethod
    def output_summary(self) -> None:
        """The output operation, which is performed after convergence."""
        pass

    @abc.abstractmethod
    def post_process(self) -> None:
        """The output operation which is performed as part of the postprocessing."""
        pass


class ResultManager(IOManager):
    """Class for managing the output of the optimization history."""

    def __init__(self, db: database.Database, result_dir: str) -> None:
        """Initializes self.

        Args:
            db: The database of the problem.
            result_dir: Path to the directory, where the results are saved.

        """
        super().__init__(db, result_dir)

        self.save_results = self.config.getboolean("Output", "save_results")
        self.output_dict: dict[str, list] = {}

    def output(self) -> None:
        """Saves the optimization history to a dictionary."""
        for key in self.db.parameter_db.optimization_state.keys():
            if key not in self.output_dict:
                self.output_dict[key] = []

            self.output_dict[key].append(self.db.parameter_db.optimization_state[key])

    def output_summary(self) -> None:
        """The output operation, which is performed after convergence."""
        pass

    def post_process(self) -> None:
        """Saves the history of the optimization to a .json file."""
        if self.save_results:
            with open(f"{self.result_dir}/history.json", "w", encoding="utf-8") as file:
                json.dump(self.output_dict, file, indent=4)


class ConsoleManager(IOManager):
    """Management of the console output."""

    def __init__(
        self, db: database.Database, result_dir: str, verbose: bool = False
    ) -> None:
        """Initializes self.

        Args:
            db: The database of the problem.
            result_dir: The directory, where the results are written to.
            verbose: Boolean which indicates whether the logging setup (False) or
                print (True) should be used. Default is `False`.

        """
        super().__init__(db, result_dir)
        self.verbose = verbose
        self.precision = self.config.getint("Output", "precision")

    def output(self) -> None:
        """Prints the output string to the console."""
        message = generate_output_str(self.db, self.precision)
        if self.verbose:
            print(message, flush=True)
        else:
            log.info(message)

    def output_summary(self) -> None:
        """Prints the summary in the console."""
        message = generate_summary_str(self.db, self.precision)
        if self.verbose:
            print(message, flush=True)
        else:
            log.info(message)

    def post_process(self) -> None:
        """The output operation which is performed as part of the postprocessing."""
        pass


class FileManager(IOManager):
    """Class for managing the human-readable history of the cost functional.

    For each accepted iteration ``i``, the line
    ``i, J, min(1, |J - J_old| / J_old);``
    is appended to ``<Name>_Output.txt``, with the absolute value of ``J_old`` in
    the denominator.
    """

    def __init__(self, db: database.Database, result_dir: str) -> None:
        """Initializes self.

        Args:
            db: The database of the problem.
            result_dir: The directory, where the results are written to.

        """
        super().__init__(db, result_dir)
        self.path = f"{self.result_dir}/{self.name}_Output.txt"

    def initialize(self) -> None:
        """Creates an empty output file."""
        with open(self.path, "w", encoding="utf-8"):
            pass

    def output(self) -> None:
        """Appends the line of an accepted iteration to the file."""
        optimization_state = self.db.parameter_db.optimization_state
        if not optimization_state["accepted"]:
            return

        with open(self.path, "a", encoding="utf-8") as file:
            file.write(
                f"{optimization_state['iteration']}, "
                f"{optimization_state['objective_value']:g}, "
                f"{optimization_state['relative_change']:g};\n"
            )

    def output_summary(self) -> None:
        """The output operation, which is performed after convergence."""
        pass

    def post_process(self) -> None:
        """The output operation which is performed as part of the postprocessing."""
        pass


class MeshManager(IOManager):
    """Manages the output of meshes.

    The reference mesh is saved once, afterwards the deformed mesh and the
    perturbation field are saved after every deformation, as .vtu files.
    """

    def initialize(self) -> None:
        """Saves the reference mesh."""
        iomesh.write_out_mesh(
            self.db.geometry_db.mesh,
            f"{self.result_dir}/{self.name}_ReferenceMesh_0.vtu",
        )

    def output_deformation(self, perturbation: np.ndarray) -> None:
        """Saves the deformed mesh and the perturbation field.

        Args:
            perturbation: The nodal displacement caused by the deformation.

        """
        iteration = int(self.db.parameter_db.optimization_state["iteration"])
        mesh = self.db.geometry_db.mesh

        iomesh.write_out_mesh(
            mesh, f"{self.result_dir}/{self.name}_Deformed{iteration}_0.vtu"
        )

        # the perturbation lives on the mesh before the deformation
        undeformed_mesh = mesh.copy()
        undeformed_mesh.coordinates -= perturbation
        iomesh.write_out_mesh(
            undeformed_mesh,
            f"{self.result_dir}/{self.name}_Perturbation{iteration}_0.vtu",
            point_data={"perturbation": perturbation},
        )

    def output(self) -> None:
        """The output operation, which is performed after every iteration."""
        pass

    def output_summary(self) -> None:
        """The output operation, which is performed after convergence."""
        pass

    def post_process(self) -> None:
        """The output operation which is performed as part of the postprocessing."""
        pass


class TimeSeriesManager(IOManager):
    """Writes a ParaView data file collecting the saved meshes as a time series."""

    def output(self) -> None:
        """The output operation, which is performed after every iteration."""
        pass

    def output_summary(self) -> None:
        """The output operation, which is performed after convergence."""
        pass

    def post_process(self) -> None:
        """Saves the time series of the reference and the deformed meshes."""
        final_iteration = int(self.db.parameter_db.optimization_state["iteration"])

        lines = [
            '<?xml version="1.0"?>',
            '<VTKFile type="Collection" version="0.1" byte_order="LittleEndian" '
            'compressor="vtkZLibDataCompressor">',
            "    <Collection>",
            f'        <DataSet timestep="0" file="{self.name}_ReferenceMesh_0.vtu"/>',
        ]
        for k in range(1, final_iteration + 1):
            lines.append(
                f'        <DataSet timestep="{k}" file="{self.name}_Deformed{k}_0.vtu"/>'
            )
        lines.append("    </Collection>")
        lines.append("</VTKFile>")

        path = pathlib.Path(self.result_dir).joinpath(
            f"{self.name}_TimeSeries_{final_iteration}.pvd"
        )
        with open(path, "w", encoding="utf-8") as file:
            file.write("\n".join(lines) + "\n")
