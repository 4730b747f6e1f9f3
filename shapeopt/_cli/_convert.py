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

"""Mesh conversion from Gmsh .msh to .vtu."""

from __future__ import annotations

import argparse
import pathlib

from shapeopt import log
from shapeopt.io import mesh as iomesh


def _generate_parser() -> argparse.ArgumentParser:
    """Returns a parser for command line arguments."""
    parser = argparse.ArgumentParser(
        prog="shapeopt-convert",
        description="Convert a triangular Gmsh mesh to VTK's .vtu format.",
    )
    parser.add_argument(
        "infile", type=str, help="GMSH file to be converted, has to end in .msh"
    )
    parser.add_argument(
        "-o",
        "--outfile",
        type=str,
        help="VTU output file, has to end in .vtu. "
        "If this is not given, then the output will be the same as the input, "
        "but with .vtu suffix.",
        default=None,
        metavar="outfile",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Whether or not to show information on stdout.",
    )

    return parser


def convert(argv: list[str] | None = None) -> None:
    """Converts a Gmsh .msh file to a .vtu mesh file.

    Args:
        argv: Command line options. The first parameter is the input .msh file,
            the second is the output .vtu file

    """
    parser = _generate_parser()
    args = parser.parse_args(argv)

    inputfile = args.infile
    outputfile = args.outfile
    if outputfile is None:
        outputfile = str(pathlib.Path(inputfile).with_suffix(".vtu"))

    if args.quiet:
        log.set_log_level(log.WARNING)

    mesh = iomesh.import_mesh(inputfile)
    iomesh.write_out_mesh(mesh, outputfile)
    log.info(f"Wrote the converted mesh to {outputfile}.")


if __name__ == "__main__":
    convert()
