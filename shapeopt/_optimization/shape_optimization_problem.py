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

"""Shape optimization problem."""

from __future__ import annotations

from typing import TYPE_CHECKING

from shapeopt import _exceptions
from shapeopt import io
from shapeopt import log
from shapeopt import problem as _problem
from shapeopt._database import database
from shapeopt._optimization import line_search as ls
from shapeopt._optimization import optimization_algorithm
from shapeopt._optimization import parametrizations
from shapeopt._optimization import volume_constraint as vc
from shapeopt.geometry import bounding_box as bbox
from shapeopt.geometry import deformation_handler as dh

if TYPE_CHECKING:
    from shapeopt.geometry import mesh as _mesh


class ShapeOptimizationProblem:
    """A shape optimization problem.

    The problem supplies the state and adjoint solutions and the shape sensitivity,
    while the config selects the parametrization of the shape (BoundaryDisplacement,
    DesignElement, FFD or FFD_LS) and the parameters of the optimization.
    """

    def __init__(self, problem: _problem.Problem, config: io.Config | None = None):
        """Initializes self.

        Args:
            problem: The problem, which supplies the state, the adjoint, the cost
                functional and the sensitivity.
            config: The config file for the problem, generated via
                :py:func:`shapeopt.load_config`. Alternatively, this can also be
                ``None``, in which case the default configuration is used. The
                default is ``None``.

        """
        if not isinstance(problem, _problem.Problem):
            raise _exceptions.InputError(
                "shapeopt.ShapeOptimizationProblem",
                "problem",
                "The problem has to be derived from shapeopt.Problem.",
            )

        self.problem = problem
        self.config = config if config is not None else io.Config()
        self.solver: optimization_algorithm.OptimizationAlgorithm | None = None

    @property
    def mesh(self) -> _mesh.Mesh:
        """The (deformed) mesh of the problem."""
        return self.problem.mesh

    def _setup_bounding_box(self) -> bbox.BoundingBox:
        return bbox.BoundingBox(
            self.config.getlist("BoundingBox", "south_west"),
            self.config.getlist("BoundingBox", "north_east"),
        )

    def _relaxation_coefficient(self) -> float:
        """Returns the relaxation coefficient of FFD_LS, alpha is an alias for beta."""
        if self.config.has_option("FFD_LS", "alpha"):
            return self.config.getfloat("FFD_LS", "alpha")
        return self.config.getfloat("FFD_LS", "beta")

    def _setup_parametrization(
        self, deformation_handler: dh.DeformationHandler
    ) -> parametrizations.Parametrization:
        """Creates the parametrization selected in the config.

        Args:
            deformation_handler: The deformation handler for the mesh.

        Returns:
            The parametrization of the shape.

        """
        technique = self.config.get("OptimizationRoutine", "technique").casefold()
        quadrature_points = self.config.getint(
            "OptimizationRoutine", "quadrature_points"
        )
        subdivisions = (
            self.config.getint("FFD", "subdivisions_x"),
            self.config.getint("FFD", "subdivisions_y"),
        )

        if technique == "boundarydisplacement":
            return parametrizations.BoundaryDisplacement(
                self.problem, deformation_handler
            )
        elif technique == "designelement":
            return parametrizations.DesignElement(
                self.problem,
                deformation_handler,
                self._setup_bounding_box(),
                order=self.config.getint("DesignElement", "order"),
                quadrature_points=quadrature_points,
            )
        elif technique == "ffd":
            return parametrizations.FFD(
                self.problem,
                deformation_handler,
                self._setup_bounding_box(),
                subdivisions=subdivisions,
                quadrature_points=quadrature_points,
            )
        elif technique == "ffd_ls":
            return parametrizations.FFDLeastSquares(
                self.problem,
                deformation_handler,
                self._setup_bounding_box(),
                subdivisions=subdivisions,
                beta=self._relaxation_coefficient(),
                quadrature_points=quadrature_points,
            )
        else:
            raise _exceptions.InputError(
                "shapeopt.ShapeOptimizationProblem",
                "technique",
                f"The technique {technique} is not available.",
            )

    def solve(
        self,
        technique: str | None = None,
        max_iter: int | None = None,
        tolerance: float | None = None,
    ) -> None:
        """Solves the shape optimization problem.

        Args:
            technique: Selects the parametrization of the shape. Valid choices are
                ``'BoundaryDisplacement'``, ``'DesignElement'``, ``'FFD'`` and
                ``'FFD_LS'``. This overwrites the value specified in the config file.
                If this is ``None``, then the value in the config file is used.
                Default is ``None``.
            max_iter: The maximum number of iterations. Overwrites the value specified
                in the config file. If this is ``None``, the value from the config file
                is taken. Default is ``None``.
            tolerance: The relative tolerance for the change of the cost functional.
                Overwrites the value specified in the config file. If this is
                ``None``, the value from the config file is taken. Default is
                ``None``.

        """
        if technique is not None:
            self.config.set("OptimizationRoutine", "technique", technique)
        if max_iter is not None:
            self.config.set("OptimizationRoutine", "max_iterations", str(max_iter))
        if tolerance is not None:
            self.config.set("OptimizationRoutine", "tolerance", str(tolerance))

        self.config.validate_config()

        log.begin("Solving the shape optimization problem.", level=log.INFO)
        try:
            db = database.Database(self.config, self.problem)

            deformation_handler = dh.DeformationHandler(
                self.problem.mesh, self.problem.to_be_moved
            )
            parametrization = self._setup_parametrization(deformation_handler)

            volume_constraint = None
            if db.parameter_db.volume_constraint:
                volume_constraint = vc.VolumeConstraint(
                    self.problem.mesh, db.geometry_db.initial_volume
                )

            self.solver = optimization_algorithm.OptimizationAlgorithm(
                db,
                parametrization,
                deformation_handler,
                ls.ArmijoLineSearch(db),
                io.OutputManager(db),
                volume_constraint=volume_constraint,
            )
            self.solver.run()
        finally:
            log.end()
