# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: light
#       format_version: '1.5'
#       jupytext_version: 1.14.4
# ---

# (demo_ffd_disc)=
# # Free-Form Deformation of a Square into a Disc
#
# ## Problem Formulation
#
# In this demo, we show how a problem is supplied to shapeopt and how its shape is
# optimized with a free-form deformation. We consider the domain functional
#
# $$
# \min_\Omega J(\Omega) = \int_\Omega f \text{ d}x, \qquad
# f(x) = \lvert\lvert x - c \rvert\rvert_2^2 - r^2,
# $$
#
# which does not need a PDE solve, and whose minimizer is the disc with center $c$
# and radius $r$. Its shape derivative in direction $V$ is given by the Hadamard
# formula
#
# $$
# dJ(\Omega)[V] = \int_{\Gamma} f \, V \cdot n \text{ d}s,
# $$
#
# so that the pointwise sensitivity on the boundary is $f$ itself.
#
# ## Implementation
#
# The complete python code can be found in the file `demo_ffd_disc.py` and the
# corresponding config can be found in `config.ini`.
#
# ### The problem
#
# A problem is a subclass of {py:class}`Problem <shapeopt.Problem>`, which
# implements the solution of the state system, the cost functional and the
# sensitivity. Here, the "state" consists of the cell volumes and centroids, with
# which the cost functional is integrated by the centroid rule.

# +
import numpy as np

import shapeopt

center = np.array([0.5, 0.5])
radius = 0.4


class DiscProblem(shapeopt.Problem):
    def f(self, x):
        return np.sum((np.asarray(x) - center) ** 2, axis=-1) - radius**2

    def solve_state_and_adjoint(self, iteration):
        vertices = self.mesh.coordinates[self.mesh.cells[:, :3]]
        return {
            "volumes": self.mesh.cell_volumes(),
            "centroids": np.mean(vertices, axis=1),
        }

    def evaluate_cost_functional(self, state):
        return float(np.sum(state["volumes"] * self.f(state["centroids"])))

    def compute_gradient(self, state, point):
        return float(self.f(point))

    def squared_gradient_norm(self, state):
        quadrature = shapeopt.geometry.boundary_quadrature(self.mesh, 3)
        return float(np.sum(quadrature.weights * self.f(quadrature.points) ** 2))

    def lagrange_multiplier(self, state):
        return shapeopt.boundary_average(self.mesh, lambda x: -self.f(x))


# -

# Note that the cost functional is negative for the disc, so that the relative
# change of the cost functional, which is used as stopping criterion, is taken
# with respect to its absolute value.
#
# ### The optimization
#
# The initial geometry is the unit square, for which we use a mesh with quadratic
# cells, generated with {py:func}`regular_mesh <shapeopt.regular_mesh>`. The config
# selects the FFD technique on a bounding box which encloses the square, together
# with a $7 \times 7$ lattice of control points.

config = shapeopt.load_config("./config.ini")
mesh = shapeopt.regular_mesh(16)
problem = DiscProblem(mesh, name="Disc")

# Finally, the problem is solved with

sop = shapeopt.ShapeOptimizationProblem(problem, config)
sop.solve()

# The history of the cost functional is saved in `results/Disc_Output.txt`, and the
# deformed meshes can be viewed in ParaView by opening the time series
# `results/Disc_TimeSeries_<n>.pvd`, where `<n>` is the final iteration.
