"""
Surface base class and shared topology/snap helpers.

A surface describes how to build a reference topology and how to map it
into R^3. The mesh builder drives the hooks in this order:

    validate -> build_topology -> parametrize -> postprocess_boundary
             -> (refine) -> snap -> essential_dofs

Surfaces hold no per-build state. Quantities accumulated while
parametrizing (the Costa normalization maxima) live in a
NormalizationAccumulator that the builder passes to ``snap``.
"""

import logging

import numpy as np

from ..errors import InvalidConfigurationError
from ..meshing.builder import NormalizationAccumulator
from ..meshing.mesh_data import SurfaceMesh
from ..special import EPS

log = logging.getLogger(__name__)


class Surface:
    """Base surface: unit-square grid topology, zero-snap, all-boundary Dirichlet.

    Subclasses override ``parametrize`` and whichever hooks differ.
    """

    code = None
    name = "surface"
    # Map only the cell corners and interpolate bilinearly (order-1 geometry)
    linear_geometry = False
    # Reference topology is the nx x ny unit-square grid
    grid_topology = True

    def validate(self, options):
        if options.order < 1:
            raise InvalidConfigurationError(f"order must be >= 1, got {options.order}")
        if options.refine < 0:
            raise InvalidConfigurationError(f"refine must be >= 0, got {options.refine}")
        if self.grid_topology and (options.nx < 1 or options.ny < 1):
            raise InvalidConfigurationError(f"nx and ny must be >= 1, got {options.nx}x{options.ny}")

    def build_topology(self, options) -> SurfaceMesh:
        return SurfaceMesh.cartesian(options.nx, options.ny)

    def parametrize(self, X: np.ndarray) -> np.ndarray:
        """Map reference coordinates (n, r) to embedded points (n, 3)."""
        raise NotImplementedError

    def postprocess_boundary(self, mesh: SurfaceMesh):
        pass

    def snap(self, mesh: SurfaceMesh, accumulator: NormalizationAccumulator):
        snap_small_to_zero(mesh)

    def essential_dofs(self, mesh: SurfaceMesh, space) -> np.ndarray:
        """Scalar true dofs fixed during relaxation (every boundary attribute)."""
        return true_dofs(space, space.boundary_dofs())

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code})"


class PeriodicSurface(Surface):
    """Grid surface closed into a band by welding u = 1 onto u = 0.

    Needs nx >= 3: with two columns both cells would share the same vertex
    pair on the bottom and top edges.
    """

    def validate(self, options):
        super().validate(options)
        if options.nx < 3:
            raise InvalidConfigurationError(
                f"{self.name} needs nx >= 3 to weld its seam, got nx={options.nx}"
            )

    def build_topology(self, options) -> SurfaceMesh:
        mesh = super().build_topology(options)
        return weld_periodic_seam(mesh, options.nx, options.ny)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def true_dofs(space, dofs: np.ndarray) -> np.ndarray:
    tdofs = space.dof_to_true[np.asarray(dofs, dtype=np.int64)]
    return np.unique(tdofs[tdofs >= 0])


def weld_periodic_seam(mesh: SurfaceMesh, nx: int, ny: int) -> SurfaceMesh:
    """Identify the u = 1 column of an nx x ny grid with the u = 0 column."""
    v2v = np.arange(mesh.n_vertices)
    j = np.arange(ny + 1)
    v2v[nx + j * (nx + 1)] = j * (nx + 1)
    mesh.identify_vertices(v2v)
    mesh.remove_unused_vertices()
    mesh.remove_internal_boundaries()
    log.debug(f"Welded periodic seam: {mesh!r}")
    return mesh


def snap_small_to_zero(mesh: SurfaceMesh):
    nodes = mesh.nodes.copy()
    nodes[np.abs(nodes) < EPS] = 0.0
    mesh.set_nodes(nodes)


def snap_to_unit_sphere(mesh: SurfaceMesh):
    nodes = mesh.nodes
    norms = np.linalg.norm(nodes, axis=1, keepdims=True)
    mesh.set_nodes(nodes / np.where(norms > 0.0, norms, 1.0))


def grid_uv(X: np.ndarray):
    X = np.asarray(X, dtype=float)
    return X[:, 0], X[:, 1]
