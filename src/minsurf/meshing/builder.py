"""Mesh builder: surface hooks -> curved, refined, snapped SurfaceMesh.

Build order:
1. validate options, build the reference topology, finalize it
2. order-p nodal space on the coarse mesh, parametrize every nodal point
3. boundary attribute post-processing
4. uniform refinement (and one random pass when amr is set), carrying the
   curved geometry by interpolation
5. snap, then structural validation
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from ..fem.space import H1Space
from ..special import check_finite
from .validation import validate_mesh

log = logging.getLogger(__name__)


@dataclass
class NormalizationAccumulator:
    """Running per-axis maxima of parametrized points (starting at 0)."""

    maxima: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def update(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points).reshape(-1, 3)
        if len(points):
            self.maxima = np.maximum(self.maxima, points.max(axis=0))
        return points


def parametrize_nodes(surface, mesh, order: int, accumulator: NormalizationAccumulator):
    """Set ``mesh.nodes`` to the surface parametrization on an order-p space."""
    space = H1Space(mesh, order)
    ne, r = mesh.n_cells, mesh.reference_dim

    if surface.linear_geometry:
        corners = accumulator.update(surface.parametrize(mesh.cell_coords.reshape(-1, r)))
        values = space.interpolate_corners(corners.reshape(ne, 4, 3))
    else:
        ref = space.reference_points().reshape(-1, r)
        values = accumulator.update(surface.parametrize(ref)).reshape(ne, space.nloc, 3)

    nodes = check_finite(space.gather(values), "parametrized coordinate")
    mesh.set_nodes(space.constrain(nodes), space)
    return space


def build_mesh(surface, options):
    """Build the embedded mesh of ``surface``.

    Parameters
    ----------
    surface : Surface
        Catalogue entry supplying the hooks.
    options : Parameters
        Resolution, order, refinement and seed.

    Returns
    -------
    mesh : SurfaceMesh
        Validated mesh with ``nodes`` on an order-``options.order`` space.
    accumulator : NormalizationAccumulator
        Maxima collected while parametrizing.
    """
    surface.validate(options)
    mesh = surface.build_topology(options)
    mesh.finalize()

    accumulator = NormalizationAccumulator()
    parametrize_nodes(surface, mesh, options.order, accumulator)
    surface.postprocess_boundary(mesh)

    for _ in range(options.refine):
        mesh.uniform_refinement()
    if options.amr:
        n_refined = mesh.random_refinement(options.amr_fraction, options.seed)
        log.info(f"Random refinement split {n_refined} cells ({len(mesh.hanging)} hanging edges)")

    surface.snap(mesh, accumulator)
    check_finite(mesh.nodes, "snapped coordinate")
    validate_mesh(mesh)

    log.info(
        f"Built {surface.name}: {mesh.n_cells} cells, {mesh.n_vertices} vertices, "
        f"{mesh.n_boundary} boundary edges, {mesh.nodal_space.ndofs} nodes"
    )
    return mesh, accumulator
