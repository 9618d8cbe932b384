"""Structural checks for built surface meshes."""

import logging

import numpy as np

from ..errors import TopologyError

log = logging.getLogger(__name__)


def validate_mesh(mesh) -> None:
    """Raise TopologyError if the mesh breaks any structural invariant.

    Checks
    ------
    - every cell, boundary and hanging reference is a valid vertex index
    - no cell repeats a vertex
    - every vertex is used by at least one cell
    - no edge is shared by more than two cells
    - no two cells share more than one edge
    - boundary edges are exactly the topological boundary
    - node coordinates (when present) are finite
    """
    nv = mesh.n_vertices
    if mesh.n_cells == 0:
        raise TopologyError("Mesh has no cells")

    for name, refs in (("cell", mesh.cells), ("boundary", mesh.boundary), ("hanging", mesh.hanging)):
        if refs is None or refs.size == 0:
            continue
        if refs.min() < 0 or refs.max() >= nv:
            raise TopologyError(f"Dangling {name} vertex reference (valid range 0..{nv - 1})")

    sorted_cells = np.sort(mesh.cells, axis=1)
    if np.any(sorted_cells[:, 1:] == sorted_cells[:, :-1]):
        raise TopologyError("Degenerate cell with a repeated vertex")

    used = np.zeros(nv, dtype=bool)
    used[mesh.cells.ravel()] = True
    if not used.all():
        raise TopologyError(f"{np.count_nonzero(~used)} vertices are not used by any cell")

    _, cell_edges, counts = mesh.edges()
    if np.any(counts > 2):
        raise TopologyError("Non-manifold edge shared by more than two cells")

    # Owners of each interior edge, as (cell, cell) pairs
    flat = cell_edges.ravel()
    owners = np.repeat(np.arange(mesh.n_cells), 4)
    shared = counts[flat] == 2
    order = np.lexsort((owners[shared], flat[shared]))
    pairs = owners[shared][order].reshape(-1, 2)
    if len(np.unique(pairs, axis=0)) < len(pairs):
        raise TopologyError("Two cells share more than one edge")

    expected = {tuple(sorted(map(int, e))) for e in mesh.topological_boundary()}
    actual = set()
    if mesh.boundary is not None:
        actual = {tuple(sorted(map(int, e))) for e in mesh.boundary}
    if expected != actual:
        raise TopologyError(
            f"Boundary mismatch: {len(actual - expected)} spurious, "
            f"{len(expected - actual)} missing boundary edges"
        )

    if mesh.nodes is not None and not np.all(np.isfinite(mesh.nodes)):
        raise TopologyError("Non-finite node coordinates")

    log.debug(f"Validated {mesh!r}")
