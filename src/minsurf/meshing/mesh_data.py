"""
SurfaceMesh: topology and geometry storage for quadrilateral surface meshes.

The mesh keeps two kinds of coordinates:
- Reference coordinates: ``vertices`` (nv, r) and ``cell_coords`` (ne, 4, r).
  The per-cell corner copy is authoritative. After a periodic seam is welded a
  single vertex is seen with different parameter values by the cells on either
  side of the seam (u = 0 and u = 1 for a cylinder).
- Embedded coordinates: ``nodes`` (ndofs, 3), the nodal field of the order-p
  H1 space that describes the curved geometry (set by the mesh builder).

Indexing Conventions:
- Cells list 4 vertex indices in counter-clockwise reference winding:
  (0,0) -> (1,0) -> (1,1) -> (0,1).
- Local edge k joins local corners LOCAL_EDGES[k].
- Boundary edges are (nb, 2) vertex pairs with an integer attribute each.
- Hanging edges are rows (lo, hi, mid): a coarse edge lo-hi whose neighbour
  across the edge was split at vertex ``mid`` by local refinement.

Structured Grid Boundary Attributes:
- 1 bottom (v = 0), 2 right (u = 1), 3 top (v = 1), 4 left (u = 0)
"""

import copy

import numpy as np

from ..errors import InvalidConfigurationError, TopologyError

LOCAL_EDGES = np.array([[0, 1], [1, 2], [2, 3], [3, 0]])


class SurfaceMesh:
    def __init__(
        self,
        vertices,
        cells,
        boundary=None,
        boundary_attributes=None,
        cell_attributes=None,
        cell_coords=None,
    ):
        # --- Reference geometry ---
        self.vertices = np.array(vertices, dtype=float, ndmin=2)
        self.cells = np.array(cells, dtype=np.int64).reshape(-1, 4)
        if cell_coords is None:
            cell_coords = self.vertices[self.cells]
        self.cell_coords = np.array(cell_coords, dtype=float)

        # --- Attributes ---
        if cell_attributes is None:
            cell_attributes = np.ones(len(self.cells), dtype=np.int64)
        self.cell_attributes = np.array(cell_attributes, dtype=np.int64)

        # --- Boundary (None until given or generated) ---
        self.boundary = None
        self.boundary_attributes = None
        if boundary is not None:
            self.boundary = np.array(boundary, dtype=np.int64).reshape(-1, 2)
            if boundary_attributes is None:
                boundary_attributes = np.ones(len(self.boundary), dtype=np.int64)
            self.boundary_attributes = np.array(boundary_attributes, dtype=np.int64)

        # --- Non-conforming interfaces ---
        self.hanging = np.empty((0, 3), dtype=np.int64)

        # --- Curved geometry (set by the builder) ---
        self.nodes = None
        self.nodal_space = None
        self.geometric_factor_cache = {}
        self._pending_values = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def cartesian(cls, nx: int, ny: int):
        """Structured nx x ny quad grid on the unit square."""
        if nx < 1 or ny < 1:
            raise InvalidConfigurationError(f"Grid needs at least one cell per axis, got {nx}x{ny}")
        i, j = np.meshgrid(np.arange(nx + 1), np.arange(ny + 1), indexing="xy")
        vertices = np.column_stack([i.ravel() / nx, j.ravel() / ny])

        ci, cj = np.meshgrid(np.arange(nx), np.arange(ny), indexing="xy")
        ci, cj = ci.ravel(), cj.ravel()
        v0 = ci + cj * (nx + 1)
        cells = np.column_stack([v0, v0 + 1, v0 + nx + 2, v0 + nx + 1])

        ix = np.arange(nx)
        jy = np.arange(ny)
        top = ny * (nx + 1)
        bottom = np.column_stack([ix, ix + 1])
        right = np.column_stack([nx + jy * (nx + 1), nx + (jy + 1) * (nx + 1)])
        upper = np.column_stack([top + ix + 1, top + ix])
        left = np.column_stack([(jy + 1) * (nx + 1), jy * (nx + 1)])
        boundary = np.vstack([bottom, right, upper, left])
        attributes = np.concatenate([
            np.full(nx, 1), np.full(ny, 2), np.full(nx, 3), np.full(ny, 4)
        ])
        return cls(vertices, cells, boundary=boundary, boundary_attributes=attributes)

    def copy(self):
        return copy.deepcopy(self)

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------

    @property
    def n_vertices(self) -> int:
        return len(self.vertices)

    @property
    def n_cells(self) -> int:
        return len(self.cells)

    @property
    def n_boundary(self) -> int:
        return 0 if self.boundary is None else len(self.boundary)

    @property
    def reference_dim(self) -> int:
        return self.vertices.shape[1]

    # ------------------------------------------------------------------
    # Edge topology
    # ------------------------------------------------------------------

    def edges(self):
        """Unique edges of the cell topology.

        Returns
        -------
        edges : np.ndarray
            (E, 2) sorted vertex pairs in lexicographic order.
        cell_edges : np.ndarray
            (ne, 4) edge index of every local edge.
        counts : np.ndarray
            (E,) number of cells sharing each edge.
        """
        local = np.sort(self.cells[:, LOCAL_EDGES], axis=2).reshape(-1, 2)
        edges, inverse, counts = np.unique(
            local, axis=0, return_inverse=True, return_counts=True
        )
        return edges, inverse.reshape(-1, 4), counts

    def edge_index(self, edges: np.ndarray, pairs: np.ndarray) -> np.ndarray:
        """Look up (k, 2) vertex pairs in a sorted unique edge array; -1 if absent."""
        pairs = np.sort(np.asarray(pairs, dtype=np.int64).reshape(-1, 2), axis=1)
        if len(edges) == 0:
            return np.full(len(pairs), -1, dtype=np.int64)
        base = max(self.n_vertices, int(edges.max()) + 1, int(pairs.max(initial=0)) + 1)
        keys = edges[:, 0] * base + edges[:, 1]
        wanted = pairs[:, 0] * base + pairs[:, 1]
        pos = np.clip(np.searchsorted(keys, wanted), 0, len(keys) - 1)
        return np.where(keys[pos] == wanted, pos, -1)

    def hanging_edge_keys(self) -> set:
        """Sorted vertex pairs taking part in a hanging interface (coarse and fine sides)."""
        keys = set()
        for lo, hi, mid in self.hanging:
            keys.add((int(lo), int(hi)))
            keys.add(tuple(sorted((int(lo), int(mid)))))
            keys.add(tuple(sorted((int(mid), int(hi)))))
        return keys

    def topological_boundary(self) -> np.ndarray:
        """Edges owned by exactly one cell and not part of a hanging interface.

        Pairs keep the winding of the owning cell.
        """
        local = self.cells[:, LOCAL_EDGES].reshape(-1, 2)
        _, cell_edges, counts = self.edges()
        single = counts[cell_edges.ravel()] == 1
        candidates = local[single]
        if len(self.hanging) and len(candidates):
            hanging = self.hanging_edge_keys()
            keep = [tuple(sorted(map(int, e))) not in hanging for e in candidates]
            candidates = candidates[np.array(keep, dtype=bool)]
        return candidates

    # ------------------------------------------------------------------
    # Topology fixups
    # ------------------------------------------------------------------

    def generate_boundary(self, attribute: int = 1):
        """Create boundary edges from the topology when none were given."""
        self.boundary = self.topological_boundary().astype(np.int64)
        self.boundary_attributes = np.full(len(self.boundary), attribute, dtype=np.int64)

    def identify_vertices(self, v2v: np.ndarray):
        """Renumber every cell, boundary and hanging reference through v2v."""
        v2v = np.asarray(v2v, dtype=np.int64)
        if v2v.shape != (self.n_vertices,):
            raise TopologyError(
                f"Vertex map has shape {v2v.shape}, expected ({self.n_vertices},)"
            )
        self.cells = v2v[self.cells]
        if self.boundary is not None:
            self.boundary = v2v[self.boundary]
        if len(self.hanging):
            self.hanging = v2v[self.hanging]

    def remove_unused_vertices(self) -> int:
        """Compact the vertex array to the vertices referenced by cells."""
        referenced = [self.cells.ravel()]
        if self.boundary is not None:
            referenced.append(self.boundary.ravel())
        referenced.append(self.hanging.ravel())
        used = np.unique(np.concatenate(referenced))

        n_removed = self.n_vertices - len(used)
        if n_removed == 0:
            return 0

        old2new = np.full(self.n_vertices, -1, dtype=np.int64)
        old2new[used] = np.arange(len(used))
        self.vertices = self.vertices[used]
        self.cells = old2new[self.cells]
        if self.boundary is not None:
            self.boundary = old2new[self.boundary]
        if len(self.hanging):
            self.hanging = old2new[self.hanging]
        return n_removed

    def remove_internal_boundaries(self) -> int:
        """Drop boundary edges that are shared by two cells (or collapsed)."""
        if self.boundary is None or len(self.boundary) == 0:
            return 0
        edges, _, counts = self.edges()
        idx = self.edge_index(edges, self.boundary)
        degenerate = self.boundary[:, 0] == self.boundary[:, 1]
        interior = (idx >= 0) & (counts[np.maximum(idx, 0)] >= 2)
        keep = ~(interior | degenerate)
        n_removed = int(np.count_nonzero(~keep))
        self.boundary = self.boundary[keep]
        self.boundary_attributes = self.boundary_attributes[keep]
        return n_removed

    def finalize(self):
        """Generate a missing boundary, then compact and clean it."""
        if self.boundary is None:
            self.generate_boundary()
        self.remove_unused_vertices()
        self.remove_internal_boundaries()

    # ------------------------------------------------------------------
    # Refinement
    # ------------------------------------------------------------------

    def _cell_node_values(self):
        """Per-cell nodal geometry (ne, nloc, 3), or None before nodes exist."""
        if self.nodes is None or self.nodal_space is None:
            return None
        return self.nodes[self.nodal_space.element_dofs]

    def _split_cells(self, marked: np.ndarray, edges, cell_edges):
        """Split marked cells into four children; returns the midpoint vertex of each edge.

        A curved node field is carried over by evaluating each parent's
        polynomial at its children's nodal points.
        """
        parent_values = self._cell_node_values()
        order = None if parent_values is None else self.nodal_space.order

        nv = self.n_vertices
        n_marked = int(np.count_nonzero(marked))
        corners = self.cells[marked]
        coords = self.cell_coords[marked]

        # Midpoint vertex per edge touched by a marked cell
        touched = np.unique(cell_edges[marked])
        edge_mid = np.full(len(edges), -1, dtype=np.int64)
        edge_mid[touched] = nv + np.arange(len(touched))
        center = nv + len(touched) + np.arange(n_marked)

        mid_coords = 0.5 * (coords + np.roll(coords, -1, axis=1))  # (m, 4, r): edge k midpoint
        center_coords = coords.mean(axis=1)

        new_vertices = np.empty((nv + len(touched) + n_marked, self.reference_dim))
        new_vertices[:nv] = self.vertices
        mids = edge_mid[cell_edges[marked]]  # (m, 4)
        new_vertices[mids.ravel()] = mid_coords.reshape(-1, self.reference_dim)
        new_vertices[center] = center_coords

        m01, m12, m23, m30 = mids.T
        c0, c1, c2, c3 = corners.T
        children = np.stack([
            np.column_stack([c0, m01, center, m30]),
            np.column_stack([m01, c1, m12, center]),
            np.column_stack([center, m12, c2, m23]),
            np.column_stack([m30, center, m23, c3]),
        ], axis=1).reshape(-1, 4)

        X0, X1, X2, X3 = (coords[:, k] for k in range(4))
        M01, M12, M23, M30 = (mid_coords[:, k] for k in range(4))
        C = center_coords
        child_coords = np.stack([
            np.stack([X0, M01, C, M30], axis=1),
            np.stack([M01, X1, M12, C], axis=1),
            np.stack([C, M12, X2, M23], axis=1),
            np.stack([M30, C, M23, X3], axis=1),
        ], axis=1).reshape(-1, 4, self.reference_dim)

        keep = ~marked
        self.vertices = new_vertices
        self.cells = np.vstack([self.cells[keep], children])
        self.cell_coords = np.concatenate([self.cell_coords[keep], child_coords])
        self.cell_attributes = np.concatenate([
            self.cell_attributes[keep], np.repeat(self.cell_attributes[marked], 4)
        ])

        # Split boundary edges whose owner was refined
        if self.boundary is not None and len(self.boundary):
            bidx = self.edge_index(edges, self.boundary)
            split = (bidx >= 0) & (edge_mid[np.maximum(bidx, 0)] >= 0)
            bm = edge_mid[bidx[split]]
            a, b = self.boundary[split].T
            halves = np.stack([np.column_stack([a, bm]), np.column_stack([bm, b])], axis=1)
            self.boundary = np.vstack([self.boundary[~split], halves.reshape(-1, 2)])
            self.boundary_attributes = np.concatenate([
                self.boundary_attributes[~split],
                np.repeat(self.boundary_attributes[split], 2),
            ])

        self.nodes = None
        self.nodal_space = None
        self.delete_geometric_factors()
        if parent_values is not None:
            from ..fem.basis import child_interpolation

            T = child_interpolation(order)  # (4, nloc_child, nloc_parent)
            child_values = np.einsum("kij,ejd->ekid", T, parent_values[marked])
            values = np.concatenate([
                parent_values[keep], child_values.reshape(-1, *parent_values.shape[1:])
            ])
            self._pending_values = (order, values)
        return edge_mid

    def _restore_nodes(self):
        if self._pending_values is None:
            return
        from ..fem.space import H1Space

        order, values = self._pending_values
        self._pending_values = None
        space = H1Space(self, order)
        self.set_nodes(space.constrain(space.gather(values)), space)

    def uniform_refinement(self):
        """Split every quad into four (edge midpoints plus cell centre)."""
        if len(self.hanging):
            raise InvalidConfigurationError(
                "Uniform refinement after random refinement is not supported"
            )
        edges, cell_edges, _ = self.edges()
        self._split_cells(np.ones(self.n_cells, dtype=bool), edges, cell_edges)
        self._restore_nodes()

    def random_refinement(self, fraction: float = 0.25, rng=None) -> int:
        """Refine each cell with probability ``fraction`` (single non-conforming pass).

        Returns
        -------
        int
            Number of refined cells.
        """
        rng = np.random.default_rng(rng)
        return self.local_refinement(rng.random(self.n_cells) < fraction)

    def local_refinement(self, marked) -> int:
        """Split the marked cells, leaving hanging interfaces next to unmarked ones.

        Edges between a refined and an unrefined cell become hanging
        interfaces; the H1 space constrains their midpoint dofs.
        """
        if len(self.hanging):
            raise InvalidConfigurationError("Only a single non-conforming refinement pass is supported")
        marked = np.asarray(marked, dtype=bool)
        if marked.shape != (self.n_cells,):
            raise InvalidConfigurationError(
                f"Refinement marker has shape {marked.shape}, expected ({self.n_cells},)"
            )
        if not marked.any():
            return 0

        edges, cell_edges, counts = self.edges()
        edge_mid = self._split_cells(marked, edges, cell_edges)

        # Interior edges with exactly one refined owner are hanging
        refined_sides = np.bincount(
            cell_edges[marked].ravel(), minlength=len(edges)
        )
        hanging = (counts == 2) & (refined_sides == 1)
        self.hanging = np.column_stack([edges[hanging], edge_mid[hanging]]).astype(np.int64)
        self._restore_nodes()
        return int(np.count_nonzero(marked))

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def set_nodes(self, nodes: np.ndarray, space=None):
        """Replace the nodal coordinates (ndofs, 3) and drop cached factors."""
        nodes = np.asarray(nodes, dtype=float)
        if space is not None:
            self.nodal_space = space
        if self.nodal_space is not None and nodes.shape != (self.nodal_space.ndofs, 3):
            raise TopologyError(
                f"Node array has shape {nodes.shape}, expected ({self.nodal_space.ndofs}, 3)"
            )
        self.nodes = nodes
        self.delete_geometric_factors()

    def vertex_positions(self) -> np.ndarray:
        """Embedded coordinates of the mesh vertices."""
        return self.nodes[self.nodal_space.vertex_dofs]

    def delete_geometric_factors(self):
        self.geometric_factor_cache.clear()

    def to_pyvista(self):
        """Export as a pyvista UnstructuredGrid of linear sub-quads."""
        from ..utilities.visualization import mesh_to_pyvista

        return mesh_to_pyvista(self)

    def __repr__(self):
        return (
            f"SurfaceMesh(nv={self.n_vertices}, ne={self.n_cells}, "
            f"nbe={self.n_boundary}, hanging={len(self.hanging)})"
        )
