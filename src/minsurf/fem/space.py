"""
H1 Lagrange space of order p on a quadrilateral SurfaceMesh.

Dof Numbering:
- Vertex dofs: 0..nv-1 (dof == vertex index)
- Edge interior dofs: nv + e*(p-1) + (j-1), j = 1..p-1 at parameter j/p
  measured from the lower vertex index of edge e
- Cell interior dofs: nv + E*(p-1) + c*(p-1)^2 + (a-1) + (b-1)*(p-1)

Hanging nodes left by random refinement are slave dofs. The conforming
prolongation P (ndofs x ntrue) interpolates them from the coarse edge;
all other dofs are true dofs.

Vector Layout (vdim > 1):
- BY_NODES: vdof = d * n + k (component blocks)
- BY_VDIM: vdof = k * vdim + d (interleaved)
"""

from enum import Enum

import numpy as np
import scipy.sparse as sp

from ..errors import InvalidConfigurationError, TopologyError
from ..meshing.mesh_data import LOCAL_EDGES
from .basis import bilinear_map, lagrange_1d, lattice_points


class Ordering(Enum):
    BY_NODES = "by_nodes"
    BY_VDIM = "by_vdim"


def to_layout(values: np.ndarray, ordering: Ordering = Ordering.BY_NODES) -> np.ndarray:
    """Flatten (n, vdim) values into a vector in the given layout."""
    values = np.asarray(values)
    if ordering == Ordering.BY_NODES:
        return values.T.ravel().copy()
    return values.ravel().copy()


def from_layout(vector: np.ndarray, vdim: int, ordering: Ordering = Ordering.BY_NODES) -> np.ndarray:
    """Inverse of to_layout: vector of length n*vdim to (n, vdim)."""
    vector = np.asarray(vector)
    if vector.size % vdim:
        raise InvalidConfigurationError(f"Vector of size {vector.size} is not divisible by vdim={vdim}")
    if ordering == Ordering.BY_NODES:
        return vector.reshape(vdim, -1).T.copy()
    return vector.reshape(-1, vdim).copy()


class H1Space:
    """Continuous order-p Lagrange space with optional vector dimension.

    Parameters
    ----------
    mesh : SurfaceMesh
        Mesh whose topology defines the dofs.
    order : int
        Polynomial degree p >= 1.
    vdim : int
        Number of vector components (1 scalar, 3 for coordinates).
    ordering : Ordering
        Layout of vector dofs.
    """

    def __init__(self, mesh, order: int, vdim: int = 1, ordering: Ordering = Ordering.BY_NODES):
        if order < 1:
            raise InvalidConfigurationError(f"Polynomial order must be >= 1, got {order}")
        if vdim < 1:
            raise InvalidConfigurationError(f"vdim must be >= 1, got {vdim}")
        self.mesh = mesh
        self.order = order
        self.vdim = vdim
        self.ordering = ordering

        self.edges, self.cell_edges, _ = mesh.edges()
        p = order
        nv, ne, E = mesh.n_vertices, mesh.n_cells, len(self.edges)
        self.n_vertex_dofs = nv
        self.edge_offset = nv
        self.cell_offset = nv + E * (p - 1)
        self.ndofs = self.cell_offset + ne * (p - 1) ** 2

        self.element_dofs = self._build_element_dofs()
        self._build_prolongation()

    # ------------------------------------------------------------------
    # Dof maps
    # ------------------------------------------------------------------

    @property
    def nloc(self) -> int:
        return (self.order + 1) ** 2

    @property
    def vertex_dofs(self) -> np.ndarray:
        return np.arange(self.n_vertex_dofs)

    def edge_dofs(self, edge_ids: np.ndarray) -> np.ndarray:
        """Interior dofs of the given edges, (k, p-1), ordered from the lower vertex."""
        edge_ids = np.asarray(edge_ids, dtype=np.int64)
        j = np.arange(self.order - 1)
        return self.edge_offset + edge_ids[:, None] * (self.order - 1) + j[None, :]

    def _build_element_dofs(self) -> np.ndarray:
        p = self.order
        cells = self.mesh.cells
        ne = len(cells)
        dofs = np.empty((ne, p + 1, p + 1), dtype=np.int64)  # [cell, b, a]

        dofs[:, 0, 0] = cells[:, 0]
        dofs[:, 0, p] = cells[:, 1]
        dofs[:, p, p] = cells[:, 2]
        dofs[:, p, 0] = cells[:, 3]

        if p > 1:
            # Lattice position of the t-th point (from the edge's start corner) on each local edge
            def position(k, t):
                return [(0, t), (t, p), (p, p - t), (p - t, 0)][k]

            for k, (s, e) in enumerate(LOCAL_EDGES):
                start = cells[:, s]
                end = cells[:, e]
                base = self.edge_offset + self.cell_edges[:, k] * (p - 1)
                for t in range(1, p):
                    j = np.where(start < end, t, p - t)
                    b, a = position(k, t)
                    dofs[:, b, a] = base + j - 1

            interior = np.arange((p - 1) ** 2).reshape(p - 1, p - 1)  # [b-1, a-1]
            cell_base = self.cell_offset + np.arange(ne) * (p - 1) ** 2
            dofs[:, 1:p, 1:p] = cell_base[:, None, None] + interior[None]

        return dofs.reshape(ne, -1)

    # ------------------------------------------------------------------
    # Hanging-node constraints
    # ------------------------------------------------------------------

    def _build_prolongation(self):
        p = self.order
        hanging = self.mesh.hanging
        rows, cols, vals = [], [], []
        slaves = []

        if len(hanging):
            idx = self.mesh.edge_index(self.edges, hanging[:, :2])
            fine_a = self.mesh.edge_index(self.edges, hanging[:, [0, 2]])
            fine_b = self.mesh.edge_index(self.edges, hanging[:, [2, 1]])
            if np.any(idx < 0) or np.any(fine_a < 0) or np.any(fine_b < 0):
                raise TopologyError("Hanging interface without matching coarse and fine edges")

            for (lo, hi, mid), ec, fa, fb in zip(hanging, idx, fine_a, fine_b):
                masters = np.concatenate([[lo], self.edge_dofs([ec])[0], [hi]])
                # Parameter (from lo) of each slave dof on the coarse edge
                local = [(mid, 0.5)]
                for j, dof in enumerate(self.edge_dofs([fa])[0], start=1):
                    s = j / p
                    local.append((dof, 0.5 * s if lo < mid else 0.5 * (1.0 - s)))
                for j, dof in enumerate(self.edge_dofs([fb])[0], start=1):
                    s = j / p
                    local.append((dof, 0.5 + 0.5 * s if mid < hi else 1.0 - 0.5 * s))

                # Coarse edge nodes sit at k/p from lo, matching the master order
                for dof, s in local:
                    L, _ = lagrange_1d(p, [s])
                    weights = L[0]
                    slaves.append(dof)
                    rows.extend([dof] * len(masters))
                    cols.extend(masters)
                    vals.extend(weights)

        slaves = np.unique(np.asarray(slaves, dtype=np.int64))
        is_true = np.ones(self.ndofs, dtype=bool)
        is_true[slaves] = False
        self.true_dofs = np.flatnonzero(is_true)
        self.ntrue = len(self.true_dofs)
        self.dof_to_true = np.full(self.ndofs, -1, dtype=np.int64)
        self.dof_to_true[self.true_dofs] = np.arange(self.ntrue)

        if len(slaves) and np.any(~is_true[np.asarray(cols, dtype=np.int64)]):
            raise TopologyError("Hanging-node master is itself constrained")

        # Identity on true dofs, interpolation rows on slaves
        P_rows = np.concatenate([self.true_dofs, np.asarray(rows, dtype=np.int64)])
        P_cols = np.concatenate([
            np.arange(self.ntrue), self.dof_to_true[np.asarray(cols, dtype=np.int64)]
        ])
        P_vals = np.concatenate([np.ones(self.ntrue), np.asarray(vals, dtype=float)])
        self.P = sp.csr_matrix((P_vals, (P_rows, P_cols)), shape=(self.ndofs, self.ntrue))

    @property
    def conforming(self) -> bool:
        return self.ntrue == self.ndofs

    def restrict(self, values: np.ndarray) -> np.ndarray:
        """Values at true dofs (rows of a (ndofs, ...) array)."""
        return np.asarray(values)[self.true_dofs]

    def prolong(self, true_values: np.ndarray) -> np.ndarray:
        """Extend true-dof values to all dofs through P."""
        return np.asarray(self.P @ true_values)

    def constrain(self, values: np.ndarray) -> np.ndarray:
        """Reset slave dofs to the interpolant of their masters."""
        return self.prolong(self.restrict(values))

    # ------------------------------------------------------------------
    # Vector dofs
    # ------------------------------------------------------------------

    @property
    def true_vsize(self) -> int:
        return self.vdim * self.ntrue

    def true_vdofs(self, tdofs: np.ndarray) -> np.ndarray:
        """Expand scalar true dofs to all components in this space's layout."""
        tdofs = np.asarray(tdofs, dtype=np.int64)
        d = np.arange(self.vdim)
        if self.ordering == Ordering.BY_NODES:
            vdofs = d[:, None] * self.ntrue + tdofs[None, :]
        else:
            vdofs = tdofs[None, :] * self.vdim + d[:, None]
        return np.sort(vdofs.ravel())

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------

    def reference_points(self) -> np.ndarray:
        """Reference coordinates of every local nodal point, (ne, nloc, r)."""
        return bilinear_map(self.mesh.cell_coords, lattice_points(self.order))

    def interpolate_corners(self, corner_values: np.ndarray) -> np.ndarray:
        """Bilinear interpolation of per-cell corner values to the nodal points."""
        return bilinear_map(corner_values, lattice_points(self.order))

    def gather(self, per_cell: np.ndarray) -> np.ndarray:
        """Scatter per-cell nodal values (ne, nloc, k) into a global (ndofs, k) array."""
        per_cell = np.asarray(per_cell)
        out = np.zeros((self.ndofs,) + per_cell.shape[2:])
        out[self.element_dofs] = per_cell
        return out

    def boundary_dofs(self, attributes=None) -> np.ndarray:
        """Scalar dofs on boundary edges whose attribute is selected (all if None)."""
        mesh = self.mesh
        if mesh.boundary is None or mesh.n_boundary == 0:
            return np.empty(0, dtype=np.int64)
        selected = np.ones(mesh.n_boundary, dtype=bool)
        if attributes is not None:
            selected = np.isin(mesh.boundary_attributes, list(attributes))
        edges = mesh.boundary[selected]
        ids = mesh.edge_index(self.edges, edges)
        dofs = [edges.ravel()]
        if self.order > 1:
            dofs.append(self.edge_dofs(ids).ravel())
        return np.unique(np.concatenate(dofs))

    def __repr__(self):
        return f"H1Space(order={self.order}, vdim={self.vdim}, ndofs={self.ndofs}, ntrue={self.ntrue})"
