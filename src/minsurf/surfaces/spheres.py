"""Sphere models built from explicit cube topologies and snapped to the unit sphere."""

import numpy as np

from ..meshing.mesh_data import SurfaceMesh
from ..special import EPS
from .base import Surface, snap_to_unit_sphere, true_dofs


class FullPeach(Surface):
    """Closed cube-sphere; two half great circles are held fixed."""

    code = 6
    name = "full-peach"

    CUBE_VERTICES = np.array([
        [-1, -1, -1], [+1, -1, -1], [+1, +1, -1], [-1, +1, -1],
        [-1, -1, +1], [+1, -1, +1], [+1, +1, +1], [-1, +1, +1],
    ], dtype=float)
    CUBE_FACES = np.array([
        [3, 2, 1, 0], [0, 1, 5, 4], [1, 2, 6, 5],
        [2, 3, 7, 6], [3, 0, 4, 7], [4, 5, 6, 7],
    ])

    grid_topology = False

    def build_topology(self, options):
        mesh = SurfaceMesh(
            self.CUBE_VERTICES,
            self.CUBE_FACES,
            boundary=np.empty((0, 2), dtype=np.int64),
            cell_attributes=np.arange(1, len(self.CUBE_FACES) + 1),
        )
        mesh.uniform_refinement()
        return mesh

    def parametrize(self, X):
        return np.asarray(X, dtype=float).reshape(-1, 3)

    def snap(self, mesh, accumulator):
        snap_to_unit_sphere(mesh)

    def essential_dofs(self, mesh, space):
        X = mesh.nodes
        half_x = (np.abs(X[:, 0]) < EPS) & (X[:, 1] <= 0.0)
        half_y = (np.abs(X[:, 2]) < EPS) & (X[:, 1] >= 0.0)
        return true_dofs(space, np.flatnonzero(half_x | half_y))


class SlottedSphere(Surface):
    """Cube sphere on a 4x4x4 lattice with 14 panels removed to cut slots."""

    code = 7
    name = "slotted-sphere"
    delta = 0.15

    # (face, panel offset ix + 3*iy) of removed panels
    REMOVED_PANELS = (
        (0, 7), (0, 4),
        (1, 7), (1, 4),
        (3, 1), (3, 4),
        (5, 3), (5, 4), (5, 5),
        (4, 1), (4, 4), (4, 7),
        (2, 1), (2, 4),
    )

    grid_topology = False

    def lattice(self):
        """Vertices of the 4x4x4 lattice; index ix + 4*iy + 16*iz."""
        vert1d = np.array([-1.0, -self.delta, self.delta, 1.0])
        iv = np.arange(64)
        return np.column_stack([vert1d[iv % 4], vert1d[(iv // 4) % 4], vert1d[iv // 16]])

    def panels(self):
        """All 54 surface panels (6 faces x 9), face-major."""
        ix, iy = np.meshgrid(np.arange(3), np.arange(3), indexing="xy")
        ix, iy = ix.ravel(), iy.ravel()
        faces = [
            # x = -1
            np.column_stack([4 * ix + 16 * iy, 4 * (ix + 1) + 16 * iy,
                             4 * (ix + 1) + 16 * (iy + 1), 4 * ix + 16 * (iy + 1)]),
            # x = +1
            np.column_stack([3 + 4 * ix + 16 * (iy + 1), 3 + 4 * (ix + 1) + 16 * (iy + 1),
                             3 + 4 * (ix + 1) + 16 * iy, 3 + 4 * ix + 16 * iy]),
            # y = -1
            np.column_stack([16 * iy + ix, 16 * iy + ix + 1,
                             16 * (iy + 1) + ix + 1, 16 * (iy + 1) + ix]),
        ]
        faces.append(faces[2] + 12)  # y = +1
        faces.append(np.column_stack([4 * iy + ix, 4 * iy + ix + 1,
                                      4 * (iy + 1) + ix + 1, 4 * (iy + 1) + ix]))  # z = -1
        faces.append(faces[4] + 48)  # z = +1
        return np.vstack(faces)

    def build_topology(self, options):
        panels = self.panels()
        keep = np.ones(len(panels), dtype=bool)
        for face, offset in self.REMOVED_PANELS:
            keep[9 * face + offset] = False
        mesh = SurfaceMesh(
            self.lattice(), panels[keep], cell_attributes=np.flatnonzero(keep) + 1
        )
        mesh.remove_unused_vertices()
        mesh.generate_boundary()
        return mesh

    def parametrize(self, X):
        return np.asarray(X, dtype=float).reshape(-1, 3)

    def snap(self, mesh, accumulator):
        snap_to_unit_sphere(mesh)
