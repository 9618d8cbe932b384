"""Surface mesh topology, refinement, validation and building."""

from .mesh_data import LOCAL_EDGES, SurfaceMesh
from .validation import validate_mesh
from .builder import NormalizationAccumulator, build_mesh, parametrize_nodes

__all__ = [
    "LOCAL_EDGES",
    "SurfaceMesh",
    "validate_mesh",
    "NormalizationAccumulator",
    "build_mesh",
    "parametrize_nodes",
]
