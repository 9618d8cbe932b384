"""Surface selection: code -> surface -> (mesh, space, essential dofs) -> solver."""

import logging

import numpy as np

from ..datastructures import Parameters
from ..errors import InvalidSelectionError
from ..fem.space import H1Space, Ordering
from ..meshing.builder import build_mesh
from .catalogue import Catenoid, Enneper, Helicoid, Hold, QuarterPeach, Scherk, Shell
from .costa import Costa
from .spheres import FullPeach, SlottedSphere

log = logging.getLogger(__name__)

SURFACES = {
    surface.code: surface
    for surface in (
        Catenoid, Helicoid, Enneper, Scherk, Hold,
        QuarterPeach, FullPeach, SlottedSphere, Costa, Shell,
    )
}


def get_surface(code: int):
    """Instantiate the catalogue entry for an integer selection code."""
    try:
        key = int(code)
    except (TypeError, ValueError, OverflowError):
        key = None
    # bools and non-integral numbers are not codes
    if isinstance(code, (bool, np.bool_)) or key is None or key != code or key not in SURFACES:
        raise InvalidSelectionError(
            f"Unknown surface code {code!r}; valid codes are {sorted(SURFACES)}"
        )
    return SURFACES[key]()


def create_surface(code: int, options: Parameters = None):
    """Build the mesh, solution space and essential dofs of a catalogue surface.

    Parameters
    ----------
    code : int
        Selection code 0..9.
    options : Parameters, optional
        Build and solve options (defaults if omitted).

    Returns
    -------
    mesh : SurfaceMesh
    space : H1Space
        Solution space of dimension ``options.vdim`` (BY_NODES layout).
    ess_tdofs : np.ndarray
        Essential true vdofs of ``space``.
    """
    if options is None:
        options = Parameters(surface=code)
    surface = get_surface(code)
    mesh, _ = build_mesh(surface, options)

    space = H1Space(mesh, options.order, vdim=options.vdim, ordering=Ordering.BY_NODES)
    scalar_tdofs = surface.essential_dofs(mesh, space)
    ess_tdofs = space.true_vdofs(scalar_tdofs)
    if len(ess_tdofs) == 0:
        log.warning(f"{surface.name}: no essential dofs, the relaxation is unconstrained")

    log.info(f"Created {surface.name}: {space!r}, {len(ess_tdofs)} essential vdofs")
    return mesh, space, np.asarray(ess_tdofs, dtype=np.int64)


def make_solver(options: Parameters, mesh, space, ess_tdofs, sink=None):
    """Pick the componentwise or vector relaxation policy from the options."""
    from ..solvers import ByComponentSolver, ByVectorSolver

    cls = ByComponentSolver if options.by_components else ByVectorSolver
    return cls(options, mesh, space, ess_tdofs, sink=sink)
