"""Abstract Picard relaxation solver for minimal surfaces."""

import logging
import time
from abc import ABC, abstractmethod

import numpy as np

from ..datastructures import Metrics, Parameters, SolverState, TimeSeries
from ..errors import InvalidConfigurationError, NumericalInstabilityError
from ..fem.geometry import geometric_factors
from ..fem.linear_solvers import cg_solver
from ..fem.operators import DiffusionOperator
from ..special import check_finite
from ..utilities.diagnostics import NullSink

log = logging.getLogger(__name__)


def relative_change(new: np.ndarray, old: np.ndarray) -> float:
    """||new - old|| / ||old||, or the absolute change when ||old|| == 0."""
    diff = float(np.linalg.norm(new - old))
    denom = float(np.linalg.norm(old))
    return diff / denom if denom > 0.0 else diff


class SurfaceSolver(ABC):
    """Abstract Picard relaxation of a surface mesh toward a minimal surface.

    Each iteration assembles the Laplace-Beltrami operator of the current
    geometry, solves for new coordinates with the boundary held fixed and
    applies the update policy of the subclass.

    Handles:
    - Parameter management (input configuration)
    - State machine: INITIALIZED -> ITERATING -> CONVERGED / ITERATION_LIMIT_REACHED / FAILED
    - Iteration loop with residual computation
    - Metrics and residual history
    - Diagnostics sink notification (best effort)

    Subclasses must:
    - Set vdim class attribute (1 componentwise, 3 vector)
    - Implement step() - one linearized solve plus coordinate update
    """

    vdim = None

    def __init__(self, params: Parameters, mesh, space, ess_tdofs, sink=None):
        if self.vdim is None:
            raise ValueError("Subclass must define vdim class attribute")
        if space.vdim != self.vdim:
            raise InvalidConfigurationError(
                f"{type(self).__name__} needs a space with vdim={self.vdim}, got vdim={space.vdim}"
            )
        if space.mesh is not mesh or mesh.nodes is None or mesh.nodes.shape[0] != space.ndofs:
            raise InvalidConfigurationError("Space does not match the mesh nodes")
        if not 0.0 <= params.lambda_ <= 1.0:
            raise InvalidConfigurationError(f"lambda must lie in [0, 1], got {params.lambda_}")

        self.params = params
        self.mesh = mesh
        self.space = space
        self.ess_tdofs = np.asarray(ess_tdofs, dtype=np.int64)
        self.sink = sink if sink is not None else NullSink()
        self._check_options()

        self.operator = DiffusionOperator(space, partial=params.pa)
        self._M = None  # preconditioner, reused within one iteration
        self._area = 0.0

        self.state = SolverState.INITIALIZED
        self.metrics = Metrics()
        self.time_series = None  # Populated after solve()

    def _check_options(self):
        """Hook for policy-specific option checks."""

    @abstractmethod
    def step(self) -> float:
        """Perform one Picard iteration.

        Returns
        -------
        float
            Relative residual of the linear solution against the old coordinates.
        """

    # ------------------------------------------------------------------
    # Shared pieces
    # ------------------------------------------------------------------

    def coordinates(self) -> np.ndarray:
        """Current coordinates at true dofs, (ntrue, 3)."""
        return self.space.restrict(self.mesh.nodes)

    def _set_coordinates(self, X: np.ndarray):
        check_finite(X, "node coordinate")
        self.mesh.set_nodes(self.space.prolong(X))

    def _update_operator(self):
        """Drop stale geometric factors and reassemble for the current nodes."""
        self.mesh.delete_geometric_factors()
        self.operator.assemble()
        self._area = geometric_factors(self.mesh, self.space).total_area
        self._M = None

    def _linear_solve(self, x: np.ndarray) -> np.ndarray:
        """Solve A y = 0 with essential dofs of y taken from x (x is the initial guess)."""
        A, rhs, x0, free = self.operator.form_linear_system(self.ess_tdofs, x)
        y_free, self._M = cg_solver(
            A,
            rhs,
            x0=x0,
            M=self._M,
            tolerance=self.params.linear_solver_tol,
            atol=self.params.linear_solver_atol,
            max_iterations=self.params.linear_solver_max_iterations,
            use_amg=not self.params.pa,
        )
        y = np.array(x, dtype=float)
        y[free] = y_free
        return y

    def _notify(self, iteration: int, residual):
        try:
            self.sink.push(self.mesh, iteration, residual)
        except Exception as e:
            log.warning(f"Diagnostics sink failed at iteration {iteration}: {e}")

    # ------------------------------------------------------------------
    # Iteration loop
    # ------------------------------------------------------------------

    def _store_results(self, residual_history, area_history, final_iter_count, is_converged, wall_time):
        """Store solve results in self.time_series and self.metrics."""
        self.time_series = TimeSeries(
            rel_residual=list(residual_history),
            surface_area=list(area_history),
        )
        self.metrics = Metrics(
            iterations=final_iter_count,
            converged=is_converged,
            final_residual=residual_history[-1] if residual_history else float("inf"),
            wall_time_seconds=wall_time,
            n_dofs=self.space.true_vsize,
            n_elements=self.mesh.n_cells,
            surface_area=area_history[-1] if area_history else 0.0,
            state=self.state.value,
        )

    def solve(self, tolerance: float = None, max_iter: int = None) -> Metrics:
        """Relax the mesh until the relative residual drops below the tolerance.

        Reaching the iteration cap is not an error: the state becomes
        ITERATION_LIMIT_REACHED and ``metrics.converged`` stays False.

        Parameters
        ----------
        tolerance : float, optional
            Convergence tolerance. If None, uses params.tolerance.
        max_iter : int, optional
            Maximum iterations. If None, uses params.max_iterations.
        """
        if tolerance is None:
            tolerance = self.params.tolerance
        if max_iter is None:
            max_iter = self.params.max_iterations

        if len(self.ess_tdofs) == 0:
            log.warning("No essential dofs: the linear systems are singular")

        residual_history = []
        area_history = []
        time_start = time.time()
        final_iter_count = 0
        is_converged = False

        try:
            check_finite(self.mesh.nodes, "node coordinate")
            self.state = SolverState.ITERATING
            for i in range(max_iter):
                final_iter_count = i + 1
                self._notify(i, residual_history[-1] if residual_history else None)

                self._update_operator()
                rnorm = self.step()
                if not np.isfinite(rnorm):
                    raise NumericalInstabilityError(f"Non-finite residual at iteration {i}")

                residual_history.append(rnorm)
                area_history.append(self._area)
                log.info(f"Iteration {i}: rnorm = {rnorm:.6e}, area = {self._area:.6f}")

                if rnorm < tolerance:
                    is_converged = True
                    log.info(f"Converged at iteration {i}")
                    break
        except Exception:
            # Any error escaping the loop ends the session
            self.state = SolverState.FAILED
            raise

        self.state = SolverState.CONVERGED if is_converged else SolverState.ITERATION_LIMIT_REACHED
        if not is_converged:
            log.warning(f"Iteration limit {max_iter} reached without convergence")

        wall_time = time.time() - time_start
        self._notify(final_iter_count, residual_history[-1] if residual_history else None)
        log.info(f"Solver finished in {wall_time:.2f} seconds.")

        self._store_results(residual_history, area_history, final_iter_count, is_converged, wall_time)
        return self.metrics

    def to_vtk(self):
        """Current surface as a pyvista UnstructuredGrid."""
        return self.mesh.to_pyvista()
