"""Data structures for relaxation configuration and results.

Structure:
- Parameters: Input configuration (logged to MLflow at start)
- Metrics: Output results (logged to MLflow at end)
- TimeSeries: Convergence history
- SolverState: Lifecycle of a relaxation session
"""

import time
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import List, Optional

import pandas as pd
from mlflow.entities import Metric


# ========================================================
# Parameters (Input Configuration)
# ========================================================


@dataclass
class Parameters:
    """Surface construction and relaxation parameters."""

    surface: int = 0
    order: int = 3
    nx: int = 6
    ny: int = 6
    refine: int = 2
    max_iterations: int = 32
    tolerance: float = 1e-4
    vdim: Optional[int] = None  # derived from by_components when None
    pa: bool = True  # partial (matrix-free) assembly
    vis: bool = False
    amr: bool = False
    amr_fraction: float = 0.25
    radial: bool = False
    lambda_: float = 0.0
    by_components: bool = False
    linear_solver_tol: float = 1e-14
    linear_solver_atol: float = 1e-28
    linear_solver_max_iterations: int = 2000
    seed: Optional[int] = None
    method: str = ""

    def __post_init__(self):
        if self.vdim is None:
            self.vdim = 1 if self.by_components else 3
        if not self.method:
            self.method = "Picard-ByComponent" if self.by_components else "Picard-ByVector"

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Flat dict of params; MLflow cannot store None."""
        return {k: ("none" if v is None else v) for k, v in asdict(self).items()}


# ========================================================
# Solver State
# ========================================================


class SolverState(Enum):
    INITIALIZED = "initialized"
    ITERATING = "iterating"
    CONVERGED = "converged"
    ITERATION_LIMIT_REACHED = "iteration_limit_reached"
    FAILED = "failed"


# ========================================================
# Metrics (Output Results)
# ========================================================


@dataclass
class Metrics:
    """Solver metrics - output results computed during/after solving."""

    iterations: int = 0
    converged: bool = False
    final_residual: float = float("inf")
    wall_time_seconds: float = 0.0
    n_dofs: int = 0
    n_elements: int = 0
    surface_area: float = 0.0
    state: str = SolverState.INITIALIZED.value

    def to_dataframe(self):
        return pd.DataFrame([asdict(self)])

    def to_mlflow(self) -> dict:
        """Numeric metrics only (MLflow metrics must be floats)."""
        return {
            k: float(v)
            for k, v in asdict(self).items()
            if isinstance(v, (int, float, bool))
        }


# ========================================================
# Time Series (Convergence History)
# ========================================================


@dataclass
class TimeSeries:
    """Convergence history (one value per Picard iteration)."""

    rel_residual: List[float] = field(default_factory=list)
    surface_area: Optional[List[float]] = None

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame with one row per iteration."""
        df = pd.DataFrame({k: v for k, v in asdict(self).items() if v is not None})
        df.index.name = "iteration"
        return df

    def to_mlflow_batch(self) -> List[Metric]:
        """Per-step metrics for MlflowClient.log_batch."""
        timestamp = int(time.time() * 1000)
        batch = []
        for key, values in asdict(self).items():
            if values is None:
                continue
            batch.extend(
                Metric(key=key, value=float(v), timestamp=timestamp, step=i)
                for i, v in enumerate(values)
            )
        return batch
