"""MLflow utilities for experiment tracking and artifact management."""

from .io import log_solver_results, setup_mlflow_tracking

__all__ = [
    "setup_mlflow_tracking",
    "log_solver_results",
]
