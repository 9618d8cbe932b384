"""MLflow I/O utilities for experiment tracking."""

import logging
import os
import tempfile
from pathlib import Path

import mlflow

log = logging.getLogger(__name__)


def setup_mlflow_tracking(tracking_uri: str = "./mlruns", experiment_name: str = "minimal-surfaces",
                          mode: str = "local") -> str:
    """Configure MLflow tracking and select the experiment.

    Parameters
    ----------
    tracking_uri : str
        Tracking URI or local directory.
    experiment_name : str
        Experiment to log into (created if missing).
    mode : str
        "local"/"files" ignores any MLFLOW_TRACKING_URI from the environment.

    Returns
    -------
    str
        Name of the experiment actually selected.
    """
    if str(mode).lower() in ("files", "local"):
        os.environ.pop("MLFLOW_TRACKING_URI", None)
    os.environ["MLFLOW_TRACKING_URI"] = str(tracking_uri)
    mlflow.set_tracking_uri(tracking_uri)

    try:
        mlflow.set_experiment(experiment_name)
    except Exception as exc:
        experiment_name = f"{experiment_name}-restored"
        log.warning(f"MLflow set_experiment failed ({exc}); using '{experiment_name}'")
        mlflow.set_experiment(experiment_name)

    return experiment_name


def log_solver_results(solver, run) -> None:
    """Log metrics, residual history and the final surface of a finished solve."""
    mlflow.log_metrics(solver.metrics.to_mlflow())
    mlflow.set_tag("state", solver.state.value)

    if solver.time_series:
        batch = solver.time_series.to_mlflow_batch()
        if batch:
            mlflow.tracking.MlflowClient().log_batch(run.info.run_id, metrics=batch)

    with tempfile.TemporaryDirectory() as tmpdir:
        vtk_path = Path(tmpdir) / "surface.vtu"
        solver.to_vtk().save(str(vtk_path))
        mlflow.log_artifact(str(vtk_path))

        csv_path = Path(tmpdir) / "time_series.csv"
        solver.time_series.to_dataframe().to_csv(csv_path)
        mlflow.log_artifact(str(csv_path))
