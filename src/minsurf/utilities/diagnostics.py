"""Diagnostics sinks receiving the geometry once per Picard iteration.

Sinks are best effort: the solver logs and swallows any exception a sink
raises.
"""

import logging
from pathlib import Path

import mlflow

log = logging.getLogger(__name__)


class DiagnosticsSink:
    """Receives (mesh, iteration, residual); residual is None before the first solve."""

    def push(self, mesh, iteration: int, residual=None):
        raise NotImplementedError

    def close(self):
        pass


class NullSink(DiagnosticsSink):
    def push(self, mesh, iteration: int, residual=None):
        pass


class PyVistaSink(DiagnosticsSink):
    """Write one ``.vtu`` snapshot of the surface per iteration."""

    def __init__(self, output_dir, prefix: str = "surface"):
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self.paths = []

    def push(self, mesh, iteration: int, residual=None):
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"{self.prefix}_{iteration:03d}.vtu"
        grid = mesh.to_pyvista()
        if residual is not None:
            grid.field_data["rel_residual"] = [float(residual)]
        grid.save(str(path))
        self.paths.append(path)


class MLflowSink(DiagnosticsSink):
    """Log the residual of the active MLflow run at each iteration."""

    def push(self, mesh, iteration: int, residual=None):
        if residual is None or not mlflow.active_run():
            return
        mlflow.log_metric("rel_residual", float(residual), step=iteration)


class CompositeSink(DiagnosticsSink):
    def __init__(self, *sinks):
        self.sinks = [s for s in sinks if s is not None]

    def push(self, mesh, iteration: int, residual=None):
        for sink in self.sinks:
            sink.push(mesh, iteration, residual)

    def close(self):
        for sink in self.sinks:
            sink.close()
