"""Diagnostics sinks, MLflow tracking and plotting helpers."""

from .diagnostics import CompositeSink, DiagnosticsSink, MLflowSink, NullSink, PyVistaSink

__all__ = [
    "CompositeSink",
    "DiagnosticsSink",
    "MLflowSink",
    "NullSink",
    "PyVistaSink",
]
