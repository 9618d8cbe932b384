"""
Tests for parameter, metric and history containers.

Tests:
- Derived defaults of Parameters
- MLflow conversions (no None params, numeric metrics only)
- DataFrame export of the convergence history
"""

import pandas as pd
import pytest

from minsurf.datastructures import Metrics, Parameters, SolverState, TimeSeries


class TestParameters:
    """Input configuration."""

    def test_defaults(self):
        params = Parameters()
        assert (params.order, params.nx, params.ny, params.refine) == (3, 6, 6, 2)
        assert params.max_iterations == 32
        assert params.tolerance == pytest.approx(1e-4)
        assert params.vdim == 3
        assert params.method == "Picard-ByVector"

    def test_componentwise(self):
        params = Parameters(by_components=True)
        assert params.vdim == 1
        assert params.method == "Picard-ByComponent"

    def test_to_mlflow_has_no_none(self):
        flat = Parameters().to_mlflow()
        assert flat["seed"] == "none"
        assert None not in flat.values()

    def test_to_dataframe(self):
        df = Parameters(surface=8).to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert df.loc[0, "surface"] == 8


class TestMetrics:
    """Output results."""

    def test_to_mlflow_numeric(self):
        metrics = Metrics(iterations=5, converged=True, final_residual=1e-5,
                          state=SolverState.CONVERGED.value)
        flat = metrics.to_mlflow()
        assert "state" not in flat
        assert flat["converged"] == 1.0
        assert all(isinstance(v, float) for v in flat.values())


class TestTimeSeries:
    """Convergence history."""

    def test_to_dataframe(self):
        ts = TimeSeries(rel_residual=[1e-1, 1e-2, 1e-3], surface_area=[3.0, 2.5, 2.4])
        df = ts.to_dataframe()
        assert df.index.name == "iteration"
        assert list(df.columns) == ["rel_residual", "surface_area"]
        assert len(df) == 3

    def test_optional_area(self):
        df = TimeSeries(rel_residual=[0.5]).to_dataframe()
        assert list(df.columns) == ["rel_residual"]

    def test_to_mlflow_batch(self):
        ts = TimeSeries(rel_residual=[1e-1, 1e-2], surface_area=[3.0, 2.5])
        batch = ts.to_mlflow_batch()
        assert len(batch) == 4
        steps = sorted((m.key, m.step) for m in batch)
        assert steps[0] == ("rel_residual", 0)
        assert steps[-1] == ("surface_area", 1)
