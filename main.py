"""
Minimal Surface Relaxation - entry point.

Usage:
    python main.py
    python main.py params.surface=8 params.nx=8 params.ny=8
    python main.py params.by_components=true params.pa=false
    python main.py -m params.surface=0,1,2,3,4,5,6,7,8,9
    python main.py list_surfaces=true
"""

import contextlib
import logging
import sys
from pathlib import Path

import hydra
import mlflow
from dotenv import load_dotenv
from hydra.core.hydra_config import HydraConfig
from hydra.utils import instantiate
from omegaconf import DictConfig, OmegaConf

load_dotenv()
sys.path.insert(0, str(Path(__file__).parent / "src"))

from minsurf.cli import print_catalogue, print_summary  # noqa: E402
from minsurf.surfaces import SURFACES, create_surface, get_surface, make_solver  # noqa: E402
from minsurf.utilities import CompositeSink, MLflowSink, PyVistaSink  # noqa: E402
from minsurf.utilities.mlflow import log_solver_results, setup_mlflow_tracking  # noqa: E402

log = logging.getLogger(__name__)


def run_solver(cfg: DictConfig, output_dir: Path):
    """Build the surface, relax it and log to MLflow. Returns the solver."""
    params = instantiate(cfg.params)
    surface_name = get_surface(params.surface).name

    mesh, space, ess_tdofs = create_surface(params.surface, params)

    sinks = [MLflowSink()]
    if params.vis:
        sinks.append(PyVistaSink(output_dir / "snapshots", prefix=surface_name))
    solver = make_solver(params, mesh, space, ess_tdofs, sink=CompositeSink(*sinks))

    run_ctx = (
        mlflow.start_run(run_name=f"{surface_name}_p{params.order}_r{params.refine}",
                         tags={"surface": surface_name, "method": params.method})
        if cfg.mlflow.enabled
        else contextlib.nullcontext()
    )
    with run_ctx as run:
        if run is not None:
            mlflow.log_params(params.to_mlflow())
            mlflow.log_dict(OmegaConf.to_container(cfg), "config.yaml")

        log.info(f"Solving: {surface_name} order={params.order} refine={params.refine} ({params.method})")
        solver.solve()

        if run is not None:
            log_solver_results(solver, run)

    log.info(
        f"Done: {solver.metrics.iterations} iter, converged={solver.metrics.converged}, "
        f"time={solver.metrics.wall_time_seconds:.2f}s"
    )
    print_summary(surface_name, solver.metrics, solver.time_series)
    return solver, surface_name


def generate_plots(solver, surface_name: str, output_dir: Path):
    """Convergence history and a rendering of the relaxed surface."""
    from minsurf.utilities.visualization import plot_convergence, plot_surface

    plot_convergence(solver.time_series.to_dataframe(), surface_name, output_dir)
    plot_surface(solver.mesh, output_dir / f"{surface_name}.png", title=surface_name)


@hydra.main(config_path="conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Main entry point."""
    if cfg.get("list_surfaces"):
        print_catalogue(SURFACES)
        return

    output_dir = Path(HydraConfig.get().runtime.output_dir)
    if cfg.mlflow.enabled:
        experiment = setup_mlflow_tracking(
            cfg.mlflow.get("tracking_uri", "./mlruns"),
            cfg.experiment_name,
            mode=cfg.mlflow.get("mode", "local"),
        )
        log.info(f"MLflow experiment: {experiment}")

    solver, surface_name = run_solver(cfg, output_dir)
    if cfg.get("plot"):
        generate_plots(solver, surface_name, output_dir)


if __name__ == "__main__":
    main()
