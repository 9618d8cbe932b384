"""
Surface and convergence plots.

- mesh_to_pyvista: curved mesh -> UnstructuredGrid of linear sub-quads
- plot_surface: off-screen PyVista screenshot with the ParaView theme
- plot_convergence: residual history (semilog) with matplotlib/seaborn
"""

import logging
import os
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pyvista as pv
import seaborn as sns

log = logging.getLogger(__name__)

# Enable off-screen rendering
os.environ["PYVISTA_OFF_SCREEN"] = "true"

pv.set_plot_theme("paraview")

WINDOW_SIZE = [1600, 1600]


def mesh_to_pyvista(mesh) -> pv.UnstructuredGrid:
    """Split each order-p cell into p x p linear quads over the nodal points.

    Point data: ``coordinates`` magnitude (radius). Cell data: ``attribute``.
    """
    space = mesh.nodal_space
    p = space.order
    dofs = space.element_dofs.reshape(-1, p + 1, p + 1)  # [cell, b, a]

    quads = np.stack([
        dofs[:, :-1, :-1],
        dofs[:, :-1, 1:],
        dofs[:, 1:, 1:],
        dofs[:, 1:, :-1],
    ], axis=-1).reshape(-1, 4)

    cells = np.hstack([np.full((len(quads), 1), 4), quads]).ravel()
    celltypes = np.full(len(quads), pv.CellType.QUAD, dtype=np.uint8)
    grid = pv.UnstructuredGrid(cells, celltypes, np.asarray(mesh.nodes, dtype=float))

    grid.point_data["radius"] = np.linalg.norm(mesh.nodes, axis=1)
    grid.cell_data["attribute"] = np.repeat(mesh.cell_attributes, p * p)
    return grid


def plot_surface(mesh, output_path: Path, title: str = "") -> Path:
    """Render the surface with edges to a PNG."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    plotter = pv.Plotter(off_screen=True, window_size=WINDOW_SIZE)
    plotter.add_mesh(
        mesh.to_pyvista(),
        scalars="radius",
        cmap="viridis",
        show_edges=True,
        show_scalar_bar=False,
    )
    if title:
        plotter.add_text(title, font_size=18, color="black")
    plotter.view_isometric()
    plotter.screenshot(output_path, transparent_background=True)
    plotter.close()

    log.info(f"Saved: {output_path}")
    return output_path


def plot_convergence(timeseries_df: pd.DataFrame, surface: str, output_dir: Path) -> Path:
    """Plot relative residual history over Picard iterations."""
    if timeseries_df.empty:
        log.warning("No timeseries data available for convergence plot")
        return None

    sns.set_style("darkgrid")
    fig, ax = plt.subplots()

    for col in timeseries_df.columns:
        data = timeseries_df[col].dropna()
        if col == "rel_residual" and len(data) > 0:
            ax.semilogy(data.index, data, marker="o", label="Relative residual")

    if "surface_area" in timeseries_df.columns:
        ax2 = ax.twinx()
        ax2.plot(timeseries_df.index, timeseries_df["surface_area"], color="tab:orange", label="Area")
        ax2.set_ylabel("Surface area")
        ax2.grid(False)

    ax.set_xlabel("Iteration")
    ax.set_ylabel("Relative residual")
    ax.set_title(f"Convergence History - {surface}")
    ax.legend(frameon=True)

    fig.patch.set_alpha(0.0)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "convergence.pdf"
    fig.savefig(output_path, facecolor=(0, 0, 0, 0))
    plt.close(fig)

    return output_path
