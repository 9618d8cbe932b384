"""Rich console output helpers."""

from rich.console import Console
from rich.table import Table

console = Console()


def ok(msg: str):
    """Print success message."""
    console.print(f"  [green]✓[/green] {msg}")


def fail(msg: str):
    """Print failure message."""
    console.print(f"  [red]✗[/red] {msg}")


def dim(msg: str):
    """Print dimmed message."""
    console.print(f"  [dim]{msg}[/dim]")


def header(msg: str):
    """Print bold header."""
    console.print(f"\n[bold]{msg}[/bold]")


def print_catalogue(surfaces: dict):
    """Table of selectable surfaces (code -> class)."""
    table = Table(title="Surfaces")
    table.add_column("Code", justify="right")
    table.add_column("Name")
    table.add_column("Topology")
    for code in sorted(surfaces):
        surface = surfaces[code]
        topology = "unit-square grid" if surface.grid_topology else "explicit cells"
        table.add_row(str(code), surface.name, topology)
    console.print(table)


def print_summary(surface_name: str, metrics, time_series=None):
    """Outcome line plus a short residual table."""
    header(f"{surface_name}: {metrics.state}")
    line = (
        f"{metrics.iterations} iterations, residual {metrics.final_residual:.3e}, "
        f"area {metrics.surface_area:.6f}, {metrics.wall_time_seconds:.2f}s"
    )
    if metrics.converged:
        ok(line)
    else:
        fail(line)
    dim(f"{metrics.n_elements} cells, {metrics.n_dofs} true dofs")

    if time_series is not None and time_series.rel_residual:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Iteration", justify="right")
        table.add_column("Relative residual", justify="right")
        for i, r in enumerate(time_series.rel_residual):
            table.add_row(str(i), f"{r:.6e}")
        console.print(table)
