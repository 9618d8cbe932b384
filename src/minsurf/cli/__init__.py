"""Console output for the minimal-surface entry point."""

from .console import console, dim, fail, header, ok, print_catalogue, print_summary

__all__ = [
    "console",
    "dim",
    "fail",
    "header",
    "ok",
    "print_catalogue",
    "print_summary",
]
