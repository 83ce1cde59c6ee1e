"""Command-line interface for gantry."""

from gantry.cli.app import entrypoint, main

__all__ = [
    "entrypoint",
    "main",
]
