"""Command line interface."""

from wirefetch.cli.main import cli, main


__all__ = ["cli", "main"]
