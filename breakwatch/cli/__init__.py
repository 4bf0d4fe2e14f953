"""Command-line interface for BreakWatch."""

from breakwatch.cli.main import cli, main

__all__ = ["cli", "main"]
