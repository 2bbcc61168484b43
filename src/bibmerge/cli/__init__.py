"""Command-line interface for bibmerge."""

from bibmerge.cli.main import cli

__all__ = ["cli"]
