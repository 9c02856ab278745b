"""Command line utilities for lapsync."""

from lapsync.cli.app import main, run_cli
from lapsync.cli.errors import CliError

__all__ = ["CliError", "main", "run_cli"]
