"""CLI commands for devstrap.

This package contains all subcommand implementations.
"""

from devstrap.cli.commands import apply, config, detect, plan

__all__ = ["apply", "config", "detect", "plan"]
