"""gridspine command-line interface (typer + rich)."""

from gridspine.cli.app import app

__all__ = ["app"]
