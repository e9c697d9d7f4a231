"""CLI interface."""

from polywatch.interfaces.cli.main import app

__all__ = ["app"]
