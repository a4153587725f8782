"""Command-line interface for fileguard."""

from fileguard.cli.app import app

__all__ = ["app"]
