"""queuelock command-line interface (``queuelock`` console script)."""

from queuelock.cli.app import app

__all__ = ["app"]
