"""runstate CLI package."""

__all__ = ["cli_app"]

from .commands import cli_app
