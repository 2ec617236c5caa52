# CLI module for mobsentry
"""mobsentry CLI - Command-line interface for the mobsentry tool."""

from mobsentry.cli.main import app

__all__ = ["app"]
