"""Command line interface."""

from switchboard.frontends.cli.main import main

__all__ = ["main"]
