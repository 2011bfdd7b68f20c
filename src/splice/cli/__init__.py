"""Splice CLI package."""

from splice.cli.main import cli, main

__all__ = ["cli", "main"]
