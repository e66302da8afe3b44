"""Diagnostic command-line interface."""

from contextpack.cli.main import cli, main

__all__ = ["cli", "main"]
