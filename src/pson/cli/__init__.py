"""Command-line interface for pson.

This package provides the CLI implementation split into logical modules:

- main: Core CLI entry point and encode/inspect commands
- dictionary: Dictionary store commands (stats, export, import)
"""

from __future__ import annotations

from pson.cli.main import cli, main

__all__ = ["cli", "main"]
