"""vsix-stamp CLI.

Command-line interface for stamping VSIX packages.
"""

from cli.vsixstamp.cli import app, main

__all__ = ["app", "main"]
