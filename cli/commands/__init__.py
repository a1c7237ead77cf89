"""CLI command modules for vsix-stamp."""

from cli.commands.config import config_app

__all__ = ["config_app"]
