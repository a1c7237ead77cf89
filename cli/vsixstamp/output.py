"""Rich console output utilities for the vsix-stamp CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from vsixstamp.manifest import VsixManifest

console = Console()
error_console = Console(stderr=True)


def setup_logging(level: str = "INFO") -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {escape(message)}")


def print_manifest(manifest: VsixManifest, title: str = "Extension") -> None:
    """Print the editable manifest fields as a table."""
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Publisher", manifest.publisher)
    table.add_row("Id", manifest.id)
    table.add_row("Version", manifest.version)
    table.add_row("Display name", manifest.display_name or "-")
    table.add_row("Gallery flags", manifest.gallery_flags or "-")

    console.print(table)

