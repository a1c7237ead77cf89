"""Config CLI commands for vsix-stamp.

Inspect the settings a stamping run will use.
"""

from dataclasses import asdict
from typing import Any, Optional

import typer
from rich.console import Console

console = Console()

config_app = typer.Typer(
    name="config",
    help="Inspect configuration settings.",
)


def _print_section(name: str, values: dict[str, Any]) -> None:
    console.print(f"\n[bold]\\[{name}][/bold]")
    for key, value in values.items():
        console.print(f"  {key} = {value}", highlight=False)


@config_app.command("show")
def config_show(
    section: Optional[str] = typer.Argument(
        None,
        help="Config section to show (archive, tasks, logging)",
    ),
) -> None:
    """Show current configuration.

    Examples:
        vsix-stamp config show
        vsix-stamp config show archive
    """
    from vsixstamp.config import get_config, get_config_path

    config_path = get_config_path()
    if config_path:
        console.print(f"[blue]→[/blue] Config file: {config_path}", soft_wrap=True)
    else:
        console.print("[yellow]No vsixstamp.toml found (using defaults)[/yellow]")

    sections = asdict(get_config())

    if section:
        section_lower = section.lower()
        if section_lower not in sections:
            console.print(f"[red]Unknown section: {section}[/red]")
            console.print(f"[dim]Available: {', '.join(sections)}[/dim]")
            raise typer.Exit(1)
        _print_section(section_lower, sections[section_lower])
        return

    for name, values in sections.items():
        _print_section(name, values)
