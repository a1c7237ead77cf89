"""vsix-stamp CLI.

Main command-line interface for editing VSIX packages.
"""

import tempfile
from pathlib import Path
from typing import Optional

import typer

from cli.commands.config import config_app
from cli.vsixstamp.output import (
    console,
    print_error,
    print_info,
    print_manifest,
    print_success,
    setup_logging,
)

app = typer.Typer(
    name="vsix-stamp",
    help="Stamp identity, version and gallery metadata into VSIX packages.",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")


@app.callback()
def callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to vsixstamp.toml (default: search current and parent directories)",
    ),
) -> None:
    """Configure logging and settings for every command."""
    from vsixstamp.config import reload_config

    try:
        config = reload_config(config_file)
    except ValueError as e:
        print_error(f"Failed to load configuration: {e}")
        raise typer.Exit(1)
    setup_logging("DEBUG" if verbose else config.logging.level)


@app.command()
def edit(
    vsix_file: Path = typer.Argument(..., help="VSIX package to edit"),
    output_path: Optional[Path] = typer.Option(
        None,
        "--output-path",
        "-o",
        help="Directory for the generated package (default: next to the input)",
    ),
    publisher: Optional[str] = typer.Option(None, "--publisher", help="Publisher id"),
    extension_id: Optional[str] = typer.Option(None, "--extension-id", help="Extension id"),
    extension_tag: Optional[str] = typer.Option(
        None, "--extension-tag", help="Suffix appended to the extension id"
    ),
    extension_version: Optional[str] = typer.Option(
        None, "--extension-version", help="Extension version"
    ),
    extension_name: Optional[str] = typer.Option(
        None, "--extension-name", help="Extension display name"
    ),
    extension_visibility: Optional[str] = typer.Option(
        None,
        "--extension-visibility",
        help="default|private|privatepreview|public|publicpreview",
    ),
    extension_pricing: Optional[str] = typer.Option(
        None, "--extension-pricing", help="default|free|paid"
    ),
    update_tasks_version: bool = typer.Option(
        True,
        "--update-tasks-version/--no-update-tasks-version",
        help="Stamp the extension version into contributed build tasks",
    ),
    update_tasks_id: bool = typer.Option(
        True,
        "--update-tasks-id/--no-update-tasks-id",
        help="Regenerate contributed build task ids",
    ),
    archive_tool: Optional[str] = typer.Option(
        None,
        "--archive-tool",
        help="Archive backend: zipfile|command (default from config)",
    ),
) -> None:
    """Write a copy of a VSIX package with updated metadata.

    Examples:
        vsix-stamp edit tool.vsix --extension-version 1.2.3
        vsix-stamp edit tool.vsix -o dist --extension-tag -dev --extension-visibility private
    """
    from vsixstamp import (
        ArchiveError,
        InvalidStateError,
        ManifestParseError,
        TaskManifestError,
        VsixEditor,
    )
    from vsixstamp.config import get_config

    if not vsix_file.exists():
        print_error(f"VSIX file does not exist: {vsix_file}")
        raise typer.Exit(1)

    config = get_config()
    if archive_tool:
        config.archive.tool = archive_tool

    try:
        editor = VsixEditor.from_config(vsix_file, output_path, config=config)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    editor.start()
    if extension_version is not None:
        editor.edit_version(extension_version)
    if extension_id is not None:
        editor.edit_id(extension_id)
    if extension_tag is not None:
        editor.edit_id_suffix(extension_tag)
    if publisher is not None:
        editor.edit_publisher(publisher)
    if extension_name is not None:
        editor.edit_display_name(extension_name)
    if extension_visibility is not None:
        editor.edit_visibility(extension_visibility)
    if extension_pricing is not None:
        editor.edit_pricing(extension_pricing)
    editor.edit_update_tasks_version(update_tasks_version)
    editor.edit_update_tasks_id(update_tasks_id)

    try:
        result = editor.finalize()
    except (ArchiveError, ManifestParseError, TaskManifestError, InvalidStateError) as e:
        print_error(f"Failed to edit {vsix_file}: {e}")
        raise typer.Exit(1)

    if result == vsix_file:
        print_info(f"No edits requested, keeping {result}")
    else:
        print_success(f"Created {result}")
    typer.echo(str(result))


@app.command()
def inspect(
    vsix_file: Path = typer.Argument(..., help="VSIX package to inspect"),
) -> None:
    """Show the identity and gallery metadata of a VSIX package.

    Example:
        vsix-stamp inspect tool.vsix
    """
    from vsixstamp import ArchiveError, ManifestParseError, VsixManifest
    from vsixstamp.archive import find_member, get_archive_tool
    from vsixstamp.config import get_config
    from vsixstamp.manifest import VSIX_MANIFEST_NAME

    if not vsix_file.exists():
        print_error(f"VSIX file does not exist: {vsix_file}")
        raise typer.Exit(1)

    config = get_config()
    try:
        tool = get_archive_tool(config.archive.tool)
        with tempfile.TemporaryDirectory(prefix=config.archive.temp_prefix) as tmp_dir:
            tool.extract(vsix_file, [VSIX_MANIFEST_NAME], Path(tmp_dir))
            manifest = VsixManifest.load(find_member(Path(tmp_dir), VSIX_MANIFEST_NAME))
    except (ArchiveError, ManifestParseError, ValueError) as e:
        print_error(f"Failed to read {vsix_file}: {e}")
        raise typer.Exit(1)

    print_manifest(manifest, title=vsix_file.name)


@app.command()
def version() -> None:
    """Show the vsix-stamp version."""
    from vsixstamp import __version__

    console.print(f"vsix-stamp {__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
