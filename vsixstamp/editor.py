"""VSIX editing session.

A ``VsixEditor`` collects metadata edits for one package and applies them
in a single extract / patch / re-archive round trip:

    editor = VsixEditor(Path("tool.vsix"), Path("out"))
    editor.start()
    editor.edit_version("2.0.0")
    editor.edit_visibility("public")
    output = editor.finalize()
"""

from __future__ import annotations

import functools
import logging
import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from vsixstamp.archive import (
    ArchiveCreateError,
    ArchiveTool,
    ZipArchiveTool,
    find_member,
    get_archive_tool,
)
from vsixstamp.config import Config, get_config
from vsixstamp.edits import PendingEdits
from vsixstamp.manifest import VSIX_MANIFEST_NAME, VSO_MANIFEST_NAME, patch_manifest
from vsixstamp.tasks import VersionType, update_task_manifests

logger = logging.getLogger(__name__)

# Task manifests live one directory down (or deeper); the extension
# manifests sit at the archive root.
EXTRACT_PATTERNS = (
    "*/task.json",
    "*/task.loc.json",
    VSIX_MANIFEST_NAME,
    VSO_MANIFEST_NAME,
)

TaskUpdater = Callable[[Path, PendingEdits], Any]


class InvalidStateError(Exception):
    """Raised when the editor is used outside of its edit session."""

    pass


class EditState(str, Enum):
    """Lifecycle of an editing session."""

    UNSTARTED = "unstarted"
    STARTED = "started"
    FINALIZED = "finalized"


class VsixEditor:
    """Single-use editing session for a VSIX package.

    Edits can only be recorded between ``start()`` and ``finalize()``;
    ``finalize()`` consumes the session whether it succeeds or not.

    Example:
        >>> editor = VsixEditor(Path("tool.vsix"), Path("dist"))
        >>> editor.start()
        >>> editor.edit_publisher("contoso")
        >>> editor.edit_id_suffix("-dev")
        >>> editor.finalize()
        PosixPath('dist/contoso.tool-dev-1.0.0.gen.vsix')
    """

    def __init__(
        self,
        input_file: Path | str,
        output_path: Path | str | None = None,
        archive_tool: ArchiveTool | None = None,
        task_updater: TaskUpdater | None = None,
        temp_prefix: str = "vsixeditor",
    ):
        """Initialize the session.

        Args:
            input_file: VSIX package to edit.
            output_path: Directory for the generated package (defaults to
                the input's directory).
            archive_tool: Archive backend (defaults to ``ZipArchiveTool``).
            task_updater: Callable updating nested task manifests, given the
                extracted ``extension.vsomanifest`` and the pending edits.
            temp_prefix: Prefix for the scratch directory.
        """
        self.input_file = Path(input_file)
        self.output_path = Path(output_path) if output_path is not None else self.input_file.parent
        self.archive_tool = archive_tool or ZipArchiveTool()
        self.task_updater = task_updater or update_task_manifests
        self.temp_prefix = temp_prefix
        self.state = EditState.UNSTARTED
        self.edits = PendingEdits()

    @classmethod
    def from_config(
        cls,
        input_file: Path | str,
        output_path: Path | str | None = None,
        config: Config | None = None,
    ) -> VsixEditor:
        """Build an editor with the archive backend and task settings from config.

        Raises:
            ValueError: If the archive tool or task version type is unknown.
        """
        config = config or get_config()
        try:
            version_type = VersionType(config.tasks.version_type)
        except ValueError:
            raise ValueError(
                f"Unknown task version type: {config.tasks.version_type!r} "
                f"(expected one of: {', '.join(v.value for v in VersionType)})"
            ) from None

        tool_kwargs: dict[str, Any] = {"compression_level": config.archive.compression_level}
        if config.archive.tool == "command":
            tool_kwargs["timeout"] = config.archive.timeout

        return cls(
            input_file,
            output_path,
            archive_tool=get_archive_tool(config.archive.tool, **tool_kwargs),
            task_updater=functools.partial(
                update_task_manifests, version_type=version_type
            ),
            temp_prefix=config.archive.temp_prefix,
        )

    def start(self) -> None:
        if self.state == EditState.STARTED:
            raise InvalidStateError("Edit is already started")
        if self.state == EditState.FINALIZED:
            raise InvalidStateError("Edit is already finished")
        self.state = EditState.STARTED
        logger.debug("Editing started")

    def edit_version(self, version: str) -> None:
        self._validate_edit_mode()
        self.edits.version = version

    def edit_id(self, extension_id: str) -> None:
        self._validate_edit_mode()
        self.edits.id = extension_id

    def edit_id_suffix(self, suffix: str) -> None:
        self._validate_edit_mode()
        self.edits.id_suffix = suffix

    def edit_publisher(self, publisher: str) -> None:
        self._validate_edit_mode()
        self.edits.publisher = publisher

    def edit_display_name(self, name: str) -> None:
        self._validate_edit_mode()
        self.edits.display_name = name

    def edit_visibility(self, visibility: str) -> None:
        self._validate_edit_mode()
        self.edits.visibility = visibility

    def edit_pricing(self, pricing: str) -> None:
        self._validate_edit_mode()
        self.edits.pricing = pricing

    def edit_update_tasks_version(self, update_tasks_version: bool) -> None:
        self._validate_edit_mode()
        self.edits.update_tasks_version = update_tasks_version

    def edit_update_tasks_id(self, update_tasks_id: bool) -> None:
        self._validate_edit_mode()
        self.edits.update_tasks_id = update_tasks_id

    def has_pending_edits(self) -> bool:
        return self.edits.has_edits()

    def finalize(self) -> Path:
        """Apply the pending edits and write the new package.

        Returns:
            Path to the generated package, or the input package itself when
            there is nothing to edit.

        Raises:
            InvalidStateError: If the session is not started or already
                finalized.
            ManifestParseError: If the VSIX manifest is malformed.
            ArchiveExtractError: If the package cannot be extracted.
            ArchiveCreateError: If the new package cannot be written.
        """
        self._validate_edit_mode()
        self.state = EditState.FINALIZED

        if not self.has_pending_edits():
            logger.debug("No pending edits, keeping %s", self.input_file)
            return self.input_file

        with tempfile.TemporaryDirectory(prefix=self.temp_prefix) as tmp_dir:
            return self._round_trip(Path(tmp_dir))

    def _round_trip(self, dir_path: Path) -> Path:
        logger.debug("Extracting files to %s", dir_path)
        self.archive_tool.extract(self.input_file, EXTRACT_PATTERNS, dir_path)

        if self.edits.should_update_tasks():
            logger.debug("Looking for build task manifests")
            self.task_updater(find_member(dir_path, VSO_MANIFEST_NAME), self.edits)

        logger.debug("Editing VSIX manifest")
        manifest_data = patch_manifest(
            find_member(dir_path, VSIX_MANIFEST_NAME), self.edits, dir_path
        )

        self.output_path.mkdir(parents=True, exist_ok=True)
        output_file = manifest_data.create_output_file_path(self.output_path)

        logger.debug("Creating final archive file at %s", output_file)
        self._create_archive(self.input_file, manifest_data.dir_path, output_file)
        logger.info("Created %s", output_file)

        return output_file

    def _create_archive(self, original_vsix: Path, dir_path: Path, target_vsix: Path) -> None:
        copied = False
        if original_vsix.resolve() != target_vsix.resolve():
            try:
                shutil.copyfile(original_vsix, target_vsix)
            except OSError as e:
                raise ArchiveCreateError(f"Failed to copy {original_vsix} to {target_vsix}: {e}") from e
            copied = True

        try:
            self.archive_tool.compress(dir_path, target_vsix)
        except Exception:
            if copied:
                target_vsix.unlink(missing_ok=True)
            raise

    def _validate_edit_mode(self) -> None:
        if self.state == EditState.UNSTARTED:
            raise InvalidStateError("Editing is not started")
        if self.state == EditState.FINALIZED:
            raise InvalidStateError("Edit is already finished")
