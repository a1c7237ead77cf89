"""Nested build task manifest updates.

Extensions that contribute pipeline tasks carry a ``task.json`` (and
optionally a ``task.loc.json``) per task. When an extension is restamped,
those descriptors are updated too:

- the task version follows the extension version
- the task id is regenerated from the publisher, extension id and task name,
  so two stamped copies of the same package never share task ids
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vsixstamp.archive import find_member
from vsixstamp.edits import PendingEdits
from vsixstamp.manifest import VSIX_MANIFEST_NAME, VsixManifest

logger = logging.getLogger(__name__)

TASK_CONTRIBUTION_TYPE = "ms.vss-distributed-task.task"
TASK_MANIFEST_NAMES = ("task.json", "task.loc.json")

TASK_ID_NAMESPACE = uuid.UUID("6f7a6d82-b1fe-4d64-a0e0-a62de5c1e5b5")

_VERSION_RE = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class TaskManifestError(Exception):
    """Raised when a task or extension manifest cannot be updated."""

    pass


class VersionType(str, Enum):
    """Which parts of the task version follow the extension version."""

    MAJOR = "major"  # Major, Minor and Patch
    MINOR = "minor"  # Minor and Patch
    PATCH = "patch"  # Patch only


class Contribution(BaseModel):
    """A single contribution entry of ``extension.vsomanifest``."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    type: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)


class VsoManifest(BaseModel):
    """The parts of ``extension.vsomanifest`` needed to find build tasks."""

    model_config = ConfigDict(extra="allow")

    contributions: list[Contribution] = Field(default_factory=list)

    def task_dirs(self) -> list[str]:
        """Task directories contributed by the extension, relative to its root."""
        return [
            c.properties["name"]
            for c in self.contributions
            if c.type == TASK_CONTRIBUTION_TYPE and c.properties.get("name")
        ]


class TaskVersion(BaseModel):
    """The ``version`` object of a task manifest."""

    model_config = ConfigDict(populate_by_name=True)

    major: int = Field(default=0, alias="Major")
    minor: int = Field(default=0, alias="Minor")
    patch: int = Field(default=0, alias="Patch")


def parse_version(version: str) -> tuple[int, int, int]:
    """Parse ``major.minor.patch`` from a version string.

    Missing parts default to 0 and pre-release/build suffixes are ignored.

    Raises:
        TaskManifestError: If the string does not start with a number.
    """
    match = _VERSION_RE.match(version)
    if not match:
        raise TaskManifestError(f"Invalid extension version: {version!r}")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return major, minor, patch


def generate_task_id(publisher: str, extension_id: str, task_name: str) -> str:
    return str(uuid.uuid5(TASK_ID_NAMESPACE, f"{publisher}.{extension_id}.{task_name}"))


def update_task_version(
    task: dict[str, Any], version: str, version_type: VersionType | str = VersionType.MAJOR
) -> None:
    """Stamp ``version`` into a task manifest's ``version`` object.

    Raises:
        TaskManifestError: If the existing task version is not numeric.
    """
    major, minor, patch = parse_version(version)
    version_type = VersionType(version_type)

    try:
        current = TaskVersion.model_validate(task.get("version") or {})
    except ValidationError as e:
        raise TaskManifestError(f"Invalid task version in {task.get('name')!r}: {e}") from e

    if version_type == VersionType.MAJOR:
        current.major = major
    if version_type in (VersionType.MAJOR, VersionType.MINOR):
        current.minor = minor
    current.patch = patch

    task_version = task.setdefault("version", {})
    task_version.update(current.model_dump(by_alias=True))


def _read_json(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise TaskManifestError(f"Invalid JSON in {path}: {e}") from e


def _write_json(path: Path, data: dict[str, Any]) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def load_vso_manifest(path: Path) -> VsoManifest:
    try:
        return VsoManifest.model_validate(_read_json(path))
    except ValidationError as e:
        raise TaskManifestError(f"Unexpected content in {path}: {e}") from e


def update_task_manifests(
    vso_manifest_path: Path,
    edits: PendingEdits,
    version_type: VersionType | str = VersionType.MAJOR,
) -> list[Path]:
    """Update the task manifests referenced by an extracted ``extension.vsomanifest``.

    Task directories are resolved relative to the manifest's directory and,
    like the extracted member names, matched ignoring case. The
    version is only stamped when ``edits.version`` is set and
    ``edits.update_tasks_version`` is on; ids are only regenerated when
    ``edits.update_tasks_id`` is on.

    Args:
        vso_manifest_path: Path to the extracted ``extension.vsomanifest``.
        edits: Pending session edits.
        version_type: Which version parts to overwrite.

    Returns:
        Paths of the task manifests that were rewritten.

    Raises:
        TaskManifestError: If a manifest is malformed.
    """
    vso_manifest_path = Path(vso_manifest_path)
    if not vso_manifest_path.exists():
        logger.warning("No %s found, skipping task manifests", vso_manifest_path.name)
        return []

    root = vso_manifest_path.parent
    task_dirs = load_vso_manifest(vso_manifest_path).task_dirs()
    if not task_dirs:
        logger.debug("Extension does not contribute build tasks")
        return []

    stamp_version = bool(edits.version and edits.update_tasks_version)
    publisher = extension_id = ""
    if edits.update_tasks_id:
        identity = VsixManifest.load(find_member(root, VSIX_MANIFEST_NAME))
        publisher = edits.publisher or identity.publisher
        extension_id = edits.resolve_extension_id(identity.id)

    updated = []
    for task_dir in task_dirs:
        for file_name in TASK_MANIFEST_NAMES:
            task_path = find_member(root, Path(task_dir, file_name))
            if not task_path.exists():
                continue

            task = _read_json(task_path)
            if stamp_version:
                update_task_version(task, edits.version, version_type)
            if edits.update_tasks_id:
                task_name = task.get("name") or Path(task_dir).name
                task["id"] = generate_task_id(publisher, extension_id, task_name)

            _write_json(task_path, task)
            logger.debug("Updated task manifest %s", task_path)
            updated.append(task_path)

    return updated
