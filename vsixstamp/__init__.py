"""VSIX metadata stamping for build pipelines.

Rewrites the identity, display name, version and gallery flags of a
packaged extension (.vsix) without touching its payload, so one generic
package can be published under environment-specific identities.
"""

__version__ = "0.1.0"

from vsixstamp.archive import (
    ArchiveCreateError,
    ArchiveError,
    ArchiveExtractError,
    ArchiveTool,
    CommandArchiveTool,
    ZipArchiveTool,
)
from vsixstamp.edits import PendingEdits
from vsixstamp.editor import EditState, InvalidStateError, VsixEditor
from vsixstamp.flags import GalleryFlagsEditor
from vsixstamp.manifest import ManifestData, ManifestParseError, VsixManifest
from vsixstamp.naming import resolve_output_path
from vsixstamp.tasks import TaskManifestError, update_task_manifests

__all__ = [
    "__version__",
    "ArchiveCreateError",
    "ArchiveError",
    "ArchiveExtractError",
    "ArchiveTool",
    "CommandArchiveTool",
    "EditState",
    "GalleryFlagsEditor",
    "InvalidStateError",
    "ManifestData",
    "ManifestParseError",
    "PendingEdits",
    "TaskManifestError",
    "VsixEditor",
    "VsixManifest",
    "ZipArchiveTool",
    "resolve_output_path",
    "update_task_manifests",
]
