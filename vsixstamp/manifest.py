"""VSIX manifest model and field patching.

Wraps the ``extension.vsixmanifest`` XML document with typed accessors for
the handful of fields the editor touches: the ``Identity`` attributes,
``DisplayName`` and ``GalleryFlags``.
"""

from __future__ import annotations

import contextlib
import io
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from vsixstamp.edits import PendingEdits
from vsixstamp.flags import GalleryFlagsEditor
from vsixstamp.naming import resolve_output_path

logger = logging.getLogger(__name__)

VSIX_MANIFEST_NAME = "extension.vsixmanifest"
VSO_MANIFEST_NAME = "extension.vsomanifest"

VSX_NAMESPACES = {
    "": "http://schemas.microsoft.com/developer/vsx-schema/2011",
    "d": "http://schemas.microsoft.com/developer/vsx-schema-design/2011",
}

# ElementTree keeps one process-wide prefix map; the VSIX schema prefixes
# are registered once here.
for _prefix, _uri in VSX_NAMESPACES.items():
    ET.register_namespace(_prefix, _uri)


class ManifestParseError(Exception):
    """Raised when the VSIX manifest is malformed or missing required nodes."""

    pass


class VsixManifest:
    """Parsed ``extension.vsixmanifest`` document.

    The identity attributes are validated when the document is parsed, so
    the accessors never have to deal with a missing ``Identity`` node.

    Example:
        >>> manifest = VsixManifest.load(Path("extension.vsixmanifest"))
        >>> manifest.version = "2.0.0"
        >>> manifest.save(Path("extension.vsixmanifest"))
    """

    def __init__(self, root: ET.Element, namespaces: list[tuple[str, str]] | None = None):
        self.root = root
        self.namespaces = namespaces or []

        identity = root.find(".//{*}Identity")
        if identity is None:
            raise ManifestParseError("VSIX manifest is missing the Identity element")
        for attribute in ("Id", "Version", "Publisher"):
            if not identity.get(attribute):
                raise ManifestParseError(
                    f"VSIX manifest Identity is missing the {attribute} attribute"
                )
        self.identity = identity

        metadata = root.find(".//{*}Metadata")
        self.metadata = metadata if metadata is not None else root

    @classmethod
    def from_bytes(cls, data: bytes) -> VsixManifest:
        """Parse a manifest, remembering its namespace prefixes."""
        namespaces: list[tuple[str, str]] = []
        root: ET.Element | None = None
        try:
            for event, item in ET.iterparse(io.BytesIO(data), events=("start-ns", "start")):
                if event == "start-ns":
                    namespaces.append(item)
                elif root is None:
                    root = item
        except ET.ParseError as e:
            raise ManifestParseError(f"VSIX manifest is not well-formed XML: {e}") from e

        if root is None:
            raise ManifestParseError("VSIX manifest is empty")
        return cls(root, namespaces)

    @classmethod
    def from_string(cls, text: str) -> VsixManifest:
        return cls.from_bytes(text.encode("utf-8"))

    @classmethod
    def load(cls, path: Path) -> VsixManifest:
        try:
            data = Path(path).read_bytes()
        except FileNotFoundError as e:
            raise ManifestParseError(f"VSIX manifest not found: {path}") from e
        return cls.from_bytes(data)

    @property
    def id(self) -> str:
        return self.identity.get("Id", "")

    @id.setter
    def id(self, value: str) -> None:
        self.identity.set("Id", value)

    @property
    def version(self) -> str:
        return self.identity.get("Version", "")

    @version.setter
    def version(self, value: str) -> None:
        self.identity.set("Version", value)

    @property
    def publisher(self) -> str:
        return self.identity.get("Publisher", "")

    @publisher.setter
    def publisher(self, value: str) -> None:
        self.identity.set("Publisher", value)

    @property
    def display_name(self) -> str:
        return self._get_text("DisplayName")

    @display_name.setter
    def display_name(self, value: str) -> None:
        self._set_text("DisplayName", value)

    @property
    def gallery_flags(self) -> str:
        return self._get_text("GalleryFlags")

    @gallery_flags.setter
    def gallery_flags(self, value: str) -> None:
        self._set_text("GalleryFlags", value)

    def _get_text(self, name: str) -> str:
        element = self.metadata.find(f"{{*}}{name}")
        if element is None or element.text is None:
            return ""
        return element.text

    def _set_text(self, name: str, value: str) -> None:
        element = self.metadata.find(f"{{*}}{name}")
        if element is None:
            element = ET.SubElement(self.metadata, self._qualify(name))
        element.text = value

    def _qualify(self, name: str) -> str:
        tag = self.identity.tag
        if tag.startswith("{"):
            return tag[: tag.index("}") + 1] + name
        return name

    def to_bytes(self) -> bytes:
        """Serialize the document, keeping its namespace prefixes.

        Prefixes outside the VSIX schema are added to ElementTree's
        process-wide prefix map, so they also apply to later serializations
        in the same process.
        """
        for prefix, uri in self.namespaces:
            if VSX_NAMESPACES.get(prefix) == uri:
                continue
            # ElementTree reserves ns0, ns1, ... for its own prefixes.
            with contextlib.suppress(ValueError):
                ET.register_namespace(prefix, uri)
        return ET.tostring(self.root, encoding="utf-8", xml_declaration=True)

    def to_string(self) -> str:
        return self.to_bytes().decode("utf-8")

    def save(self, path: Path) -> None:
        Path(path).write_bytes(self.to_bytes())


@dataclass
class ManifestData:
    """Resolved manifest values after patching.

    Attributes:
        version: Extension version written to the manifest.
        id: Extension id written to the manifest.
        publisher: Publisher written to the manifest.
        visibility: Visibility request that was applied.
        pricing: Pricing request that was applied.
        name: Display name written to the manifest.
        dir_path: Scratch directory holding the extracted files.
        output_file_name: Output archive path, once resolved.
    """

    version: str
    id: str
    publisher: str
    visibility: str | None
    pricing: str | None
    name: str
    dir_path: Path
    output_file_name: Path | None = None

    def create_output_file_path(self, output_path: Path) -> Path:
        """Pick a free ``.gen.vsix`` file name in ``output_path``."""
        self.output_file_name = resolve_output_path(
            output_path, self.publisher, self.id, self.version
        )
        return self.output_file_name


def apply_edits(manifest: VsixManifest, edits: PendingEdits) -> None:
    """Apply pending edits to a parsed manifest in place."""
    if edits.version:
        manifest.version = edits.version
    if edits.id:
        manifest.id = edits.id
    if edits.id_suffix:
        manifest.id = manifest.id + edits.id_suffix
    if edits.publisher:
        manifest.publisher = edits.publisher
    if edits.display_name:
        manifest.display_name = edits.display_name

    if edits.has_visibility:
        flags_editor = GalleryFlagsEditor(manifest.gallery_flags)
        flags_editor.apply_visibility(edits.visibility)
        manifest.gallery_flags = flags_editor.serialize()

    if edits.has_pricing:
        flags_editor = GalleryFlagsEditor(manifest.gallery_flags)
        flags_editor.apply_pricing(edits.pricing)
        manifest.gallery_flags = flags_editor.serialize()


def patch_manifest(
    manifest_path: Path, edits: PendingEdits, dir_path: Path | None = None
) -> ManifestData:
    """Rewrite ``extension.vsixmanifest`` with the pending edits.

    Args:
        manifest_path: Path to the extracted manifest.
        edits: Edits to apply.
        dir_path: Scratch directory the manifest was extracted to
            (defaults to the manifest's parent directory).

    Returns:
        The resolved manifest values.

    Raises:
        ManifestParseError: If the manifest is malformed.
    """
    manifest_path = Path(manifest_path)
    manifest = VsixManifest.load(manifest_path)
    apply_edits(manifest, edits)
    manifest.save(manifest_path)

    logger.debug(
        "Patched manifest identity: %s.%s %s", manifest.publisher, manifest.id, manifest.version
    )

    return ManifestData(
        version=manifest.version,
        id=manifest.id,
        publisher=manifest.publisher,
        visibility=edits.visibility,
        pricing=edits.pricing,
        name=manifest.display_name,
        dir_path=Path(dir_path) if dir_path is not None else manifest_path.parent,
    )
