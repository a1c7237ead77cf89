"""Staged metadata edits recorded by an editing session."""

from __future__ import annotations

from dataclasses import dataclass

from vsixstamp.flags import DEFAULT_REQUEST


@dataclass
class PendingEdits:
    """Metadata changes waiting to be written into a VSIX package.

    Attributes:
        version: New extension version.
        id: New extension id (replaces the manifest value).
        id_suffix: Tag appended to the id after any replacement.
        publisher: New publisher id.
        display_name: New display name.
        visibility: Visibility request ("default" means leave untouched).
        pricing: Pricing request ("default" means leave untouched).
        update_tasks_version: Stamp the extension version into nested tasks.
        update_tasks_id: Regenerate nested task ids from the identity.
    """

    version: str | None = None
    id: str | None = None
    id_suffix: str | None = None
    publisher: str | None = None
    display_name: str | None = None
    visibility: str | None = None
    pricing: str | None = None
    update_tasks_version: bool = True
    update_tasks_id: bool = True

    @property
    def has_visibility(self) -> bool:
        return bool(self.visibility) and self.visibility != DEFAULT_REQUEST

    @property
    def has_pricing(self) -> bool:
        return bool(self.pricing) and self.pricing != DEFAULT_REQUEST

    def has_edits(self) -> bool:
        """Whether finalizing these edits requires rewriting the package.

        ``update_tasks_id`` alone counts as an edit, so a session with the
        default settings always goes through the round trip.
        """
        return bool(
            self.version
            or self.id
            or self.id_suffix
            or self.publisher
            or self.display_name
            or self.has_visibility
            or self.has_pricing
            or self.update_tasks_id
        )

    def should_update_tasks(self) -> bool:
        # The id flag triggers the update on its own, whatever the version flag says.
        return bool(self.version and self.update_tasks_version) or self.update_tasks_id

    def resolve_extension_id(self, current_id: str) -> str:
        extension_id = self.id or current_id
        if self.id_suffix:
            extension_id += self.id_suffix
        return extension_id
