"""Gallery flags editing for VSIX manifests.

The ``GalleryFlags`` element of ``extension.vsixmanifest`` holds a
space-delimited set of tokens that drive marketplace classification
(``Public``, ``Preview``, ``Paid``, plus whatever else the publisher
tooling put there).
"""

from __future__ import annotations

PUBLIC_FLAG = "Public"
PREVIEW_FLAG = "Preview"
PAID_FLAG = "Paid"

DEFAULT_REQUEST = "default"


class GalleryFlagsEditor:
    """Ordered, duplicate-free gallery flag set.

    Unknown tokens are kept as-is and in their original order. Adding a
    flag that is already present, or removing one that is absent, leaves
    the set unchanged.

    Example:
        >>> editor = GalleryFlagsEditor("Public Paid")
        >>> editor.apply_pricing("free")
        >>> editor.serialize()
        'Public'
    """

    def __init__(self, flags: str | None = None):
        self.flags: list[str] = []
        for flag in (flags or "").split(" "):
            if flag:
                self.add_flag(flag)

    def add_flag(self, flag: str) -> None:
        if flag not in self.flags:
            self.flags.append(flag)

    def remove_flag(self, flag: str) -> None:
        if flag in self.flags:
            self.flags.remove(flag)

    def add_public_flag(self) -> None:
        self.add_flag(PUBLIC_FLAG)

    def remove_public_flag(self) -> None:
        self.remove_flag(PUBLIC_FLAG)

    def add_preview_flag(self) -> None:
        self.add_flag(PREVIEW_FLAG)

    def remove_preview_flag(self) -> None:
        self.remove_flag(PREVIEW_FLAG)

    def add_paid_flag(self) -> None:
        self.add_flag(PAID_FLAG)

    def remove_paid_flag(self) -> None:
        self.remove_flag(PAID_FLAG)

    def apply_visibility(self, visibility: str | None) -> None:
        """Set Public/Preview presence from a visibility request.

        Both flags are rewritten: whichever of ``public`` / ``preview`` does
        not appear in the request is removed.

        Args:
            visibility: Request string such as ``"public"``, ``"private"``,
                ``"privatepreview"`` or ``"publicpreview"``.
        """
        if not visibility or visibility == DEFAULT_REQUEST:
            return

        if "public" in visibility:
            self.add_public_flag()
        else:
            self.remove_public_flag()

        if "preview" in visibility:
            self.add_preview_flag()
        else:
            self.remove_preview_flag()

    def apply_pricing(self, pricing: str | None) -> None:
        """Set Paid presence from a pricing request.

        Unlike visibility, a request mentioning neither ``free`` nor
        ``paid`` leaves the Paid flag alone.
        """
        if not pricing or pricing == DEFAULT_REQUEST:
            return

        if "free" in pricing:
            self.remove_paid_flag()

        if "paid" in pricing:
            self.add_paid_flag()

    def serialize(self) -> str:
        return " ".join(self.flags)

    def __str__(self) -> str:
        return self.serialize()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.serialize()!r})"
