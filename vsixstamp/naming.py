"""Output file naming for generated VSIX packages."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def output_file_name(publisher: str, extension_id: str, version: str, generation: int = 0) -> str:
    """Build the canonical output name, e.g. ``acme.tool-1.0.0.gen.vsix``.

    Generation 0 has no number; later generations are zero-padded to two
    digits (``gen01``, ``gen02``, ...).
    """
    gen = f"{generation:02d}" if generation > 0 else ""
    return f"{publisher}.{extension_id}-{version}.gen{gen}.vsix"


def resolve_output_path(
    output_dir: Path, publisher: str, extension_id: str, version: str
) -> Path:
    """Return the first output path in ``output_dir`` that does not exist yet.

    The check is not atomic: a concurrent writer can still claim the name
    before the caller writes to it.
    """
    output_dir = Path(output_dir)
    generation = 0
    candidate = output_dir / output_file_name(publisher, extension_id, version)
    while candidate.exists():
        generation += 1
        candidate = output_dir / output_file_name(publisher, extension_id, version, generation)

    logger.debug("Generated filename: %s", candidate.name)
    return candidate
