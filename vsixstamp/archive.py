"""Archive backends for extracting and updating VSIX packages.

Two interchangeable implementations are provided:
- ZipArchiveTool: in-process, built on ``zipfile`` (default)
- CommandArchiveTool: drives ``unzip``/``zip`` (or ``7za`` on Windows)
"""

from __future__ import annotations

import fnmatch
import logging
import os
import shutil
import subprocess
import sys
import tempfile
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

MAX_COMPRESSION_LEVEL = 9


class ArchiveError(Exception):
    """Base class for archive tool failures."""

    def __init__(self, message: str, output: str | None = None):
        super().__init__(message)
        self.output = output

    def __str__(self) -> str:
        message = super().__str__()
        if self.output:
            return f"{message}\n{self.output}"
        return message


class ArchiveExtractError(ArchiveError):
    """Raised when members cannot be extracted from an archive."""

    pass


class ArchiveCreateError(ArchiveError):
    """Raised when files cannot be written into an archive."""

    pass


class ArchiveTool(ABC):
    """Abstract archive backend used by the VSIX editor."""

    name: str = "base"

    @abstractmethod
    def extract(self, archive: Path, patterns: Sequence[str], dest_dir: Path) -> None:
        """Extract the members matching ``patterns`` into ``dest_dir``.

        Matching is case-insensitive. Patterns that match nothing are not
        an error.

        Raises:
            ArchiveExtractError: If the archive cannot be read.
        """
        ...

    @abstractmethod
    def compress(self, source_dir: Path, archive: Path) -> None:
        """Add every file under ``source_dir`` to ``archive``.

        Existing entries with the same name are replaced; everything else in
        the archive is left as it was.

        Raises:
            ArchiveCreateError: If the archive cannot be written.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def match_members(names: Sequence[str], patterns: Sequence[str]) -> list[str]:
    """Return the archive member names matching any pattern, ignoring case."""
    lowered = [pattern.lower() for pattern in patterns]
    return [
        name
        for name in names
        if not name.endswith("/")
        and any(fnmatch.fnmatchcase(name.lower(), pattern) for pattern in lowered)
    ]


def find_member(root: Path, name: str | Path) -> Path:
    """Locate an extracted file below ``root``, ignoring case.

    Each component of ``name`` is matched against the extracted tree, since
    extraction keeps the member names as they are stored in the archive.
    Falls back to ``root / name`` when nothing matches.
    """
    exact = Path(root) / name
    if exact.exists():
        return exact

    current = Path(root)
    for part in Path(name).parts:
        if not current.is_dir():
            return exact
        for child in current.iterdir():
            if child.name.lower() == part.lower():
                current = child
                break
        else:
            return exact
    return current


def iter_files(source_dir: Path) -> list[tuple[Path, str]]:
    """List files below ``source_dir`` with their archive names."""
    source_dir = Path(source_dir)
    return [
        (path, path.relative_to(source_dir).as_posix())
        for path in sorted(source_dir.rglob("*"))
        if path.is_file()
    ]


class ZipArchiveTool(ArchiveTool):
    """Archive backend built on the standard ``zipfile`` module.

    ``zipfile`` cannot replace entries in place, so ``compress`` writes a
    new archive next to the target and swaps it in once complete.
    """

    name = "zipfile"

    def __init__(self, compression_level: int = MAX_COMPRESSION_LEVEL):
        self.compression_level = compression_level

    def extract(self, archive: Path, patterns: Sequence[str], dest_dir: Path) -> None:
        try:
            with zipfile.ZipFile(archive) as zf:
                members = match_members(zf.namelist(), patterns)
                for member in members:
                    logger.debug("Extracting %s", member)
                    zf.extract(member, dest_dir)
        except (zipfile.BadZipFile, OSError) as e:
            raise ArchiveExtractError(f"Failed to extract {archive}: {e}") from e

    def compress(self, source_dir: Path, archive: Path) -> None:
        archive = Path(archive)
        files = iter_files(source_dir)
        replacements = {name: path for path, name in files}

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{archive.name}.", suffix=".tmp", dir=archive.parent
        )
        os.close(fd)
        tmp_path = Path(tmp_name)

        try:
            with zipfile.ZipFile(archive) as src, zipfile.ZipFile(
                tmp_path,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
            ) as dst:
                for info in src.infolist():
                    path = replacements.pop(info.filename, None)
                    if path is not None:
                        self._write_file(dst, path, info.filename)
                    else:
                        dst.writestr(info, src.read(info.filename))

                for name, path in replacements.items():
                    self._write_file(dst, path, name)

            os.replace(tmp_path, archive)
        except (zipfile.BadZipFile, OSError) as e:
            tmp_path.unlink(missing_ok=True)
            raise ArchiveCreateError(f"Failed to update {archive}: {e}") from e

    def _write_file(self, dst: zipfile.ZipFile, path: Path, name: str) -> None:
        logger.debug("Adding %s", name)
        dst.write(
            path,
            name,
            compress_type=zipfile.ZIP_DEFLATED,
            compresslevel=self.compression_level,
        )


class CommandArchiveTool(ArchiveTool):
    """Archive backend that shells out to the platform archivers.

    Uses ``7za`` on Windows and ``unzip``/``zip`` elsewhere. Commands run with
    an explicit working directory; the process working directory is never
    changed.
    """

    name = "command"

    # unzip: 11 = no matching files found
    UNZIP_OK = {0, 11}
    # 7-Zip: 1 = warning (non fatal)
    SEVEN_ZIP_OK = {0, 1}
    ZIP_OK = {0}

    def __init__(
        self,
        windows: bool | None = None,
        timeout: int = 300,
        compression_level: int = MAX_COMPRESSION_LEVEL,
    ):
        self.windows = sys.platform == "win32" if windows is None else windows
        self.timeout = timeout
        self.compression_level = compression_level

    def extract(self, archive: Path, patterns: Sequence[str], dest_dir: Path) -> None:
        archive = Path(archive).resolve()
        if self.windows:
            args = [
                self._which("7za", ArchiveExtractError),
                "x",
                str(archive),
                f"-o{dest_dir}",
                *[pattern.rsplit("/", 1)[-1] for pattern in patterns],
                "-y",
                "-r",
                "-bd",
                "-aoa",
                "-spd",
            ]
            ok = self.SEVEN_ZIP_OK
        else:
            args = [
                self._which("unzip", ArchiveExtractError),
                "-o",
                "-C",
                "-d",
                str(dest_dir),
                str(archive),
                *patterns,
            ]
            ok = self.UNZIP_OK

        self._run(args, ArchiveExtractError, ok, cwd=Path(dest_dir))

    def compress(self, source_dir: Path, archive: Path) -> None:
        archive = Path(archive).resolve()
        if self.windows:
            args = [
                self._which("7za", ArchiveCreateError),
                "u",
                str(archive),
                "*",
                "-r",
                "-y",
                "-tzip",
                f"-mx{self.compression_level}",
                "-bd",
            ]
            ok = self.SEVEN_ZIP_OK
        else:
            args = [
                self._which("zip", ArchiveCreateError),
                "-r",  # recurse
                "-D",  # no directory entries
                f"-{self.compression_level}",
                str(archive),
                ".",
            ]
            ok = self.ZIP_OK

        self._run(args, ArchiveCreateError, ok, cwd=Path(source_dir))

    def _which(self, command: str, error: type[ArchiveError]) -> str:
        path = shutil.which(command)
        if path is None:
            raise error(f"Command not found: {command}")
        return path

    def _run(
        self,
        args: list[str],
        error: type[ArchiveError],
        ok_codes: set[int],
        cwd: Path,
    ) -> None:
        logger.debug("Running %s in %s", " ".join(args), cwd)
        try:
            result = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise error(f"{Path(args[0]).name} timed out after {self.timeout}s") from e
        except OSError as e:
            raise error(f"Failed to run {Path(args[0]).name}: {e}") from e

        if result.returncode not in ok_codes:
            raise error(
                f"{Path(args[0]).name} exited with status {result.returncode}",
                output=(result.stderr or result.stdout).strip() or None,
            )


ARCHIVE_TOOLS: dict[str, type[ArchiveTool]] = {
    ZipArchiveTool.name: ZipArchiveTool,
    CommandArchiveTool.name: CommandArchiveTool,
}


def get_archive_tool(name: str = "zipfile", **kwargs) -> ArchiveTool:
    """Instantiate an archive backend by name.

    Args:
        name: Backend name ("zipfile" or "command").
        **kwargs: Backend constructor arguments.

    Raises:
        ValueError: If the backend name is unknown.
    """
    try:
        tool_class = ARCHIVE_TOOLS[name]
    except KeyError:
        raise ValueError(
            f"Unknown archive tool: {name}. Available: {sorted(ARCHIVE_TOOLS)}"
        ) from None
    return tool_class(**kwargs)
