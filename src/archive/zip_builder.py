"""Deterministic ZIP archives with pinned timestamps and permissions."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass

# Earliest timestamp the ZIP format can represent.
FIXED_DATE_TIME: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
COMPRESSION_LEVEL = 9
FILE_MODE = 0o100644
CREATE_SYSTEM_UNIX = 3


class ArchiveError(RuntimeError):
    """Raised when an archive cannot be assembled."""


@dataclass(frozen=True)
class ArchiveEntry:
    """One archive member: a POSIX archive path and its bytes."""

    path: str
    data: bytes

    @classmethod
    def from_text(cls, path: str, text: str) -> ArchiveEntry:
        """Build an entry from UTF-8 text.

        Returns
        -------
        ArchiveEntry
            Entry holding the encoded text.
        """
        return cls(path=path, data=text.encode("utf-8"))


def normalize_archive_path(path: str) -> str:
    """Return a canonical archive member path.

    Returns
    -------
    str
        POSIX path without leading ``./`` or ``/``.

    Raises
    ------
    ArchiveError
        Raised for empty paths or paths escaping the archive root.
    """
    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    parts = normalized.split("/")
    if not normalized or any(part in {"", ".", ".."} for part in parts):
        msg = f"Invalid archive path: {path!r}"
        raise ArchiveError(msg)
    return normalized


def _zip_info(path: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename=path, date_time=FIXED_DATE_TIME)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.create_system = CREATE_SYSTEM_UNIX
    info.external_attr = FILE_MODE << 16
    return info


def build_archive(entries: Iterable[ArchiveEntry]) -> bytes:
    """Write entries into a ZIP archive in the given order.

    Every entry carries the same timestamp, permission bits and creator
    system, so identical entries in identical order give identical bytes.

    Parameters
    ----------
    entries
        Archive members in output order.

    Returns
    -------
    bytes
        ZIP archive bytes.

    Raises
    ------
    ArchiveError
        Raised for invalid or duplicate archive paths.
    """
    buffer = io.BytesIO()
    seen: set[str] = set()
    with zipfile.ZipFile(
        buffer,
        mode="w",
        compression=zipfile.ZIP_DEFLATED,
        compresslevel=COMPRESSION_LEVEL,
    ) as archive:
        for entry in entries:
            path = normalize_archive_path(entry.path)
            if path in seen:
                msg = f"Duplicate archive path: {path}"
                raise ArchiveError(msg)
            seen.add(path)
            archive.writestr(_zip_info(path), entry.data, compresslevel=COMPRESSION_LEVEL)
    return buffer.getvalue()


__all__ = [
    "FIXED_DATE_TIME",
    "ArchiveEntry",
    "ArchiveError",
    "build_archive",
    "normalize_archive_path",
]
