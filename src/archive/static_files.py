"""Resolve static asset globs into archive entries."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from archive.zip_builder import ArchiveEntry, ArchiveError
from extract.pathspec_filters import (
    DEFAULT_EXCLUDE_DIRS,
    build_project_pathspec,
    check_project_path,
    iter_project_files,
)

logger = logging.getLogger(__name__)


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read static file {path}: {exc}"
        raise ArchiveError(msg) from exc


def resolve_static_files(globs: Sequence[str], project_dir: Path) -> list[ArchiveEntry]:
    """Resolve static globs to archive entries with project-relative paths.

    Globs are applied in order; the files each one matches are taken in
    sorted path order, and a file matched by an earlier glob is not repeated.
    Directories never become entries. Files ignored by ``.gitignore`` are
    still included, since build outputs are a common static source.

    Parameters
    ----------
    globs
        Gitwildmatch patterns relative to the project root.
    project_dir
        Project root directory.

    Returns
    -------
    list[ArchiveEntry]
        Entries whose paths are project-relative POSIX paths.

    Raises
    ------
    ArchiveError
        Raised when a matched file cannot be read.
    """
    if not globs:
        return []
    root = project_dir.resolve()
    everything = build_project_pathspec(root, include_globs=(), exclude_dirs=DEFAULT_EXCLUDE_DIRS)
    candidates = list(iter_project_files(root, filters=everything, allow_ignored=True))
    entries: list[ArchiveEntry] = []
    seen: set[Path] = set()
    for glob in globs:
        filters = build_project_pathspec(root, include_globs=[glob])
        matched = [
            rel_path
            for rel_path in candidates
            if rel_path not in seen
            and check_project_path(rel_path, filters=filters, allow_ignored=True).include
        ]
        if not matched:
            logger.debug("Static glob %r matched no files under %s", glob, root)
        for rel_path in matched:
            seen.add(rel_path)
            data = _read_bytes(root / rel_path)
            entries.append(ArchiveEntry(path=rel_path.as_posix(), data=data))
    return entries


__all__ = ["resolve_static_files"]
