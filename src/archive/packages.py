"""Function and layer package archives."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from archive.zip_builder import ArchiveEntry, ArchiveError, build_archive
from depgraph.closure import DependencyClosure

logger = logging.getLogger(__name__)

DEFAULT_CODE_FILENAME = "index.mjs"
LAYER_PREFIX = "nodejs/node_modules"


@dataclass(frozen=True)
class LayerArchive:
    """Layer archive bytes with the packages it does and does not contain."""

    data: bytes
    included: tuple[str, ...]
    skipped: tuple[str, ...]


def build_function_archive(
    code: str,
    static_files: Sequence[ArchiveEntry] = (),
    *,
    filename: str = DEFAULT_CODE_FILENAME,
) -> bytes:
    """Archive bundled code followed by static files in their given order.

    Returns
    -------
    bytes
        Deterministic ZIP archive.
    """
    entries = [ArchiveEntry.from_text(filename, code), *static_files]
    return build_archive(entries)


def _package_files(package_dir: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(package_dir):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_symlink() and not path.exists():
                logger.debug("Skipping dangling symlink %s", path)
                continue
            yield path


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"Cannot read package file {path}: {exc}"
        raise ArchiveError(msg) from exc


def layer_entries(name: str, package_dir: Path) -> Iterator[ArchiveEntry]:
    """Yield archive entries for every file of one package.

    Yields
    ------
    ArchiveEntry
        Entry under ``nodejs/node_modules/<name>/`` in sorted walk order.
    """
    for path in _package_files(package_dir):
        rel_path = path.relative_to(package_dir).as_posix()
        yield ArchiveEntry(path=f"{LAYER_PREFIX}/{name}/{rel_path}", data=_read_bytes(path))


def build_layer_archive(closure: DependencyClosure) -> LayerArchive:
    """Archive every resolved package of a closure for the shared layer.

    Parameters
    ----------
    closure
        Dependency closure; packages are packed in sorted name order from
        their chosen directories.

    Returns
    -------
    LayerArchive
        Archive bytes plus included and skipped package names.

    Raises
    ------
    ArchiveError
        Raised when a package file cannot be read.
    """
    included: list[str] = []
    skipped: list[str] = []
    entries: list[ArchiveEntry] = []
    for name in sorted(closure.packages):
        package_dir = closure.resolved_paths.get(name)
        if package_dir is None or not Path(package_dir).is_dir():
            skipped.append(name)
            continue
        included.append(name)
        entries.extend(layer_entries(name, Path(package_dir)))
    if skipped:
        logger.warning("Layer skips %d packages not found on disk: %s", len(skipped), skipped)
    logger.info("Layer archive holds %d packages (%d files)", len(included), len(entries))
    return LayerArchive(
        data=build_archive(entries),
        included=tuple(included),
        skipped=tuple(skipped),
    )


__all__ = [
    "DEFAULT_CODE_FILENAME",
    "LAYER_PREFIX",
    "LayerArchive",
    "build_function_archive",
    "build_layer_archive",
    "layer_entries",
]
