"""Find handler source files and extract their descriptors in batch."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from functools import partial
from pathlib import Path

from extract.handler_configs import HandlerDescriptor, extract_handler_configs
from extract.parallel import parallel_map
from extract.pathspec_filters import (
    DEFAULT_EXCLUDE_DIRS,
    build_project_pathspec,
    iter_project_files,
)
from handler_registry import HandlerKind, definition_for, parse_kind
from serde_msgspec import StructBaseStrict
from utils.file_io import read_text

logger = logging.getLogger(__name__)

DEFAULT_HANDLER_PATTERNS: tuple[str, ...] = (
    "**/*.ts",
    "**/*.tsx",
    "**/*.mts",
    "**/*.js",
    "**/*.mjs",
)


class HandlerNotFoundError(LookupError):
    """Raised when a file has no usable handler under the requested export."""


class DiscoveredFile(StructBaseStrict, frozen=True):
    """Descriptors of one handler kind found in one file."""

    path: str
    kind: HandlerKind
    descriptors: tuple[HandlerDescriptor, ...]


class DiscoveryFailure(StructBaseStrict, frozen=True):
    """Failure scoped to one file, or one export within it."""

    path: str
    reason: str
    kind: HandlerKind | None = None
    export_name: str | None = None
    property: str | None = None
    line: int | None = None


class DiscoveryResult(StructBaseStrict, frozen=True):
    """Outcome of a discovery pass across many files."""

    files: tuple[DiscoveredFile, ...] = ()
    failures: tuple[DiscoveryFailure, ...] = ()

    def descriptors_for(self, kind: HandlerKind | str) -> list[tuple[str, HandlerDescriptor]]:
        """Return ``(path, descriptor)`` pairs for one handler kind.

        Returns
        -------
        list[tuple[str, HandlerDescriptor]]
            Pairs in discovery order.
        """
        resolved = parse_kind(kind)
        return [
            (item.path, descriptor)
            for item in self.files
            if item.kind == resolved
            for descriptor in item.descriptors
        ]


class _FileOutcome(StructBaseStrict, frozen=True):
    files: tuple[DiscoveredFile, ...] = ()
    failures: tuple[DiscoveryFailure, ...] = ()


def find_handler_files(
    patterns: str | Sequence[str],
    project_dir: Path,
    *,
    exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
) -> list[Path]:
    """Return handler source files matching gitwildmatch patterns.

    Parameters
    ----------
    patterns
        One or more patterns relative to ``project_dir``.
    project_dir
        Project root directory.
    exclude_dirs
        Directory names pruned from the walk.

    Returns
    -------
    list[Path]
        Absolute file paths, sorted and de-duplicated. Paths ignored by the
        project's ``.gitignore`` are skipped.
    """
    globs = [patterns] if isinstance(patterns, str) else list(patterns)
    if not globs:
        return []
    root = project_dir.resolve()
    filters = build_project_pathspec(root, include_globs=globs, exclude_dirs=exclude_dirs)
    found = {root / rel_path for rel_path in iter_project_files(root, filters=filters)}
    return sorted(found)


def _discover_file(path: Path, kinds: tuple[HandlerKind, ...]) -> _FileOutcome:
    try:
        source = read_text(path)
    except (OSError, UnicodeDecodeError) as exc:
        return _FileOutcome(
            failures=(DiscoveryFailure(path=str(path), reason=f"Unable to read file: {exc}"),)
        )
    files: list[DiscoveredFile] = []
    failures: list[DiscoveryFailure] = []
    for kind in kinds:
        if definition_for(kind).definer not in source:
            continue
        report = extract_handler_configs(source, kind, path=path)
        if report.descriptors:
            files.append(DiscoveredFile(path=str(path), kind=kind, descriptors=report.descriptors))
        failures.extend(
            DiscoveryFailure(
                path=str(path),
                reason=failure.reason,
                kind=kind,
                export_name=failure.export_name,
                property=failure.property,
                line=failure.line,
            )
            for failure in report.failures
        )
    return _FileOutcome(files=tuple(files), failures=tuple(failures))


def discover_handlers(
    files: Iterable[Path],
    kinds: Iterable[HandlerKind | str] | None = None,
    *,
    max_workers: int | None = None,
) -> DiscoveryResult:
    """Extract descriptors of the requested kinds from every file.

    Parameters
    ----------
    files
        Source files to scan.
    kinds
        Handler kinds to look for; defaults to every registered kind.
    max_workers
        Worker count for the parallel pass; ``1`` runs serially.

    Returns
    -------
    DiscoveryResult
        Discovered descriptors in file order, plus failures. A failing file
        never aborts the pass.
    """
    resolved_kinds = (
        tuple(HandlerKind) if kinds is None else tuple(parse_kind(kind) for kind in kinds)
    )
    paths = list(files)
    worker = partial(_discover_file, kinds=resolved_kinds)
    discovered: list[DiscoveredFile] = []
    failures: list[DiscoveryFailure] = []
    for outcome in parallel_map(paths, worker, max_workers=max_workers):
        discovered.extend(outcome.files)
        failures.extend(outcome.failures)
    logger.debug(
        "Discovered %d handler file entries across %d files",
        len(discovered),
        len(paths),
    )
    return DiscoveryResult(files=tuple(discovered), failures=tuple(failures))


def locate_handler(
    file: Path,
    export_name: str,
    kind: HandlerKind | str | None = None,
) -> HandlerDescriptor:
    """Return the descriptor of one export in one file.

    Parameters
    ----------
    file
        Handler source file.
    export_name
        Export to look up; ``"default"`` for the default export.
    kind
        Handler kind; every kind is tried when omitted.

    Returns
    -------
    HandlerDescriptor
        The single matching descriptor.

    Raises
    ------
    HandlerNotFoundError
        Raised when the export is missing, failed extraction, or matches
        more than one handler kind.
    """
    result = discover_handlers([file], None if kind is None else [kind], max_workers=1)
    matches = [
        descriptor
        for item in result.files
        for descriptor in item.descriptors
        if descriptor.export_name == export_name
    ]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        kinds = ", ".join(str(match.handler_kind) for match in matches)
        msg = f"Export {export_name!r} in {file} matches several handler kinds ({kinds})"
        raise HandlerNotFoundError(msg)
    for failure in result.failures:
        if failure.export_name == export_name or failure.export_name is None:
            msg = f"Export {export_name!r} in {file} cannot be extracted: {failure.reason}"
            raise HandlerNotFoundError(msg)
    msg = f"No handler export {export_name!r} found in {file}"
    raise HandlerNotFoundError(msg)


__all__ = [
    "DEFAULT_HANDLER_PATTERNS",
    "DiscoveredFile",
    "DiscoveryFailure",
    "DiscoveryResult",
    "HandlerNotFoundError",
    "discover_handlers",
    "find_handler_files",
    "locate_handler",
]
