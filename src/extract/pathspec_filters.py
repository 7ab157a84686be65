"""Pathspec-backed include/exclude filters for project file scans."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, cast

from pathspec import GitIgnoreSpec, PathSpec

DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = ("node_modules", ".git")


@dataclass(frozen=True)
class ProjectScanPathspec:
    """Compiled pathspec filters for project scanning."""

    include_spec: PathSpec | None
    exclude_spec: PathSpec | None
    ignore_spec: GitIgnoreSpec | None
    exclude_dirs: frozenset[str]


@dataclass(frozen=True)
class PathspecCheck:
    """Decision for one project-relative path."""

    include: bool
    excluded_by_dir: bool
    ignored: bool


class _CheckResult(Protocol):
    include: bool | None
    index: int | None


def compile_globs(globs: Sequence[str]) -> PathSpec | None:
    """Compile gitwildmatch globs.

    Returns
    -------
    PathSpec | None
        Compiled spec, or ``None`` when no globs are given.
    """
    lines = list(globs)
    if not lines:
        return None
    from_lines = cast("Callable[[str, Iterable[str]], PathSpec]", PathSpec.from_lines)
    return from_lines("gitwildmatch", lines)


def anchor_glob(pattern: str) -> str:
    """Anchor a glob at the project root, as shell-style globbing would.

    Patterns starting with ``**/`` already match at any depth and are kept.

    Returns
    -------
    str
        Root-anchored gitwildmatch pattern.
    """
    negated = pattern.startswith("!")
    body = pattern[1:] if negated else pattern
    if body.startswith("/") or body.startswith("**/"):
        return pattern
    while body.startswith("./"):
        body = body[2:]
    return f"{'!' if negated else ''}/{body}"


def build_project_pathspec(
    project_root: Path,
    *,
    include_globs: Sequence[str],
    exclude_globs: Sequence[str] = (),
    exclude_dirs: Sequence[str] = DEFAULT_EXCLUDE_DIRS,
) -> ProjectScanPathspec:
    """Compile pathspec filters for a project scan.

    Include globs are anchored at the project root; exclude globs follow
    gitignore matching.

    Returns
    -------
    ProjectScanPathspec
        Compiled pathspec filters.
    """
    return ProjectScanPathspec(
        include_spec=compile_globs([anchor_glob(glob) for glob in include_globs]),
        exclude_spec=compile_globs(exclude_globs),
        ignore_spec=_gitignore_spec(project_root),
        exclude_dirs=frozenset(exclude_dirs),
    )


def check_project_path(
    rel_path: Path,
    *,
    filters: ProjectScanPathspec,
    allow_ignored: bool,
) -> PathspecCheck:
    """Return a pathspec decision for a project-relative path.

    Returns
    -------
    PathspecCheck
        Decision payload for the path.
    """
    if _is_excluded_dir(rel_path, filters.exclude_dirs):
        return PathspecCheck(include=False, excluded_by_dir=True, ignored=False)
    rel_posix = rel_path.as_posix()
    include_result = _check_spec(filters.include_spec, rel_posix)
    if include_result is not None and include_result.include is not True:
        return PathspecCheck(include=False, excluded_by_dir=False, ignored=False)
    exclude_result = _check_spec(filters.exclude_spec, rel_posix)
    if exclude_result is not None and exclude_result.include is True:
        return PathspecCheck(include=False, excluded_by_dir=False, ignored=False)
    ignore_result = _check_spec(filters.ignore_spec, rel_posix)
    ignored = ignore_result is not None and ignore_result.include is True
    if ignored and not allow_ignored:
        return PathspecCheck(include=False, excluded_by_dir=False, ignored=True)
    return PathspecCheck(include=True, excluded_by_dir=False, ignored=ignored)


def iter_project_files(
    project_root: Path,
    *,
    filters: ProjectScanPathspec,
    allow_ignored: bool = False,
) -> Iterator[Path]:
    """Yield project-relative files accepted by ``filters`` in sorted order.

    Excluded directories are pruned during the walk, and symlinked
    directories are not followed.

    Yields
    ------
    Path
        Project-relative file path.
    """
    for dirpath, dirnames, filenames in os.walk(project_root):
        rel_dir = Path(dirpath).relative_to(project_root)
        dirnames[:] = sorted(name for name in dirnames if name not in filters.exclude_dirs)
        for filename in sorted(filenames):
            rel_path = rel_dir / filename
            if check_project_path(rel_path, filters=filters, allow_ignored=allow_ignored).include:
                yield rel_path


def _is_excluded_dir(rel_path: Path, exclude_dirs: Iterable[str]) -> bool:
    if not exclude_dirs:
        return False
    parts = set(rel_path.parts[:-1])
    return any(name in parts for name in exclude_dirs)


def _gitignore_spec(project_root: Path) -> GitIgnoreSpec | None:
    lines = _gitignore_lines(project_root)
    if not lines:
        return None
    ignore_from_lines = cast("Callable[[Iterable[str]], GitIgnoreSpec]", GitIgnoreSpec.from_lines)
    return ignore_from_lines(lines)


def _gitignore_lines(project_root: Path) -> list[str]:
    lines: list[str] = []
    root_ignore = project_root / ".gitignore"
    if root_ignore.is_file():
        lines.extend(_read_lines(root_ignore))
    git_dir = _resolve_git_dir(project_root)
    if git_dir is not None:
        info_ignore = git_dir / "info" / "exclude"
        if info_ignore.is_file():
            lines.extend(_read_lines(info_ignore))
    return lines


def _resolve_git_dir(project_root: Path) -> Path | None:
    git_entry = project_root / ".git"
    if git_entry.is_dir():
        return git_entry
    if not git_entry.is_file():
        return None
    try:
        content = git_entry.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    for raw_line in content.splitlines():
        stripped = raw_line.strip()
        if stripped.startswith("gitdir:"):
            git_dir = Path(stripped[len("gitdir:") :].strip())
            if not git_dir.is_absolute():
                git_dir = (project_root / git_dir).resolve()
            return git_dir
    return None


def _read_lines(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []


def _check_spec(spec: PathSpec | GitIgnoreSpec | None, path: str) -> _CheckResult | None:
    if spec is None:
        return None
    return cast("_CheckResult", spec.check_file(path))


__all__ = [
    "DEFAULT_EXCLUDE_DIRS",
    "PathspecCheck",
    "ProjectScanPathspec",
    "anchor_glob",
    "build_project_pathspec",
    "check_project_path",
    "compile_globs",
    "iter_project_files",
]
