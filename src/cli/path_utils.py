"""Path helper utilities for CLI commands."""

from __future__ import annotations

from pathlib import Path


def resolve_path(base_dir: Path, value: Path | str | None) -> Path | None:
    """Resolve a path relative to ``base_dir`` when needed.

    Returns
    -------
    Path | None
        Absolute path, or ``None`` when input is ``None``.
    """
    if value is None:
        return None
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def display_path(path: Path, base_dir: Path) -> str:
    """Return ``path`` relative to ``base_dir`` when it lies inside it.

    Returns
    -------
    str
        Relative POSIX path, or the absolute path otherwise.
    """
    try:
        return path.relative_to(base_dir).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = ["display_path", "resolve_path"]
