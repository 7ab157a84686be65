"""Resolve package names to installed directories.

Resolution is a single capability, "find package X starting from directory
D", used with different base directories. That keeps the grapher independent
of the package manager's on-disk layout.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

NODE_MODULES = "node_modules"
NESTED_STORE_DIR = ".pnpm"


def _real_dir(candidate: Path) -> Path | None:
    try:
        if not candidate.is_dir():
            return None
        return Path(os.path.realpath(candidate))
    except OSError as exc:
        logger.debug("Cannot resolve %s: %s", candidate, exc)
        return None


def resolve_package(name: str, base_dir: Path) -> Path | None:
    """Resolve a package the way Node resolves bare specifiers.

    Every ancestor of ``base_dir`` (itself included) is tried as
    ``<ancestor>/node_modules/<name>``; ancestors that are themselves
    ``node_modules`` directories are skipped.

    Parameters
    ----------
    name
        Package name; scoped names (``@scope/name``) are one identity.
    base_dir
        Directory resolution starts from.

    Returns
    -------
    Path | None
        Symlink-resolved package directory, or ``None`` when not installed.
    """
    for ancestor in (base_dir, *base_dir.parents):
        if ancestor.name == NODE_MODULES:
            continue
        found = _real_dir(ancestor / NODE_MODULES / name)
        if found is not None:
            return found
    return None


def nested_store_key(name: str) -> str:
    """Return the nested-store directory prefix for a package name.

    Returns
    -------
    str
        Name with the scope separator replaced, e.g. ``@scope+name``.
    """
    return name.replace("/", "+")


def find_in_nested_store(project_dir: Path, name: str) -> Path | None:
    """Find a package inside the content-addressed nested store.

    Entries look like ``node_modules/.pnpm/<name>@<version>/node_modules/<name>``.
    When several versions are present the first in sorted entry order wins.

    Returns
    -------
    Path | None
        Symlink-resolved package directory, or ``None`` when absent.
    """
    store = project_dir / NODE_MODULES / NESTED_STORE_DIR
    if not store.is_dir():
        return None
    prefix = f"{nested_store_key(name)}@"
    try:
        entries = sorted(entry.name for entry in store.iterdir() if entry.name.startswith(prefix))
    except OSError as exc:
        logger.debug("Cannot list nested store %s: %s", store, exc)
        return None
    for entry in entries:
        found = _real_dir(store / entry / NODE_MODULES / name)
        if found is not None:
            return found
    return None


def resolve_from_root(project_dir: Path, name: str) -> Path | None:
    """Resolve a package relative to the project root.

    Returns
    -------
    Path | None
        Package directory from regular resolution, falling back to the
        nested store.
    """
    return resolve_package(name, project_dir) or find_in_nested_store(project_dir, name)


__all__ = [
    "NESTED_STORE_DIR",
    "NODE_MODULES",
    "find_in_nested_store",
    "nested_store_key",
    "resolve_from_root",
    "resolve_package",
]
