"""Typed views of ``package.json`` and ``package-lock.json`` files."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import msgspec

from serde_msgspec import StructBaseCompat
from utils.file_io import read_json_as

logger = logging.getLogger(__name__)

MANIFEST_NAME = "package.json"
LOCKFILE_NAME = "package-lock.json"


class ManifestError(ValueError):
    """Raised when the project manifest is missing or malformed."""


class PackageManifest(StructBaseCompat, frozen=True, rename="camel"):
    """Subset of ``package.json`` fields used for dependency resolution."""

    name: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = msgspec.field(default_factory=dict)
    dev_dependencies: dict[str, str] = msgspec.field(default_factory=dict)
    optional_dependencies: dict[str, str] = msgspec.field(default_factory=dict)
    peer_dependencies: dict[str, str] = msgspec.field(default_factory=dict)


class LockfileEntry(StructBaseCompat, frozen=True):
    """Lockfile record; only the resolved version is read."""

    version: str | None = None


class Lockfile(StructBaseCompat, frozen=True, rename="camel"):
    """Subset of ``package-lock.json`` across lockfile versions 1-3."""

    lockfile_version: int | None = None
    packages: dict[str, LockfileEntry] = msgspec.field(default_factory=dict)
    dependencies: dict[str, LockfileEntry] = msgspec.field(default_factory=dict)


def read_project_manifest(project_dir: Path) -> PackageManifest:
    """Read the project's ``package.json``.

    Returns
    -------
    PackageManifest
        Decoded manifest.

    Raises
    ------
    ManifestError
        Raised when the manifest cannot be read or decoded.
    """
    path = project_dir / MANIFEST_NAME
    try:
        return read_json_as(path, target_type=PackageManifest)
    except FileNotFoundError as exc:
        msg = f"Cannot read {MANIFEST_NAME} at {path}"
        raise ManifestError(msg) from exc
    except OSError as exc:
        msg = f"Cannot read {MANIFEST_NAME} at {path}: {exc}"
        raise ManifestError(msg) from exc
    except msgspec.DecodeError as exc:
        msg = f"Invalid {MANIFEST_NAME} at {path}: {exc}"
        raise ManifestError(msg) from exc


def read_package_manifest(package_dir: Path) -> PackageManifest | None:
    """Read an installed package's manifest, tolerating damage.

    Returns
    -------
    PackageManifest | None
        Decoded manifest, or ``None`` when missing or malformed.
    """
    path = package_dir / MANIFEST_NAME
    try:
        return read_json_as(path, target_type=PackageManifest)
    except (OSError, msgspec.DecodeError) as exc:
        logger.debug("Ignoring unreadable manifest %s: %s", path, exc)
        return None


def production_dependencies(manifest: PackageManifest) -> list[str]:
    """Return the project's production dependency names in declared order.

    Returns
    -------
    list[str]
        Keys of ``dependencies``; dev dependencies are excluded.
    """
    return list(manifest.dependencies)


def declared_dependencies(manifest: PackageManifest | None) -> list[str]:
    """Return every runtime dependency a package declares.

    Returns
    -------
    list[str]
        Union of regular, optional and peer dependency names, first
        occurrence order.
    """
    if manifest is None:
        return []
    names: dict[str, None] = {}
    for group in (
        manifest.dependencies,
        manifest.optional_dependencies,
        manifest.peer_dependencies,
    ):
        names.update(dict.fromkeys(group))
    return list(names)


def installed_version(package_dir: Path) -> str | None:
    """Return the version field of an installed package.

    Returns
    -------
    str | None
        Version string, or ``None`` when unavailable.
    """
    manifest = read_package_manifest(package_dir)
    if manifest is None or not manifest.version:
        return None
    return manifest.version


def _top_level_package_name(lock_key: str) -> str | None:
    prefix = "node_modules/"
    if not lock_key.startswith(prefix):
        return None
    name = lock_key[len(prefix) :]
    if "/node_modules/" in name:
        return None
    return name or None


def read_lockfile_versions(project_dir: Path) -> Mapping[str, str]:
    """Return top-level package versions recorded in ``package-lock.json``.

    Returns
    -------
    Mapping[str, str]
        Package name to version; empty when no usable lockfile exists.
    """
    path = project_dir / LOCKFILE_NAME
    if not path.is_file():
        return {}
    try:
        lockfile = read_json_as(path, target_type=Lockfile)
    except (OSError, msgspec.DecodeError) as exc:
        logger.warning("Ignoring unreadable lockfile %s: %s", path, exc)
        return {}
    versions: dict[str, str] = {}
    for name, entry in lockfile.dependencies.items():
        if entry.version:
            versions[name] = entry.version
    for key, entry in lockfile.packages.items():
        name = _top_level_package_name(key)
        if name is not None and entry.version:
            versions[name] = entry.version
    return versions


__all__ = [
    "LOCKFILE_NAME",
    "MANIFEST_NAME",
    "Lockfile",
    "LockfileEntry",
    "ManifestError",
    "PackageManifest",
    "declared_dependencies",
    "installed_version",
    "production_dependencies",
    "read_lockfile_versions",
    "read_package_manifest",
]
