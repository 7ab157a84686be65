"""Stable cache keys for a project's resolved production dependencies."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from depgraph.closure import DependencyClosure, collect_dependency_closure
from depgraph.manifests import (
    installed_version,
    production_dependencies,
    read_lockfile_versions,
    read_project_manifest,
)
from serde_msgspec import StructBaseStrict
from utils.hashing import hash_lines

logger = logging.getLogger(__name__)

FINGERPRINT_LENGTH = 8


class FingerprintError(RuntimeError):
    """Raised when no fingerprint can be derived for a project."""


class PackageVersion(StructBaseStrict, frozen=True, order=True):
    """One ``(name, version)`` pair contributing to a fingerprint."""

    name: str
    version: str

    def line(self) -> str:
        return f"{self.name}@{self.version}"


class LayerReuseDecision(StructBaseStrict, frozen=True):
    """Advisory decision on whether a previously built layer can be reused."""

    reuse: bool
    fingerprint: str
    previous: str | None = None
    reason: str = ""


def fingerprint_entries(
    closure: DependencyClosure,
    lockfile_versions: Mapping[str, str],
) -> list[PackageVersion]:
    """Return the sorted ``(name, version)`` pairs of a closure.

    The installed manifest at the chosen directory is authoritative; the
    lockfile is consulted for packages without a readable installed version.
    Packages with no known version do not contribute.

    Returns
    -------
    list[PackageVersion]
        Pairs sorted by name then version.
    """
    entries: list[PackageVersion] = []
    for name in closure.packages:
        path = closure.resolved_paths.get(name)
        version = installed_version(path) if path is not None else None
        if version is None:
            version = lockfile_versions.get(name)
        if version is None:
            logger.debug("No version known for %s; excluded from fingerprint", name)
            continue
        entries.append(PackageVersion(name=name, version=version))
    return sorted(entries)


def fingerprint_from_entries(entries: Iterable[PackageVersion]) -> str:
    """Hash ``(name, version)`` pairs independent of their input order.

    Returns
    -------
    str
        Hex digest truncated to ``FINGERPRINT_LENGTH`` characters.

    Raises
    ------
    FingerprintError
        Raised when ``entries`` is empty.
    """
    ordered = sorted(set(entries))
    if not ordered:
        msg = "No package versions found"
        raise FingerprintError(msg)
    return hash_lines((entry.line() for entry in ordered), length=FINGERPRINT_LENGTH)


def compute_fingerprint(
    project_dir: Path,
    *,
    closure: DependencyClosure | None = None,
    max_workers: int | None = None,
) -> str:
    """Return the dependency fingerprint of a project.

    Parameters
    ----------
    project_dir
        Project root containing ``package.json``.
    closure
        Previously collected closure to reuse; collected when omitted.
    max_workers
        Thread count for closure collection.

    Returns
    -------
    str
        Eight-character hex fingerprint.

    Raises
    ------
    FingerprintError
        Raised when the project has no production dependencies or no
        dependency versions can be determined.
    """
    root = project_dir.resolve()
    roots = production_dependencies(read_project_manifest(root))
    if not roots:
        msg = "No production dependencies"
        raise FingerprintError(msg)
    resolved = (
        closure
        if closure is not None
        else collect_dependency_closure(root, roots, max_workers=max_workers)
    )
    entries = fingerprint_entries(resolved, read_lockfile_versions(root))
    return fingerprint_from_entries(entries)


def decide_layer_reuse(previous: str | None, current: str) -> LayerReuseDecision:
    """Decide whether a layer built for ``previous`` can stand in for ``current``.

    Returns
    -------
    LayerReuseDecision
        ``reuse`` is ``True`` only when both fingerprints are equal.
    """
    if previous is None:
        return LayerReuseDecision(
            reuse=False,
            fingerprint=current,
            reason="no previous fingerprint",
        )
    if previous == current:
        return LayerReuseDecision(
            reuse=True,
            fingerprint=current,
            previous=previous,
            reason="fingerprint unchanged",
        )
    return LayerReuseDecision(
        reuse=False,
        fingerprint=current,
        previous=previous,
        reason="fingerprint changed",
    )


__all__ = [
    "FINGERPRINT_LENGTH",
    "FingerprintError",
    "LayerReuseDecision",
    "PackageVersion",
    "compute_fingerprint",
    "decide_layer_reuse",
    "fingerprint_entries",
    "fingerprint_from_entries",
]
