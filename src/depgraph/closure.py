"""Transitive production dependency closure across node_modules layouts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import msgspec

from depgraph.manifests import (
    declared_dependencies,
    production_dependencies,
    read_package_manifest,
    read_project_manifest,
)
from depgraph.resolver import resolve_from_root, resolve_package
from extract.parallel import parallel_map
from serde_msgspec import StructBaseStrict

logger = logging.getLogger(__name__)


class DependencyClosure(StructBaseStrict, frozen=True):
    """Resolved production dependency set for one project.

    Attributes
    ----------
    packages
        Every direct and transitive production dependency name, sorted.
    resolved_paths
        Chosen on-disk directory per resolvable package.
    included_packages
        Packages with a resolved directory, sorted.
    skipped_packages
        Packages no resolution could find, sorted.
    """

    packages: tuple[str, ...] = ()
    resolved_paths: dict[str, Path] = msgspec.field(default_factory=dict)
    included_packages: tuple[str, ...] = ()
    skipped_packages: tuple[str, ...] = ()


@dataclass(frozen=True)
class _Lookup:
    name: str
    path: Path | None
    dependencies: tuple[str, ...]


@dataclass(frozen=True)
class _PackageDir:
    name: str
    path: Path


@dataclass
class _Accumulator:
    visited: set[str] = field(default_factory=set)
    root_paths: dict[str, Path] = field(default_factory=dict)
    nested_paths: dict[str, set[Path]] = field(default_factory=dict)

    def add_nested(self, name: str, path: Path) -> None:
        self.nested_paths.setdefault(name, set()).add(path)


def _package_dependencies(path: Path | None) -> tuple[str, ...]:
    if path is None:
        return ()
    return tuple(declared_dependencies(read_package_manifest(path)))


def _root_lookup(project_dir: Path, name: str) -> _Lookup:
    path = resolve_from_root(project_dir, name)
    return _Lookup(name=name, path=path, dependencies=_package_dependencies(path))


def _relative_lookups(package: _PackageDir) -> list[_Lookup]:
    return [
        _Lookup(name=dep, path=resolve_package(dep, package.path), dependencies=())
        for dep in _package_dependencies(package.path)
    ]


def _resolve_from_project_root(
    project_dir: Path,
    roots: Sequence[str],
    acc: _Accumulator,
    *,
    max_workers: int | None,
) -> None:
    level = sorted(set(roots))
    while level:
        acc.visited.update(level)
        lookups = parallel_map(
            level,
            lambda name: _root_lookup(project_dir, name),
            max_workers=max_workers,
            kind="io",
        )
        next_level: set[str] = set()
        for lookup in lookups:
            if lookup.path is None:
                logger.debug("Phase 1: %s not resolvable from %s", lookup.name, project_dir)
                continue
            acc.root_paths[lookup.name] = lookup.path
            next_level.update(dep for dep in lookup.dependencies if dep not in acc.visited)
        level = sorted(next_level)


def _resolve_from_dependents(
    acc: _Accumulator,
    *,
    max_workers: int | None,
) -> None:
    seen: set[tuple[str, Path]] = set(acc.root_paths.items())
    level = sorted(
        (_PackageDir(name=name, path=path) for name, path in acc.root_paths.items()),
        key=lambda item: (item.name, str(item.path)),
    )
    while level:
        results = parallel_map(level, _relative_lookups, max_workers=max_workers, kind="io")
        discovered: dict[tuple[str, Path], _PackageDir] = {}
        for lookups in results:
            for lookup in lookups:
                acc.visited.add(lookup.name)
                if lookup.path is None:
                    continue
                key = (lookup.name, lookup.path)
                if key in seen:
                    continue
                seen.add(key)
                if lookup.name not in acc.root_paths:
                    acc.add_nested(lookup.name, lookup.path)
                discovered[key] = _PackageDir(name=lookup.name, path=lookup.path)
        level = [discovered[key] for key in sorted(discovered, key=lambda k: (k[0], str(k[1])))]


def _choose_path(name: str, acc: _Accumulator) -> Path | None:
    root_path = acc.root_paths.get(name)
    if root_path is not None:
        return root_path
    candidates = acc.nested_paths.get(name)
    if not candidates:
        return None
    # Deepest candidate first, then lexicographic order.
    return min(candidates, key=lambda path: (-len(path.parts), str(path)))


def collect_dependency_closure(
    project_dir: Path,
    root_dependency_names: Iterable[str] | None = None,
    *,
    max_workers: int | None = None,
) -> DependencyClosure:
    """Compute the transitive production dependency closure of a project.

    Phase 1 resolves every reachable name relative to the project root.
    Phase 2 re-resolves each resolved package's own dependencies relative to
    that package's directory, which finds packages a nested content store
    keeps out of reach of the root. Phase 2 also revisits packages found in
    phase 1 because the two resolutions may point at different installed
    versions of the same name.

    When a name resolves to several directories, the root-relative one is
    chosen; otherwise the deepest dependent-relative directory wins, with
    ties broken by path order.

    Parameters
    ----------
    project_dir
        Project root containing ``package.json`` and ``node_modules``.
    root_dependency_names
        Direct production dependencies; read from ``package.json`` when
        omitted.
    max_workers
        Thread count for filesystem lookups; ``1`` runs serially.

    Returns
    -------
    DependencyClosure
        Best-effort closure. Unresolvable names are listed in
        ``skipped_packages``.
    """
    root = project_dir.resolve()
    if root_dependency_names is None:
        roots = production_dependencies(read_project_manifest(root))
    else:
        roots = list(root_dependency_names)
    acc = _Accumulator()
    _resolve_from_project_root(root, roots, acc, max_workers=max_workers)
    _resolve_from_dependents(acc, max_workers=max_workers)
    acc.visited.update(roots)

    packages = tuple(sorted(acc.visited))
    resolved: dict[str, Path] = {}
    skipped: list[str] = []
    for name in packages:
        path = _choose_path(name, acc)
        if path is None:
            skipped.append(name)
        else:
            resolved[name] = path
    if skipped:
        logger.warning(
            "Skipped %d unresolvable packages: %s",
            len(skipped),
            ", ".join(skipped[:10]) + ("..." if len(skipped) > 10 else ""),
        )
    logger.debug("Dependency closure for %s: %d packages", root, len(packages))
    return DependencyClosure(
        packages=packages,
        resolved_paths=resolved,
        included_packages=tuple(sorted(resolved)),
        skipped_packages=tuple(skipped),
    )


def closure_externals(closure: DependencyClosure) -> tuple[str, ...]:
    """Return package names to mark external when bundling.

    Returns
    -------
    tuple[str, ...]
        Every package name in the closure.
    """
    return closure.packages


__all__ = [
    "DependencyClosure",
    "closure_externals",
    "collect_dependency_closure",
]
