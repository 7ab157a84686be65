"""Synthetic node_modules layouts for dependency tests."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path


def _dependency_map(names: Iterable[str] | Mapping[str, str] | None) -> dict[str, str]:
    if names is None:
        return {}
    if isinstance(names, Mapping):
        return dict(names)
    return {name: "^1.0.0" for name in names}


def write_project(
    root: Path,
    dependencies: Iterable[str] | Mapping[str, str] | None = None,
    *,
    dev_dependencies: Iterable[str] | Mapping[str, str] | None = None,
) -> Path:
    """Write a project ``package.json``.

    Returns
    -------
    Path
        Project root.
    """
    root.mkdir(parents=True, exist_ok=True)
    manifest: dict[str, object] = {"name": "fixture-project", "version": "0.0.0"}
    manifest["dependencies"] = _dependency_map(dependencies)
    if dev_dependencies is not None:
        manifest["devDependencies"] = _dependency_map(dev_dependencies)
    (root / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    return root


def write_package(
    package_dir: Path,
    name: str,
    version: str | None = "1.0.0",
    *,
    dependencies: Iterable[str] | Mapping[str, str] | None = None,
    optional_dependencies: Iterable[str] | Mapping[str, str] | None = None,
    peer_dependencies: Iterable[str] | Mapping[str, str] | None = None,
    files: Mapping[str, str] | None = None,
) -> Path:
    """Write an installed package at ``package_dir``.

    Returns
    -------
    Path
        Package directory.
    """
    package_dir.mkdir(parents=True, exist_ok=True)
    manifest: dict[str, object] = {"name": name}
    if version is not None:
        manifest["version"] = version
    if dependencies is not None:
        manifest["dependencies"] = _dependency_map(dependencies)
    if optional_dependencies is not None:
        manifest["optionalDependencies"] = _dependency_map(optional_dependencies)
    if peer_dependencies is not None:
        manifest["peerDependencies"] = _dependency_map(peer_dependencies)
    (package_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    index_text = f"module.exports = {json.dumps(name)};\n"
    (package_dir / "index.js").write_text(index_text, encoding="utf-8")
    for rel_path, text in (files or {}).items():
        target = package_dir / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    return package_dir


def link_package(link: Path, target: Path) -> Path:
    """Create a directory symlink, as nested-store package managers do.

    Returns
    -------
    Path
        The link path.
    """
    link.parent.mkdir(parents=True, exist_ok=True)
    link.symlink_to(target, target_is_directory=True)
    return link


def flat_project(root: Path) -> Path:
    """Build a flat layout: ``pkg-a`` and ``pkg-b`` share ``pkg-c``.

    Production dependencies are ``pkg-a``, ``pkg-b`` and ``@scope/pkg-d``;
    ``dev-pkg`` is installed but only a dev dependency.

    Returns
    -------
    Path
        Project root.
    """
    write_project(root, ["pkg-a", "pkg-b", "@scope/pkg-d"], dev_dependencies=["dev-pkg"])
    modules = root / "node_modules"
    write_package(modules / "pkg-a", "pkg-a", dependencies=["pkg-c"])
    write_package(modules / "pkg-b", "pkg-b", "2.0.0", dependencies=["pkg-c"])
    write_package(modules / "pkg-c", "pkg-c", files={"lib/util.js": "exports.util = 1;\n"})
    write_package(modules / "@scope" / "pkg-d", "@scope/pkg-d")
    write_package(modules / "dev-pkg", "dev-pkg")
    return root


def nested_store_project(root: Path) -> Path:
    """Build a nested-store layout where ``pkg-child`` is only reachable from its parent.

    Returns
    -------
    Path
        Project root.
    """
    write_project(root, ["pkg-parent"])
    store = root / "node_modules" / ".pnpm" / "pkg-parent@1.0.0" / "node_modules"
    parent = write_package(store / "pkg-parent", "pkg-parent", dependencies=["pkg-child"])
    write_package(store / "pkg-child", "pkg-child", "3.1.0")
    link_package(root / "node_modules" / "pkg-parent", parent)
    return root


__all__ = [
    "flat_project",
    "link_package",
    "nested_store_project",
    "write_package",
    "write_project",
]
