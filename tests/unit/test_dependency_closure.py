"""Tests for the production dependency closure."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from depgraph.closure import closure_externals, collect_dependency_closure
from depgraph.manifests import ManifestError
from depgraph.resolver import find_in_nested_store, nested_store_key, resolve_package
from tests.test_helpers.node_packages import (
    flat_project,
    link_package,
    nested_store_project,
    write_package,
    write_project,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_flat_layout_closure(project_root: Path) -> None:
    """Ensure shared transitive packages appear once and dev packages are excluded."""
    flat_project(project_root)

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.packages == ("@scope/pkg-d", "pkg-a", "pkg-b", "pkg-c")
    assert closure.included_packages == closure.packages
    assert closure.skipped_packages == ()
    modules = project_root / "node_modules"
    assert closure.resolved_paths["pkg-c"] == modules / "pkg-c"
    assert closure.resolved_paths["@scope/pkg-d"] == modules / "@scope" / "pkg-d"
    assert "dev-pkg" not in closure.packages


def test_explicit_root_names_override_manifest(project_root: Path) -> None:
    """Ensure caller-supplied root names replace the manifest dependencies."""
    flat_project(project_root)
    closure = collect_dependency_closure(project_root, ["pkg-b"], max_workers=1)
    assert closure.packages == ("pkg-b", "pkg-c")


def test_nested_store_rescue(project_root: Path) -> None:
    """Ensure dependencies reachable only from their dependent are found."""
    nested_store_project(project_root)
    store = project_root / "node_modules" / ".pnpm" / "pkg-parent@1.0.0" / "node_modules"

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.packages == ("pkg-child", "pkg-parent")
    assert closure.skipped_packages == ()
    assert closure.resolved_paths["pkg-parent"] == store / "pkg-parent"
    assert closure.resolved_paths["pkg-child"] == store / "pkg-child"


def test_dependent_relative_version_carries_its_dependencies(project_root: Path) -> None:
    """Ensure a second installed version contributes its own dependencies."""
    write_project(project_root, ["pkg-consumer", "pkg-multi"])
    modules = project_root / "node_modules"
    write_package(modules / "pkg-multi", "pkg-multi", "1.0.0")
    store = modules / ".pnpm" / "pkg-consumer@1.0.0" / "node_modules"
    consumer = write_package(store / "pkg-consumer", "pkg-consumer", dependencies=["pkg-multi"])
    write_package(store / "pkg-multi", "pkg-multi", "2.0.0", dependencies=["pkg-v2-dep"])
    write_package(store / "pkg-v2-dep", "pkg-v2-dep")
    link_package(modules / "pkg-consumer", consumer)

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.packages == ("pkg-consumer", "pkg-multi", "pkg-v2-dep")
    assert closure.resolved_paths["pkg-multi"] == modules / "pkg-multi"
    assert closure.resolved_paths["pkg-v2-dep"] == store / "pkg-v2-dep"


def test_missing_package_is_skipped(project_root: Path) -> None:
    """Ensure unresolvable names stay in the closure as skipped packages."""
    write_project(project_root, ["pkg-a", "ghost"])
    write_package(project_root / "node_modules" / "pkg-a", "pkg-a", dependencies=["phantom"])

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.packages == ("ghost", "pkg-a", "phantom")
    assert closure.included_packages == ("pkg-a",)
    assert closure.skipped_packages == ("ghost", "phantom")
    assert closure_externals(closure) == closure.packages


def test_dependency_cycle_terminates(project_root: Path) -> None:
    """Ensure cyclic dependencies are visited once."""
    write_project(project_root, ["pkg-a"])
    modules = project_root / "node_modules"
    write_package(modules / "pkg-a", "pkg-a", dependencies=["pkg-b"])
    write_package(modules / "pkg-b", "pkg-b", dependencies=["pkg-a"])

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.packages == ("pkg-a", "pkg-b")


def test_optional_and_peer_dependencies_are_followed(project_root: Path) -> None:
    """Ensure installed optional and peer dependencies join the closure."""
    write_project(project_root, ["pkg-a"])
    modules = project_root / "node_modules"
    write_package(
        modules / "pkg-a",
        "pkg-a",
        optional_dependencies=["pkg-opt"],
        peer_dependencies=["pkg-peer"],
    )
    write_package(modules / "pkg-opt", "pkg-opt")
    write_package(modules / "pkg-peer", "pkg-peer")

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.packages == ("pkg-a", "pkg-opt", "pkg-peer")


def test_deepest_nested_path_wins(project_root: Path) -> None:
    """Ensure the deepest dependent-relative directory is chosen."""
    write_project(project_root, ["pkg-x", "@scope/pkg-y"])
    modules = project_root / "node_modules"
    pkg_x = write_package(modules / "pkg-x", "pkg-x", dependencies=["shared"])
    pkg_y = write_package(modules / "@scope" / "pkg-y", "@scope/pkg-y", dependencies=["shared"])
    write_package(pkg_x / "node_modules" / "shared", "shared", "1.0.0")
    deeper = write_package(pkg_y / "node_modules" / "shared", "shared", "2.0.0")

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.resolved_paths["shared"] == deeper


def test_equal_depth_paths_break_ties_lexicographically(project_root: Path) -> None:
    """Ensure equally deep candidates resolve to the first in path order."""
    write_project(project_root, ["pkg-y", "pkg-x"])
    modules = project_root / "node_modules"
    pkg_x = write_package(modules / "pkg-x", "pkg-x", dependencies=["shared"])
    pkg_y = write_package(modules / "pkg-y", "pkg-y", dependencies=["shared"])
    first = write_package(pkg_x / "node_modules" / "shared", "shared", "1.0.0")
    write_package(pkg_y / "node_modules" / "shared", "shared", "2.0.0")

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.resolved_paths["shared"] == first


def test_root_relative_path_wins(project_root: Path) -> None:
    """Ensure the project-root resolution beats nested copies."""
    write_project(project_root, ["pkg-x", "shared"])
    modules = project_root / "node_modules"
    pkg_x = write_package(modules / "pkg-x", "pkg-x", dependencies=["shared"])
    write_package(pkg_x / "node_modules" / "shared", "shared", "2.0.0")
    write_package(modules / "shared", "shared", "1.0.0")

    closure = collect_dependency_closure(project_root, max_workers=1)

    assert closure.resolved_paths["shared"] == modules / "shared"


def test_threaded_collection_matches_serial(project_root: Path) -> None:
    """Ensure parallel lookups give the same closure as a serial pass."""
    nested_store_project(project_root / "nested")
    flat_project(project_root / "flat")
    for root in (project_root / "nested", project_root / "flat"):
        serial = collect_dependency_closure(root, max_workers=1)
        threaded = collect_dependency_closure(root, max_workers=4)
        assert threaded == serial


def test_missing_manifest_raises(project_root: Path) -> None:
    """Ensure a project without package.json is reported."""
    with pytest.raises(ManifestError, match="package.json"):
        collect_dependency_closure(project_root)


def test_resolver_walks_ancestors(project_root: Path) -> None:
    """Ensure resolution checks node_modules in every ancestor directory."""
    package = write_package(project_root / "node_modules" / "pkg-a", "pkg-a")
    nested_dir = project_root / "packages" / "app" / "src"
    nested_dir.mkdir(parents=True)
    assert resolve_package("pkg-a", nested_dir) == package
    assert resolve_package("pkg-missing", nested_dir) is None


def test_nested_store_lookup(project_root: Path) -> None:
    """Ensure nested-store entries are found by scope-encoded prefix."""
    store = project_root / "node_modules" / ".pnpm"
    write_package(store / "@scope+pkg@2.0.0" / "node_modules" / "@scope" / "pkg", "@scope/pkg")
    older = write_package(
        store / "@scope+pkg@1.0.0" / "node_modules" / "@scope" / "pkg", "@scope/pkg"
    )
    assert nested_store_key("@scope/pkg") == "@scope+pkg"
    assert find_in_nested_store(project_root, "@scope/pkg") == older
    assert find_in_nested_store(project_root, "absent") is None
