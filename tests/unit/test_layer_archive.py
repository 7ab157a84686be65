"""Tests for the shared dependency layer archive."""

from __future__ import annotations

import io
import zipfile
from typing import TYPE_CHECKING

import pytest

from archive.packages import LAYER_PREFIX, build_layer_archive
from archive.zip_builder import ArchiveError
from depgraph.closure import DependencyClosure, collect_dependency_closure
from tests.test_helpers.node_packages import flat_project, write_package
from tests.test_helpers.unreadable import fail_reads_of

if TYPE_CHECKING:
    from pathlib import Path


def _names(data: bytes) -> list[str]:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return archive.namelist()


def test_layer_holds_every_closure_package(project_root: Path) -> None:
    """Ensure packages are archived under the layer prefix in sorted order."""
    flat_project(project_root)
    closure = collect_dependency_closure(project_root, max_workers=1)

    layer = build_layer_archive(closure)

    assert layer.included == ("@scope/pkg-d", "pkg-a", "pkg-b", "pkg-c")
    assert layer.skipped == ()
    names = _names(layer.data)
    assert names[:2] == [
        f"{LAYER_PREFIX}/@scope/pkg-d/index.js",
        f"{LAYER_PREFIX}/@scope/pkg-d/package.json",
    ]
    assert f"{LAYER_PREFIX}/pkg-c/lib/util.js" in names
    assert not any("dev-pkg" in name for name in names)


def test_layer_uses_chosen_directories(tmp_path: Path) -> None:
    """Ensure packages are read from the closure's resolved paths."""
    hidden = write_package(tmp_path / "store" / "pkg-hidden", "pkg-hidden", "0.3.0")
    closure = DependencyClosure(
        packages=("pkg-hidden",),
        resolved_paths={"pkg-hidden": hidden},
        included_packages=("pkg-hidden",),
    )

    layer = build_layer_archive(closure)

    assert _names(layer.data) == [
        f"{LAYER_PREFIX}/pkg-hidden/index.js",
        f"{LAYER_PREFIX}/pkg-hidden/package.json",
    ]


def test_unresolved_packages_are_skipped(tmp_path: Path) -> None:
    """Ensure packages without a directory are reported, not archived."""
    present = write_package(tmp_path / "pkg-a", "pkg-a")
    closure = DependencyClosure(
        packages=("ghost", "gone", "pkg-a"),
        resolved_paths={"pkg-a": present, "gone": tmp_path / "removed"},
        included_packages=("gone", "pkg-a"),
        skipped_packages=("ghost",),
    )

    layer = build_layer_archive(closure)

    assert layer.included == ("pkg-a",)
    assert layer.skipped == ("ghost", "gone")


def test_dangling_symlinks_are_left_out(tmp_path: Path) -> None:
    """Ensure broken links inside a package do not abort the layer."""
    package = write_package(tmp_path / "pkg-a", "pkg-a")
    (package / "broken.js").symlink_to(tmp_path / "missing.js")
    closure = DependencyClosure(
        packages=("pkg-a",),
        resolved_paths={"pkg-a": package},
        included_packages=("pkg-a",),
    )

    names = _names(build_layer_archive(closure).data)

    assert f"{LAYER_PREFIX}/pkg-a/broken.js" not in names
    assert f"{LAYER_PREFIX}/pkg-a/index.js" in names


def test_unreadable_package_file_is_fatal(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Ensure a package file that cannot be read aborts the layer with its path."""
    package = write_package(tmp_path / "pkg-a", "pkg-a")
    closure = DependencyClosure(
        packages=("pkg-a",),
        resolved_paths={"pkg-a": package},
        included_packages=("pkg-a",),
    )
    fail_reads_of(monkeypatch, "index.js")

    with pytest.raises(ArchiveError, match=r"Cannot read package file .*pkg-a/index\.js"):
        build_layer_archive(closure)


def test_layer_bytes_are_reproducible(project_root: Path) -> None:
    """Ensure rebuilding an unchanged closure gives identical bytes."""
    flat_project(project_root)
    closure = collect_dependency_closure(project_root, max_workers=1)
    assert build_layer_archive(closure).data == build_layer_archive(closure).data
