"""Tests for handler file discovery and lookup."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from extract.discovery import (
    HandlerNotFoundError,
    discover_handlers,
    find_handler_files,
    locate_handler,
)
from handler_registry import HandlerKind

if TYPE_CHECKING:
    from pathlib import Path

_API = """
export const listOrders = defineHttp({ method: "GET", path: "/orders", onRequest: list });
export const ordersStream = defineTable({ name: "orders", onRecord: handleRecord });
"""

_BROKEN = """
export const dynamic = defineHttp({ path: buildPath(), onRequest: handle });
export const fine = defineHttp({ path: "/fine", onRequest: handle });
"""


@pytest.fixture
def handler_project(project_root: Path) -> Path:
    """Return a project with handler sources, ignored files and packages.

    Returns
    -------
    Path
        Project root.
    """
    files = {
        "src/api.ts": _API,
        "src/jobs/queue.ts": 'export default defineFifoQueue({ batchSize: 5, onMessage: run });\n',
        "src/broken.ts": _BROKEN,
        "src/generated.ts": 'export const gen = defineHttp({ path: "/gen" });\n',
        "src/util.ts": "export const helper = () => 1;\n",
        "node_modules/lib/index.ts": 'export const x = defineHttp({ path: "/lib" });\n',
    }
    for rel_path, text in files.items():
        target = project_root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
    (project_root / ".gitignore").write_text("src/generated.ts\n", encoding="utf-8")
    return project_root


def test_find_handler_files_respects_excludes(handler_project: Path) -> None:
    """Ensure node_modules and gitignored files are not scanned."""
    files = find_handler_files(["src/**/*.ts"], handler_project)
    assert [path.relative_to(handler_project).as_posix() for path in files] == [
        "src/api.ts",
        "src/broken.ts",
        "src/jobs/queue.ts",
        "src/util.ts",
    ]
    assert find_handler_files([], handler_project) == []


def test_discover_handlers_across_kinds(handler_project: Path) -> None:
    """Ensure every kind found in a file is reported with its descriptors."""
    files = find_handler_files("src/**/*.ts", handler_project)

    result = discover_handlers(files, max_workers=1)

    http = [(path, d.export_name) for path, d in result.descriptors_for("http")]
    assert http == [
        (str(handler_project / "src" / "api.ts"), "listOrders"),
        (str(handler_project / "src" / "broken.ts"), "fine"),
    ]
    (stream,) = result.descriptors_for(HandlerKind.TABLE)
    assert stream[1].export_name == "ordersStream"
    (queue,) = result.descriptors_for("fifo-queue")
    assert queue[1].export_name == "default"
    assert queue[1].config == {"batchSize": 5}


def test_discovery_failures_do_not_abort(handler_project: Path) -> None:
    """Ensure failing exports are reported alongside successful ones."""
    files = find_handler_files("src/**/*.ts", handler_project)

    result = discover_handlers(files, ["http"], max_workers=1)

    (failure,) = result.failures
    assert failure.export_name == "dynamic"
    assert failure.property == "path"
    assert failure.kind is HandlerKind.HTTP
    assert failure.path.endswith("broken.ts")


def test_unreadable_file_is_a_failure(project_root: Path) -> None:
    """Ensure files that cannot be decoded are reported per file."""
    bad = project_root / "bad.ts"
    bad.write_bytes(b"\xff\xfe\xfa defineHttp")

    result = discover_handlers([bad], max_workers=1)

    assert result.files == ()
    (failure,) = result.failures
    assert failure.reason.startswith("Unable to read file")
    assert failure.export_name is None


def test_locate_handler(handler_project: Path) -> None:
    """Ensure a single export can be looked up with or without a kind."""
    api = handler_project / "src" / "api.ts"
    assert locate_handler(api, "listOrders").handler_kind is HandlerKind.HTTP
    assert locate_handler(api, "ordersStream", "table").config == {"name": "orders"}
    queue = handler_project / "src" / "jobs" / "queue.ts"
    assert locate_handler(queue, "default").handler_kind is HandlerKind.FIFO_QUEUE


def test_locate_handler_missing_export(handler_project: Path) -> None:
    """Ensure unknown exports and kind mismatches are reported."""
    api = handler_project / "src" / "api.ts"
    with pytest.raises(HandlerNotFoundError, match="No handler export 'missing'"):
        locate_handler(api, "missing")
    with pytest.raises(HandlerNotFoundError, match="No handler export"):
        locate_handler(api, "listOrders", "bucket")


def test_locate_handler_extraction_failure(handler_project: Path) -> None:
    """Ensure failing exports surface their extraction reason."""
    broken = handler_project / "src" / "broken.ts"
    with pytest.raises(HandlerNotFoundError, match="cannot be extracted"):
        locate_handler(broken, "dynamic")
    assert locate_handler(broken, "fine").config == {"path": "/fine"}
