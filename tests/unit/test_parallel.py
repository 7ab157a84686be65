"""Tests for parallel mapping helpers."""

from __future__ import annotations

import threading

import pytest

from extract.parallel import parallel_map, resolve_max_workers


def _square(value: int) -> int:
    return value * value


def test_serial_map_runs_in_calling_thread() -> None:
    """Ensure max_workers=1 does not spawn workers."""
    caller = threading.get_ident()
    seen = list(parallel_map(range(3), lambda _item: threading.get_ident(), max_workers=1))
    assert seen == [caller, caller, caller]


@pytest.mark.parametrize("kind", ["io", "cpu"])
def test_parallel_map_preserves_order(kind: str) -> None:
    """Ensure results come back in input order for both pool kinds."""
    items = list(range(20))
    assert list(parallel_map(items, _square, max_workers=4, kind=kind)) == [
        item * item for item in items
    ]


def test_resolve_max_workers() -> None:
    """Ensure explicit counts are clamped and defaults are positive."""
    assert resolve_max_workers(0) == 1
    assert resolve_max_workers(3, kind="io") == 3
    assert resolve_max_workers(None, kind="io") >= 5
    assert resolve_max_workers(None) >= 1
