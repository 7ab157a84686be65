"""Parallel execution helpers for extraction and filesystem lookups."""

from __future__ import annotations

import multiprocessing
import os
import sys
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Literal, TypeVar

T = TypeVar("T")
U = TypeVar("U")

type WorkKind = Literal["cpu", "io"]


def _gil_disabled() -> bool:
    checker = getattr(sys, "_is_gil_enabled", None)
    if not callable(checker):
        return False
    try:
        return not bool(checker())
    except (RuntimeError, TypeError, ValueError):
        return False


def supports_fork() -> bool:
    """Return True when the multiprocessing runtime supports fork.

    Returns
    -------
    bool
        ``True`` when the fork start method is available.
    """
    return "fork" in multiprocessing.get_all_start_methods()


def _process_executor(max_workers: int | None) -> ProcessPoolExecutor:
    if supports_fork():
        ctx = multiprocessing.get_context("fork")
        return ProcessPoolExecutor(max_workers=max_workers, mp_context=ctx)
    return ProcessPoolExecutor(max_workers=max_workers)


def parallel_map(
    items: Iterable[T],
    fn: Callable[[T], U],
    *,
    max_workers: int | None = None,
    kind: WorkKind = "cpu",
) -> Iterator[U]:
    """Map items in parallel, preserving input order.

    CPU-bound work uses processes unless the interpreter is free-threaded;
    I/O-bound work always uses threads. ``max_workers=1`` runs serially in
    the calling thread.

    Yields
    ------
    U
        Results produced by applying the function to each item.
    """
    workers = resolve_max_workers(max_workers, kind=kind)
    if workers == 1:
        for item in items:
            yield fn(item)
        return
    if kind == "io" or _gil_disabled():
        with ThreadPoolExecutor(max_workers=workers) as executor:
            yield from executor.map(fn, items)
        return
    with _process_executor(workers) as executor:
        yield from executor.map(fn, items)


def resolve_max_workers(
    max_workers: int | None,
    *,
    kind: WorkKind = "cpu",
) -> int:
    """Resolve max_workers using runtime defaults when unset.

    Returns
    -------
    int
        Effective worker count.
    """
    if max_workers is not None:
        return max(1, max_workers)
    cpu_count = os.cpu_count() or 1
    if kind == "io":
        return min(32, cpu_count + 4)
    return max(1, cpu_count)


__all__ = ["WorkKind", "parallel_map", "resolve_max_workers", "supports_fork"]
