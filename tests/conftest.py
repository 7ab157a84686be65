"""Shared pytest fixtures."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Return a symlink-free project directory.

    Resolution results are real paths, so tests compare against the resolved
    temporary directory.

    Returns
    -------
    Path
        Empty project directory.
    """
    root = (tmp_path / "project").resolve()
    root.mkdir()
    return root
