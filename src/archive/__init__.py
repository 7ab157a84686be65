"""Deterministic archives for function and layer packages."""

from archive.packages import (
    LayerArchive,
    build_function_archive,
    build_layer_archive,
)
from archive.static_files import resolve_static_files
from archive.zip_builder import ArchiveEntry, ArchiveError, build_archive

__all__ = [
    "ArchiveEntry",
    "ArchiveError",
    "LayerArchive",
    "build_archive",
    "build_function_archive",
    "build_layer_archive",
    "resolve_static_files",
]
