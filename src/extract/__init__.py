"""Extraction layer.

Static analysis of handler source files. Nothing here executes user code:
sources are parsed with tree-sitter and literal configuration values are
transcribed node by node.

Exports:
- literal transcription -> native values
- definer-call extraction -> HandlerDescriptor records
- file discovery -> DiscoveryResult

Module Organization:
- ts_parser - grammar selection and node helpers
- literals - literal node transcription
- handler_configs - per-file descriptor extraction
- discovery - batch discovery across project files
- pathspec_filters / parallel - scanning infrastructure
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from extract.discovery import (
        DiscoveredFile,
        DiscoveryFailure,
        DiscoveryResult,
        HandlerNotFoundError,
        discover_handlers,
        find_handler_files,
        locate_handler,
    )
    from extract.handler_configs import (
        ExtractionFailure,
        ExtractionReport,
        HandlerDescriptor,
        ParamEntry,
        extract_descriptors,
        extract_handler_configs,
    )
    from extract.literals import (
        LiteralExtractionError,
        ParamReference,
        transcribe_literal,
    )

# Map of export names to (module_path, attribute_name) for lazy loading
_EXPORTS: dict[str, tuple[str, str]] = {
    "DiscoveredFile": ("extract.discovery", "DiscoveredFile"),
    "DiscoveryFailure": ("extract.discovery", "DiscoveryFailure"),
    "DiscoveryResult": ("extract.discovery", "DiscoveryResult"),
    "HandlerNotFoundError": ("extract.discovery", "HandlerNotFoundError"),
    "discover_handlers": ("extract.discovery", "discover_handlers"),
    "find_handler_files": ("extract.discovery", "find_handler_files"),
    "locate_handler": ("extract.discovery", "locate_handler"),
    "ExtractionFailure": ("extract.handler_configs", "ExtractionFailure"),
    "ExtractionReport": ("extract.handler_configs", "ExtractionReport"),
    "HandlerDescriptor": ("extract.handler_configs", "HandlerDescriptor"),
    "ParamEntry": ("extract.handler_configs", "ParamEntry"),
    "extract_descriptors": ("extract.handler_configs", "extract_descriptors"),
    "extract_handler_configs": ("extract.handler_configs", "extract_handler_configs"),
    "LiteralExtractionError": ("extract.literals", "LiteralExtractionError"),
    "ParamReference": ("extract.literals", "ParamReference"),
    "transcribe_literal": ("extract.literals", "transcribe_literal"),
}


def __getattr__(name: str) -> object:
    target = _EXPORTS.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    module_name, attr = target
    module = importlib.import_module(module_name)
    return getattr(module, attr)


def __dir__() -> list[str]:
    return sorted(list(globals()) + list(_EXPORTS))


__all__ = (
    "DiscoveredFile",
    "DiscoveryFailure",
    "DiscoveryResult",
    "ExtractionFailure",
    "ExtractionReport",
    "HandlerDescriptor",
    "HandlerNotFoundError",
    "LiteralExtractionError",
    "ParamEntry",
    "ParamReference",
    "discover_handlers",
    "extract_descriptors",
    "extract_handler_configs",
    "find_handler_files",
    "locate_handler",
    "transcribe_literal",
)
