"""Versioned table of handler kinds, their definers, and runtime adapters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import cache
from types import MappingProxyType

from utils.hashing import hash_json_canonical

REGISTRY_SCHEMA_VERSION = 1
DEFAULT_RUNTIME_ROOT = "~/runtime"


class HandlerKind(StrEnum):
    """Handler kinds recognized by the extractor."""

    HTTP = "http"
    TABLE = "table"
    APP = "app"
    STATIC_SITE = "static_site"
    FIFO_QUEUE = "fifo_queue"
    BUCKET = "bucket"
    MAILER = "mailer"


class UnknownHandlerKindError(ValueError):
    """Raised when a handler kind name is not in the registry."""


@dataclass(frozen=True)
class HandlerDefinition:
    """Registry entry for one handler kind.

    Parameters
    ----------
    kind
        Handler kind this entry describes.
    definer
        Name of the factory call that declares a handler of this kind.
    handler_markers
        Property names whose presence means the export carries runtime code.
    adapter_function
        Runtime adapter wrapping the user export, or ``None`` when the kind
        deploys no function of its own.
    adapter_module
        Module name of the adapter below the runtime root.
    """

    kind: HandlerKind
    definer: str
    handler_markers: tuple[str, ...] = ()
    adapter_function: str | None = None
    adapter_module: str | None = None

    @property
    def has_adapter(self) -> bool:
        return self.adapter_function is not None and self.adapter_module is not None

    def adapter_specifier(self, runtime_dir: str | None = None) -> str:
        """Return the import specifier of the runtime adapter.

        Parameters
        ----------
        runtime_dir
            Optional replacement for the default runtime root.

        Returns
        -------
        str
            Import specifier such as ``~/runtime/wrap-http``.

        Raises
        ------
        UnknownHandlerKindError
            Raised when the kind has no runtime adapter.
        """
        if self.adapter_module is None:
            msg = f"Handler kind {self.kind.value!r} has no runtime adapter."
            raise UnknownHandlerKindError(msg)
        root = (runtime_dir or DEFAULT_RUNTIME_ROOT).rstrip("/")
        return f"{root}/{self.adapter_module}"


_DEFINITIONS: tuple[HandlerDefinition, ...] = (
    HandlerDefinition(
        kind=HandlerKind.HTTP,
        definer="defineHttp",
        handler_markers=("onRequest",),
        adapter_function="wrapHttp",
        adapter_module="wrap-http",
    ),
    HandlerDefinition(
        kind=HandlerKind.TABLE,
        definer="defineTable",
        handler_markers=("onRecord", "onBatch"),
        adapter_function="wrapTableStream",
        adapter_module="wrap-table-stream",
    ),
    HandlerDefinition(
        kind=HandlerKind.APP,
        definer="defineApp",
        adapter_function="wrapSite",
        adapter_module="wrap-site",
    ),
    HandlerDefinition(
        kind=HandlerKind.STATIC_SITE,
        definer="defineStaticSite",
        handler_markers=("middleware",),
        adapter_function="wrapMiddleware",
        adapter_module="wrap-middleware",
    ),
    HandlerDefinition(
        kind=HandlerKind.FIFO_QUEUE,
        definer="defineFifoQueue",
        handler_markers=("onMessage", "onBatch"),
        adapter_function="wrapFifoQueue",
        adapter_module="wrap-fifo-queue",
    ),
    HandlerDefinition(
        kind=HandlerKind.BUCKET,
        definer="defineBucket",
        handler_markers=("onObjectCreated", "onObjectRemoved"),
        adapter_function="wrapBucket",
        adapter_module="wrap-bucket",
    ),
    HandlerDefinition(
        kind=HandlerKind.MAILER,
        definer="defineMailer",
    ),
)

HANDLER_REGISTRY: Mapping[HandlerKind, HandlerDefinition] = MappingProxyType(
    {definition.kind: definition for definition in _DEFINITIONS}
)

DEPS_PROPERTY = "deps"
PARAM_MAP_PROPERTIES: tuple[str, ...] = ("params", "config")
STATIC_PROPERTY = "static"
ROUTES_PROPERTY = "routes"

# Properties that carry runtime behavior or external references and never
# appear in an extracted config.
RUNTIME_PROPERTIES: frozenset[str] = frozenset(
    {
        "onRequest",
        "onRecord",
        "onBatch",
        "onBatchComplete",
        "onMessage",
        "onObjectCreated",
        "onObjectRemoved",
        "middleware",
        "onError",
        "context",
        "setup",
        "schema",
        DEPS_PROPERTY,
        *PARAM_MAP_PROPERTIES,
        STATIC_PROPERTY,
        ROUTES_PROPERTY,
    }
)


def parse_kind(value: HandlerKind | str) -> HandlerKind:
    """Parse a handler kind from enum or string input.

    Accepts ``static-site`` and ``static_site`` spellings.

    Returns
    -------
    HandlerKind
        Parsed handler kind.

    Raises
    ------
    UnknownHandlerKindError
        Raised when the value names no registered kind.
    """
    if isinstance(value, HandlerKind):
        return value
    normalized = value.strip().lower().replace("-", "_")
    try:
        return HandlerKind(normalized)
    except ValueError as exc:
        known = ", ".join(kind.value for kind in HandlerKind)
        msg = f"Unknown handler kind {value!r}; expected one of: {known}."
        raise UnknownHandlerKindError(msg) from exc


def definition_for(kind: HandlerKind | str) -> HandlerDefinition:
    """Return the registry entry for a handler kind.

    Returns
    -------
    HandlerDefinition
        Registered definition for ``kind``.
    """
    return HANDLER_REGISTRY[parse_kind(kind)]


@cache
def registry_version() -> str:
    """Return a stable digest of the registry table.

    Returns
    -------
    str
        SHA-256 hex digest over the schema version and every definition.
    """
    payload = {
        "schema_version": REGISTRY_SCHEMA_VERSION,
        "runtime_root": DEFAULT_RUNTIME_ROOT,
        "runtime_properties": sorted(RUNTIME_PROPERTIES),
        "definitions": [
            {
                "kind": definition.kind.value,
                "definer": definition.definer,
                "handler_markers": list(definition.handler_markers),
                "adapter_function": definition.adapter_function,
                "adapter_module": definition.adapter_module,
            }
            for definition in _DEFINITIONS
        ],
    }
    return hash_json_canonical(payload)


__all__ = [
    "DEFAULT_RUNTIME_ROOT",
    "DEPS_PROPERTY",
    "HANDLER_REGISTRY",
    "PARAM_MAP_PROPERTIES",
    "REGISTRY_SCHEMA_VERSION",
    "ROUTES_PROPERTY",
    "RUNTIME_PROPERTIES",
    "STATIC_PROPERTY",
    "HandlerDefinition",
    "HandlerKind",
    "UnknownHandlerKindError",
    "definition_for",
    "parse_kind",
    "registry_version",
]
