"""Tests for the handler kind registry."""

from __future__ import annotations

import re

import pytest

from handler_registry import (
    HANDLER_REGISTRY,
    RUNTIME_PROPERTIES,
    HandlerKind,
    UnknownHandlerKindError,
    definition_for,
    parse_kind,
    registry_version,
)


def test_parse_kind_normalizes_spellings() -> None:
    """Ensure kind parsing accepts enums, case and dash variants."""
    assert parse_kind(HandlerKind.BUCKET) is HandlerKind.BUCKET
    assert parse_kind(" HTTP ") is HandlerKind.HTTP
    assert parse_kind("static-site") is HandlerKind.STATIC_SITE
    assert parse_kind("fifo_queue") is HandlerKind.FIFO_QUEUE


def test_parse_kind_rejects_unknown_names() -> None:
    """Ensure unknown kinds list the registered names."""
    with pytest.raises(UnknownHandlerKindError, match="expected one of: http"):
        parse_kind("cron")


def test_every_kind_is_registered_once() -> None:
    """Ensure each kind has one entry with a unique definer name."""
    assert set(HANDLER_REGISTRY) == set(HandlerKind)
    definers = [definition.definer for definition in HANDLER_REGISTRY.values()]
    assert len(definers) == len(set(definers))


def test_handler_markers_are_runtime_properties() -> None:
    """Ensure no handler marker can leak into an extracted config."""
    for definition in HANDLER_REGISTRY.values():
        assert set(definition.handler_markers) <= RUNTIME_PROPERTIES


def test_adapter_specifier() -> None:
    """Ensure adapter specifiers default to the runtime root and accept overrides."""
    http = definition_for("http")
    assert http.definer == "defineHttp"
    assert http.adapter_function == "wrapHttp"
    assert http.adapter_specifier() == "~/runtime/wrap-http"
    assert http.adapter_specifier("/opt/runtime/") == "/opt/runtime/wrap-http"


def test_mailer_has_no_adapter() -> None:
    """Ensure kinds without an adapter refuse to build a specifier."""
    mailer = definition_for(HandlerKind.MAILER)
    assert mailer.has_adapter is False
    with pytest.raises(UnknownHandlerKindError):
        mailer.adapter_specifier()


def test_registry_version_is_stable_digest() -> None:
    """Ensure the registry version is a SHA-256 digest that does not vary."""
    version = registry_version()
    assert re.fullmatch(r"[0-9a-f]{64}", version)
    registry_version.cache_clear()
    assert registry_version() == version
