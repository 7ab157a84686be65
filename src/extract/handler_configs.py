"""Extract declarative handler descriptors from definer calls in source files."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from extract.literals import (
    LiteralExtractionError,
    is_absent,
    is_undefined,
    join_path,
    property_key,
    string_value,
    transcribe_literal,
    transcribe_param_reference,
    unwrap_expression,
)
from extract.ts_parser import named_children, node_position, node_text, parse_source
from handler_registry import (
    DEPS_PROPERTY,
    PARAM_MAP_PROPERTIES,
    ROUTES_PROPERTY,
    RUNTIME_PROPERTIES,
    STATIC_PROPERTY,
    HandlerDefinition,
    HandlerKind,
    definition_for,
)
from serde_msgspec import StructBaseStrict

if TYPE_CHECKING:
    from tree_sitter import Node

logger = logging.getLogger(__name__)

DEFAULT_EXPORT = "default"

_DECLARATION_TYPES: frozenset[str] = frozenset({"lexical_declaration", "variable_declaration"})


class ParamEntry(StructBaseStrict, frozen=True):
    """Parameter-map entry bound to a remote parameter key."""

    prop_name: str
    remote_key: str


class HandlerDescriptor(StructBaseStrict, frozen=True):
    """Declarative projection of one handler export."""

    export_name: str
    handler_kind: HandlerKind
    config: dict[str, Any]
    has_handler: bool
    deps_keys: tuple[str, ...]
    param_entries: tuple[ParamEntry, ...]
    static_globs: tuple[str, ...]
    route_patterns: tuple[str, ...]


class ExtractionFailure(StructBaseStrict, frozen=True):
    """Attributable failure for one handler export."""

    export_name: str
    property: str
    reason: str
    line: int


class ExtractionReport(StructBaseStrict, frozen=True):
    """Descriptors and failures produced for one source and handler kind."""

    descriptors: tuple[HandlerDescriptor, ...] = ()
    failures: tuple[ExtractionFailure, ...] = ()


@dataclass(frozen=True)
class _Member:
    name: str
    node: Node
    value: Node | None


@dataclass(frozen=True)
class _DefinerCall:
    export_name: str
    argument: Node


def _export_value(statement: Node) -> Node | None:
    value = statement.child_by_field_name("value")
    if value is not None:
        return value
    if any(child.type == "default" for child in statement.children):
        candidates = named_children(statement)
        return candidates[-1] if candidates else None
    return None


def _single_object_argument(call: Node, definer: str) -> Node | None:
    call = unwrap_expression(call)
    if call.type != "call_expression":
        return None
    function = call.child_by_field_name("function")
    if function is None or function.type != "identifier" or node_text(function) != definer:
        return None
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return None
    args = named_children(arguments)
    if len(args) != 1 or args[0].type != "object":
        return None
    return args[0]


def _definer_calls(root: Node, definer: str) -> Iterator[_DefinerCall]:
    defaults: list[_DefinerCall] = []
    named: list[_DefinerCall] = []
    for statement in named_children(root):
        if statement.type != "export_statement":
            continue
        declaration = statement.child_by_field_name("declaration")
        if declaration is None:
            value = _export_value(statement)
            argument = _single_object_argument(value, definer) if value is not None else None
            if argument is not None:
                defaults.append(_DefinerCall(export_name=DEFAULT_EXPORT, argument=argument))
            continue
        if declaration.type not in _DECLARATION_TYPES:
            continue
        for declarator in named_children(declaration):
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is None or value is None or name.type != "identifier":
                continue
            argument = _single_object_argument(value, definer)
            if argument is not None:
                named.append(_DefinerCall(export_name=node_text(name), argument=argument))
    yield from defaults
    yield from named


def _members(obj: Node) -> dict[str, _Member]:
    members: dict[str, _Member] = {}
    for child in named_children(obj):
        if child.type == "pair":
            key_node = child.child_by_field_name("key")
            if key_node is None:
                continue
            name = property_key(key_node)
            value = child.child_by_field_name("value")
        elif child.type == "shorthand_property_identifier":
            name = node_text(child)
            value = child
        elif child.type == "method_definition":
            key_node = child.child_by_field_name("name")
            if key_node is None:
                continue
            name = property_key(key_node)
            value = child
        else:
            msg = "Spread and other dynamic members are not literal values"
            raise LiteralExtractionError.for_node(child, msg, path="")
        members[name] = _Member(name=name, node=child, value=value)
    return members


def _is_defined(member: _Member | None) -> bool:
    if member is None or member.value is None:
        return False
    if member.node.type == "pair":
        value = unwrap_expression(member.value)
        return not is_undefined(value)
    return not (member.node.type == "shorthand_property_identifier" and member.name == "undefined")


def _config_value(members: dict[str, _Member]) -> dict[str, Any]:
    config: dict[str, Any] = {}
    for name, member in members.items():
        if name in RUNTIME_PROPERTIES:
            continue
        if member.node.type != "pair" or member.value is None:
            msg = "Shorthand and method members are not literal values"
            raise LiteralExtractionError.for_node(member.node, msg, path=name)
        value = transcribe_literal(member.value, path=name)
        if not is_absent(value):
            config[name] = value
    return config


def _object_keys(member: _Member | None) -> tuple[str, ...]:
    if member is None or member.node.type != "pair" or member.value is None:
        return ()
    value = unwrap_expression(member.value)
    if value.type != "object":
        return ()
    keys: list[str] = []
    for child in named_children(value):
        if child.type == "pair":
            key_node = child.child_by_field_name("key")
            if key_node is not None:
                keys.append(property_key(key_node, path=member.name))
        elif child.type == "shorthand_property_identifier":
            keys.append(node_text(child))
    return tuple(keys)


def _param_entries(members: dict[str, _Member]) -> tuple[ParamEntry, ...]:
    entries: list[ParamEntry] = []
    param_members = sorted(
        (member for name, member in members.items() if name in PARAM_MAP_PROPERTIES),
        key=lambda member: member.node.start_byte,
    )
    for member in param_members:
        if member.node.type != "pair" or member.value is None:
            continue
        value = unwrap_expression(member.value)
        if value.type != "object":
            continue
        for child in named_children(value):
            if child.type != "pair":
                continue
            key_node = child.child_by_field_name("key")
            entry_value = child.child_by_field_name("value")
            if key_node is None or entry_value is None:
                continue
            if unwrap_expression(entry_value).type != "call_expression":
                continue
            prop_name = property_key(key_node, path=member.name)
            reference = transcribe_param_reference(
                entry_value, path=join_path(member.name, prop_name)
            )
            if reference is not None:
                entries.append(ParamEntry(prop_name=prop_name, remote_key=reference.key))
    return tuple(entries)


def _static_globs(member: _Member | None) -> tuple[str, ...]:
    if member is None:
        return ()
    if member.node.type != "pair" or member.value is None:
        msg = "Static asset globs must be an array of string literals"
        raise LiteralExtractionError.for_node(member.node, msg, path=STATIC_PROPERTY)
    value = unwrap_expression(member.value)
    if is_undefined(value):
        return ()
    if value.type != "array":
        msg = "Static asset globs must be an array of string literals"
        raise LiteralExtractionError.for_node(value, msg, path=STATIC_PROPERTY)
    return tuple(
        string_value(element, path=join_path(STATIC_PROPERTY, index))
        for index, element in enumerate(named_children(value))
    )


def _descriptor(
    call: _DefinerCall,
    definition: HandlerDefinition,
) -> HandlerDescriptor:
    members = _members(call.argument)
    return HandlerDescriptor(
        export_name=call.export_name,
        handler_kind=definition.kind,
        config=_config_value(members),
        has_handler=any(_is_defined(members.get(marker)) for marker in definition.handler_markers),
        deps_keys=_object_keys(members.get(DEPS_PROPERTY)),
        param_entries=_param_entries(members),
        static_globs=_static_globs(members.get(STATIC_PROPERTY)),
        route_patterns=_object_keys(members.get(ROUTES_PROPERTY)),
    )


def extract_handler_configs(
    source: str | bytes,
    kind: HandlerKind | str,
    *,
    path: str | PurePath | None = None,
) -> ExtractionReport:
    """Extract every handler descriptor of one kind from a source file.

    Parameters
    ----------
    source
        Full source text of the file.
    kind
        Handler kind whose definer call is recognized.
    path
        Optional file path, used to pick the grammar and in log messages.

    Returns
    -------
    ExtractionReport
        Descriptors in export order (default export first) plus one failure
        record per export whose configuration is not a literal.
    """
    definition = definition_for(kind)
    tree = parse_source(source, path=path)
    descriptors: list[HandlerDescriptor] = []
    failures: list[ExtractionFailure] = []
    for call in _definer_calls(tree.root_node, definition.definer):
        try:
            descriptors.append(_descriptor(call, definition))
        except LiteralExtractionError as exc:
            line = exc.line if exc.line else node_position(call.argument)[0]
            failures.append(
                ExtractionFailure(
                    export_name=call.export_name,
                    property=exc.path,
                    reason=str(exc),
                    line=line,
                )
            )
            logger.warning(
                "Skipping %s export %r in %s: %s",
                definition.definer,
                call.export_name,
                path or "<source>",
                exc,
            )
    return ExtractionReport(descriptors=tuple(descriptors), failures=tuple(failures))


def extract_descriptors(
    source: str | bytes,
    kind: HandlerKind | str,
    *,
    path: str | PurePath | None = None,
) -> list[HandlerDescriptor]:
    """Return the handler descriptors of one kind found in ``source``.

    Returns
    -------
    list[HandlerDescriptor]
        Descriptors in export order; empty when no definer call matches.
    """
    return list(extract_handler_configs(source, kind, path=path).descriptors)


__all__ = [
    "DEFAULT_EXPORT",
    "ExtractionFailure",
    "ExtractionReport",
    "HandlerDescriptor",
    "ParamEntry",
    "extract_descriptors",
    "extract_handler_configs",
]
