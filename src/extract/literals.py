"""Structural transcription of literal syntax nodes into Python values.

Only a closed set of node shapes is understood: object and array literals,
strings, template strings without substitutions, numbers, booleans and
``null``. Anything else raises :class:`LiteralExtractionError`. Source text is
never handed to an evaluator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from extract.ts_parser import named_children, node_position, node_text

if TYPE_CHECKING:
    from tree_sitter import Node


class _Absent:
    """Marker for the ``undefined`` literal."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT: Final = _Absent()

_WRAPPER_TYPES: frozenset[str] = frozenset(
    {"as_expression", "satisfies_expression", "non_null_expression"}
)
_SIMPLE_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}
_ESCAPE_RE = re.compile(
    r"\\(?:u\{(?P<cp>[0-9a-fA-F]+)\}|u(?P<u4>[0-9a-fA-F]{4})|x(?P<x2>[0-9a-fA-F]{2})"
    r"|(?P<nl>\r\n|\n|\r|\u2028|\u2029)|(?P<ch>.))",
    re.DOTALL,
)
_SURROGATE_PAIR_RE = re.compile("[\ud800-\udbff][\udc00-\udfff]")
_LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")
_RADIX_PREFIXES: dict[str, int] = {"0x": 16, "0o": 8, "0b": 2}


class LiteralExtractionError(ValueError):
    """Raised when a node cannot be transcribed into a literal value."""

    def __init__(
        self,
        reason: str,
        *,
        node_type: str,
        line: int,
        column: int,
        path: str,
    ) -> None:
        self.reason = reason
        self.node_type = node_type
        self.line = line
        self.column = column
        self.path = path
        location = f" at {path!r}" if path else ""
        super().__init__(f"{reason}{location} ({node_type}, line {line}, column {column})")

    @classmethod
    def for_node(cls, node: Node, reason: str, *, path: str) -> LiteralExtractionError:
        """Build an error attributed to ``node``.

        Returns
        -------
        LiteralExtractionError
            Error carrying the node type and position.
        """
        line, column = node_position(node)
        return cls(reason, node_type=node.type, line=line, column=column, path=path)


@dataclass(frozen=True)
class ParamReference:
    """Reference to a remotely stored parameter by key."""

    key: str


def join_path(parent: str, key: str | int) -> str:
    """Return a property path extended by one segment.

    Returns
    -------
    str
        Dotted path with bracketed array indexes.
    """
    if isinstance(key, int):
        return f"{parent}[{key}]"
    return f"{parent}.{key}" if parent else key


def is_absent(value: object) -> bool:
    """Return whether a transcribed value is the ``undefined`` marker.

    Returns
    -------
    bool
        ``True`` for :data:`ABSENT`.
    """
    return value is ABSENT


def unwrap_expression(node: Node) -> Node:
    """Strip parentheses and value-free TypeScript wrappers from an expression.

    Returns
    -------
    Node
        Innermost wrapped expression.
    """
    current = node
    while True:
        if current.type == "parenthesized_expression" or current.type in _WRAPPER_TYPES:
            children = named_children(current)
            if not children:
                return current
            current = children[0]
            continue
        if current.type == "type_assertion":
            children = named_children(current)
            if not children:
                return current
            current = children[-1]
            continue
        return current


def is_undefined(node: Node) -> bool:
    """Return whether an expression node is the ``undefined`` literal.

    Returns
    -------
    bool
        ``True`` for ``undefined``.
    """
    return node.type == "undefined" or (
        node.type == "identifier" and node_text(node) == "undefined"
    )


def _decode_escape(match: re.Match[str]) -> str:
    if (cp := match.group("cp")) is not None:
        return chr(int(cp, 16))
    if (u4 := match.group("u4")) is not None:
        return chr(int(u4, 16))
    if (x2 := match.group("x2")) is not None:
        return chr(int(x2, 16))
    if match.group("nl") is not None:
        return ""
    char = match.group("ch")
    return _SIMPLE_ESCAPES.get(char, char)


def _join_surrogates(match: re.Match[str]) -> str:
    return match.group().encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def decode_string_body(body: str) -> str:
    """Decode JavaScript escape sequences in a string literal body.

    Returns
    -------
    str
        Decoded string value.
    """
    if "\\" not in body:
        return body
    decoded = _ESCAPE_RE.sub(_decode_escape, body)
    # Paired \uXXXX escapes form one astral code point; unpaired halves are not UTF-8.
    joined = _SURROGATE_PAIR_RE.sub(_join_surrogates, decoded)
    return _LONE_SURROGATE_RE.sub("\ufffd", joined)


def string_value(node: Node, *, path: str = "") -> str:
    """Return the value of a string or substitution-free template literal.

    Returns
    -------
    str
        Decoded string value.

    Raises
    ------
    LiteralExtractionError
        Raised when the node is not a plain string literal.
    """
    node = unwrap_expression(node)
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            msg = "Template strings with substitutions are not literal values"
            raise LiteralExtractionError.for_node(node, msg, path=path)
    elif node.type != "string":
        msg = "Expected a string literal"
        raise LiteralExtractionError.for_node(node, msg, path=path)
    text = node_text(node)
    return decode_string_body(text[1:-1])


def _number_value(node: Node, *, negate: bool, path: str) -> int | float:
    text = node_text(node).replace("_", "")
    if text.endswith("n"):
        msg = "BigInt literals are not supported"
        raise LiteralExtractionError.for_node(node, msg, path=path)
    prefix = text[:2].lower()
    try:
        if prefix in _RADIX_PREFIXES:
            value: int | float = int(text[2:], _RADIX_PREFIXES[prefix])
        elif any(marker in text for marker in (".", "e", "E")):
            value = float(text)
        elif len(text) > 1 and text.startswith("0") and text.isdigit():
            # Legacy octal unless a digit rules it out.
            value = int(text, 8) if set(text) <= set("01234567") else int(text, 10)
        else:
            value = int(text, 10)
    except ValueError as exc:
        msg = f"Malformed number literal {text!r}"
        raise LiteralExtractionError.for_node(node, msg, path=path) from exc
    return -value if negate else value


def _unary_value(node: Node, *, path: str) -> int | float:
    operator = node.child_by_field_name("operator")
    argument = node.child_by_field_name("argument")
    op_text = node_text(operator) if operator is not None else ""
    if argument is None or op_text not in {"-", "+"}:
        msg = f"Unary operator {op_text!r} is not a literal value"
        raise LiteralExtractionError.for_node(node, msg, path=path)
    inner = unwrap_expression(argument)
    if inner.type != "number":
        msg = "Unary operators are only supported on number literals"
        raise LiteralExtractionError.for_node(node, msg, path=path)
    return _number_value(inner, negate=op_text == "-", path=path)


def property_key(node: Node, *, path: str = "") -> str:
    """Return the static name of an object property key.

    Returns
    -------
    str
        Key name.

    Raises
    ------
    LiteralExtractionError
        Raised for computed or private keys.
    """
    if node.type == "property_identifier":
        return node_text(node)
    if node.type == "string":
        return string_value(node, path=path)
    if node.type == "number":
        value = _number_value(node, negate=False, path=path)
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return repr(value) if isinstance(value, float) else str(value)
    msg = "Computed or private property keys are not literal values"
    raise LiteralExtractionError.for_node(node, msg, path=path)


def _object_value(node: Node, *, path: str) -> dict[str, object]:
    result: dict[str, object] = {}
    for member in named_children(node):
        if member.type != "pair":
            msg = "Only key/value pairs are allowed in literal objects"
            raise LiteralExtractionError.for_node(member, msg, path=path)
        key_node = member.child_by_field_name("key")
        value_node = member.child_by_field_name("value")
        if key_node is None or value_node is None:
            msg = "Incomplete object member"
            raise LiteralExtractionError.for_node(member, msg, path=path)
        key = property_key(key_node, path=path)
        value = transcribe_literal(value_node, path=join_path(path, key))
        # Later duplicates override earlier ones, as in an evaluated literal.
        if value is ABSENT:
            result.pop(key, None)
        else:
            result[key] = value
    return result


def _array_value(node: Node, *, path: str) -> list[object]:
    values: list[object] = []
    for index, element in enumerate(named_children(node)):
        value = transcribe_literal(element, path=join_path(path, index))
        values.append(None if value is ABSENT else value)
    return values


def transcribe_literal(node: Node, *, path: str = "") -> object:
    """Transcribe an expression node into a native value.

    Parameters
    ----------
    node
        Expression node.
    path
        Property path used in error messages.

    Returns
    -------
    object
        ``dict``, ``list``, ``str``, ``int``, ``float``, ``bool``, ``None`` or
        :data:`ABSENT` for ``undefined``.

    Raises
    ------
    LiteralExtractionError
        Raised when any reachable node is outside the supported literal shapes.
    """
    node = unwrap_expression(node)
    kind = node.type
    if kind == "object":
        return _object_value(node, path=path)
    if kind == "array":
        return _array_value(node, path=path)
    if kind in {"string", "template_string"}:
        return string_value(node, path=path)
    if kind == "number":
        return _number_value(node, negate=False, path=path)
    if kind == "unary_expression":
        return _unary_value(node, path=path)
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "null":
        return None
    if is_undefined(node):
        return ABSENT
    msg = f"Unsupported expression {kind!r}"
    raise LiteralExtractionError.for_node(node, msg, path=path)


def transcribe_param_reference(node: Node, *, path: str = "") -> ParamReference | None:
    """Transcribe a parameter reference call such as ``param("key", fn)``.

    Only the first argument is read, and only when it is a string literal.
    Further arguments are ignored without inspection.

    Returns
    -------
    ParamReference | None
        Reference for the first string argument, or ``None`` when the call
        has no string-literal first argument.

    Raises
    ------
    LiteralExtractionError
        Raised when ``node`` is not a call expression.
    """
    node = unwrap_expression(node)
    if node.type != "call_expression":
        msg = "Expected a parameter reference call"
        raise LiteralExtractionError.for_node(node, msg, path=path)
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return None
    args = named_children(arguments)
    if not args:
        return None
    first = unwrap_expression(args[0])
    if first.type == "string":
        return ParamReference(key=string_value(first, path=path))
    if first.type == "template_string" and not any(
        child.type == "template_substitution" for child in first.named_children
    ):
        return ParamReference(key=string_value(first, path=path))
    return None


__all__ = [
    "ABSENT",
    "LiteralExtractionError",
    "ParamReference",
    "decode_string_body",
    "is_absent",
    "is_undefined",
    "join_path",
    "property_key",
    "string_value",
    "transcribe_literal",
    "transcribe_param_reference",
    "unwrap_expression",
]
