"""Tree-sitter parsing helpers for TypeScript and JavaScript handler sources."""

from __future__ import annotations

from pathlib import PurePath

import tree_sitter_typescript
from tree_sitter import (
    LANGUAGE_VERSION,
    MIN_COMPATIBLE_LANGUAGE_VERSION,
    Language,
    Node,
    Parser,
    Tree,
)

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

TS_EXTENSIONS: tuple[str, ...] = (".ts", ".mts", ".cts")
TSX_EXTENSIONS: tuple[str, ...] = (".tsx", ".jsx", ".js", ".mjs", ".cjs")


def _assert_language_abi(lang: Language) -> None:
    if not (MIN_COMPATIBLE_LANGUAGE_VERSION <= lang.abi_version <= LANGUAGE_VERSION):
        msg = f"Tree-sitter ABI mismatch: {lang.abi_version}"
        raise ValueError(msg)


def language_for_path(path: str | PurePath | None) -> Language:
    """Return the grammar used for a source path.

    Plain TypeScript files use the TypeScript grammar because angle-bracket
    casts conflict with JSX. Every other extension uses the TSX grammar.

    Returns
    -------
    Language
        Tree-sitter language for the path.
    """
    if path is None:
        return TS_LANGUAGE
    suffix = PurePath(path).suffix.lower()
    if suffix in TSX_EXTENSIONS:
        return TSX_LANGUAGE
    return TS_LANGUAGE


def _parser(lang: Language) -> Parser:
    _assert_language_abi(lang)
    return Parser(lang)


def parse_source(source: str | bytes, *, path: str | PurePath | None = None) -> Tree:
    """Parse source text into a syntax tree.

    Parameters
    ----------
    source
        Source text or UTF-8 bytes.
    path
        Optional file path used to pick the grammar.

    Returns
    -------
    Tree
        Parsed tree. Syntax errors are represented as ``ERROR`` nodes.
    """
    data = source.encode("utf-8") if isinstance(source, str) else source
    return _parser(language_for_path(path)).parse(data)


def node_text(node: Node) -> str:
    """Return the UTF-8 text of a node.

    Returns
    -------
    str
        Decoded source text of the node.
    """
    text = node.text
    if text is None:
        return ""
    return text.decode("utf-8", errors="replace")


def node_position(node: Node) -> tuple[int, int]:
    """Return the 1-based line and column of a node start.

    Returns
    -------
    tuple[int, int]
        ``(line, column)`` pair.
    """
    row, column = node.start_point
    return int(row) + 1, int(column) + 1


def named_children(node: Node) -> list[Node]:
    """Return named children, skipping comments.

    Returns
    -------
    list[Node]
        Named child nodes in source order.
    """
    return [child for child in node.named_children if child.type != "comment"]


__all__ = [
    "TSX_EXTENSIONS",
    "TSX_LANGUAGE",
    "TS_EXTENSIONS",
    "TS_LANGUAGE",
    "language_for_path",
    "named_children",
    "node_position",
    "node_text",
    "parse_source",
]
