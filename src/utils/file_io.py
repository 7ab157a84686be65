"""Readers for handler sources, npm manifests and TOML config files."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import msgspec


def read_text(path: Path, *, encoding: str = "utf-8") -> str:
    return path.read_text(encoding=encoding)


def read_toml(path: Path) -> Mapping[str, object]:
    """Decode a TOML document.

    Returns
    -------
    Mapping[str, object]
        Top-level table.

    Raises
    ------
    TypeError
        Raised when the document does not decode to a table.
    """
    payload = msgspec.toml.decode(path.read_text(encoding="utf-8"), type=object, strict=True)
    if not isinstance(payload, dict):
        msg = f"Expected a TOML table in {path}, got {type(payload).__name__}."
        raise TypeError(msg)
    return payload


def read_json_as[T](path: Path, *, target_type: type[T]) -> T:
    """Decode a JSON file into ``target_type``, coercing where msgspec allows.

    Returns
    -------
    T
        Decoded payload.
    """
    return msgspec.json.decode(path.read_bytes(), type=target_type, strict=False)


__all__ = [
    "read_json_as",
    "read_text",
    "read_toml",
]
