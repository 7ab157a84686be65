"""Shared type aliases."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Literal

from msgspec import Meta

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

type JsonPrimitive = str | int | float | bool | None
type JsonValue = JsonPrimitive | Mapping[str, JsonValue] | Sequence[JsonValue]

PositiveInt = Annotated[int, Meta(gt=0)]
PositiveFloat = Annotated[float, Meta(gt=0)]


__all__ = [
    "JsonPrimitive",
    "JsonValue",
    "LogLevel",
    "PositiveFloat",
    "PositiveInt",
]
