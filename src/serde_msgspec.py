"""msgspec base structs and JSON encoding shared by handlerpack."""

from __future__ import annotations

import re
from pathlib import Path

import msgspec


class StructBaseStrict(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=True,
):
    """Immutable record whose decoding rejects unknown keys (descriptors, config)."""


class StructBaseCompat(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    omit_defaults=True,
    repr_omit_defaults=True,
    forbid_unknown_fields=False,
):
    """Immutable record for npm manifests, where unmodelled keys are ignored."""


# msgspec reports the failing location as "... - at `$.layer.max_workers`".
_VALIDATION_RE = re.compile(r"^(?P<summary>.*?)(?:\s+-\s+at\s+`(?P<path>[^`]+)`)?$")


def _enc_hook(obj: object) -> object:
    if isinstance(obj, Path):
        return obj.as_posix()
    if isinstance(obj, (frozenset, set)):
        return sorted(obj)
    msg = f"Cannot encode {type(obj).__name__} as JSON"
    raise TypeError(msg)


JSON_ENCODER = msgspec.json.Encoder(enc_hook=_enc_hook, order="deterministic")
JSON_ENCODER_SORTED = msgspec.json.Encoder(enc_hook=_enc_hook, order="sorted")


def to_builtins(obj: object, *, str_keys: bool = False) -> object:
    """Return ``obj`` as plain dicts, lists and scalars.

    Returns
    -------
    object
        Builtin representation; paths become POSIX strings.
    """
    return msgspec.to_builtins(obj, enc_hook=_enc_hook, str_keys=str_keys)


def validation_error_payload(exc: msgspec.ValidationError) -> dict[str, str]:
    """Split a msgspec validation message into summary and key path.

    Returns
    -------
    dict[str, str]
        ``type`` and ``summary``, plus ``path`` when msgspec reported one.
    """
    message = str(exc).strip()
    payload: dict[str, str] = {"type": exc.__class__.__name__}
    match = _VALIDATION_RE.match(message)
    if match is None:
        payload["summary"] = message
        return payload
    payload["summary"] = (match.group("summary") or message).strip()
    if match.group("path"):
        payload["path"] = match.group("path")
    return payload


def dumps_json(obj: object, *, pretty: bool = False) -> bytes:
    """Encode discovery output and other records as JSON.

    Returns
    -------
    bytes
        Compact JSON, or two-space indented JSON when ``pretty`` is set.
    """
    raw = JSON_ENCODER.encode(obj)
    return msgspec.json.format(raw, indent=2) if pretty else raw


__all__ = [
    "JSON_ENCODER",
    "JSON_ENCODER_SORTED",
    "StructBaseCompat",
    "StructBaseStrict",
    "dumps_json",
    "to_builtins",
    "validation_error_payload",
]
