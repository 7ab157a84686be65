"""SHA-256 helpers for fingerprints and archive digests."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from serde_msgspec import JSON_ENCODER_SORTED, to_builtins


def hash_sha256_hex(payload: bytes, *, length: int | None = None) -> str:
    """Return the SHA-256 hex digest of ``payload``.

    Parameters
    ----------
    payload
        Raw bytes to hash.
    length
        Keep only this many leading hex characters.

    Returns
    -------
    str
        Lowercase hex digest.
    """
    digest = hashlib.sha256(payload).hexdigest()
    return digest if length is None else digest[:length]


def hash_lines(lines: Iterable[str], *, length: int | None = None) -> str:
    """Return the digest of ``lines`` joined by ``\\n`` (no trailing newline).

    Returns
    -------
    str
        Lowercase hex digest, truncated to ``length`` when given.
    """
    return hash_sha256_hex("\n".join(lines).encode("utf-8"), length=length)


def hash_json_canonical(payload: object) -> str:
    # Sorted keys so equal mappings hash equally regardless of insertion order.
    return hash_sha256_hex(JSON_ENCODER_SORTED.encode(to_builtins(payload, str_keys=True)))


__all__ = [
    "hash_json_canonical",
    "hash_lines",
    "hash_sha256_hex",
]
