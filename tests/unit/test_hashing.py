"""Tests for hashing helpers."""

from __future__ import annotations

import hashlib

from utils.hashing import hash_json_canonical, hash_lines, hash_sha256_hex


def test_hash_sha256_hex_truncation() -> None:
    """Ensure digests can be truncated to a prefix."""
    full = hash_sha256_hex(b"abc")
    assert full == hashlib.sha256(b"abc").hexdigest()
    assert hash_sha256_hex(b"abc", length=8) == "ba7816bf"


def test_hash_lines_joins_with_newlines() -> None:
    """Ensure lines are hashed newline-joined and order matters."""
    expected = hashlib.sha256(b"a@1.0.0\nb@2.0.0").hexdigest()
    assert hash_lines(["a@1.0.0", "b@2.0.0"]) == expected
    assert hash_lines(["b@2.0.0", "a@1.0.0"]) != expected


def test_hash_json_canonical_ignores_key_order() -> None:
    """Ensure mapping key order does not affect canonical hashes."""
    first = hash_json_canonical({"b": 1, "a": [1, 2]})
    second = hash_json_canonical({"a": [1, 2], "b": 1})
    assert first == second
    assert hash_json_canonical({"a": [2, 1], "b": 1}) != first
