"""Shared utilities for handlerpack."""

from utils.file_io import read_json_as, read_text, read_toml
from utils.hashing import hash_json_canonical, hash_lines, hash_sha256_hex

__all__ = [
    "hash_json_canonical",
    "hash_lines",
    "hash_sha256_hex",
    "read_json_as",
    "read_text",
    "read_toml",
]
