"""
multitoken.hashing — deterministic hashing wrappers.

Strictly bytes-in, bytes-out. Keccak-256 (the pre-standard SHA3 padding used
for CREATE2-style address prediction) comes from pycryptodome; SHA3-256 comes
from hashlib and is used where a stable non-consensus digest is enough
(deterministic test accounts, event log digests).

Provided APIs
-------------
- keccak256(data) -> bytes
- keccak256_concat(*chunks) -> bytes
- sha3_256(data) -> bytes
- length_prefixed(data) -> bytes      # 4-byte big-endian length || data
"""

from __future__ import annotations

import hashlib
from typing import Iterable

from Crypto.Hash import keccak as _keccak

from .errors import InvalidArgument

BytesLike = bytes | bytearray | memoryview


def _ensure_bytes(buf: object, name: str) -> bytes:
    if isinstance(buf, (bytes, bytearray, memoryview)):
        return bytes(buf)
    raise InvalidArgument(f"{name} must be bytes-like (got {type(buf).__name__})")


def keccak256(data: BytesLike) -> bytes:
    h = _keccak.new(digest_bits=256)
    h.update(_ensure_bytes(data, "data"))
    return h.digest()


def keccak256_concat(*chunks: BytesLike) -> bytes:
    """Keccak-256 over the plain concatenation of `chunks` (callers fix widths)."""
    return _hash_concat(chunks)


def _hash_concat(chunks: Iterable[BytesLike]) -> bytes:
    h = _keccak.new(digest_bits=256)
    for i, c in enumerate(chunks):
        h.update(_ensure_bytes(c, f"chunk[{i}]"))
    return h.digest()


def sha3_256(data: BytesLike) -> bytes:
    return hashlib.sha3_256(_ensure_bytes(data, "data")).digest()


def length_prefixed(data: BytesLike) -> bytes:
    """
    Encode `data` as 4-byte big-endian length followed by the bytes, so that
    concatenations of variable-width fields stay unambiguous.
    """
    b = _ensure_bytes(data, "data")
    return len(b).to_bytes(4, "big") + b


__all__ = [
    "keccak256",
    "keccak256_concat",
    "sha3_256",
    "length_prefixed",
]
