"""
registrar.utils.hash
====================

Keccak-256 helpers and the hierarchical node hashing used by the naming
system.

- :func:`keccak256`: one-shot Keccak-256 (the pre-standard SHA-3 padding
  used by EVM-style registries), provided by PyCryptodome.
- :func:`label_hash`: ``keccak256(label)`` for a single label.
- :func:`child_node`: ``keccak256(parent_node || label_hash)``.
- :func:`namehash`: recursive node id of a dotted name, rooted at 32 zero
  bytes (``namehash("") == ZERO_HASH``).
- :func:`token_id_of`: integer view of a 32-byte label hash.
"""

from __future__ import annotations

from typing import Union

from Crypto.Hash import keccak as _keccak

from registrar.constants import ZERO_HASH

from .bytes import BytesLike, as_bytes

__all__ = [
    "keccak256",
    "label_hash",
    "child_node",
    "namehash",
    "token_id_of",
    "hash_to_int",
]


def keccak256(data: BytesLike) -> bytes:
    """Return Keccak-256(data) as 32 raw bytes."""
    h = _keccak.new(digest_bits=256)
    h.update(as_bytes(data))
    return h.digest()


def label_hash(label: Union[str, BytesLike]) -> bytes:
    raw = label.encode("utf-8") if isinstance(label, str) else as_bytes(label)
    return keccak256(raw)


def child_node(parent: BytesLike, label_digest: BytesLike) -> bytes:
    p = as_bytes(parent)
    d = as_bytes(label_digest)
    if len(p) != 32 or len(d) != 32:
        raise ValueError("parent node and label hash must be 32 bytes each")
    return keccak256(p + d)


def namehash(name: str) -> bytes:
    node = ZERO_HASH
    if not name:
        return node
    for label in reversed(name.split(".")):
        node = child_node(node, label_hash(label))
    return node


def hash_to_int(digest: BytesLike) -> int:
    return int.from_bytes(as_bytes(digest), "big")


def token_id_of(label_digest: BytesLike) -> int:
    d = as_bytes(label_digest)
    if len(d) != 32:
        raise ValueError("label hash must be 32 bytes")
    return hash_to_int(d)
