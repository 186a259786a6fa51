"""
Word-aligned ABI encoding for commit bindings.

Commit hashes must be reproducible by any client that speaks the standard
32-byte-word contract ABI, so this module implements the head/tail layout for
the handful of types a commitment binds:

- address:  20 bytes, left-padded to one word
- bytes32:  exactly one word
- uint256:  big-endian, one word
- string:   dynamic; the head holds the tail offset, the tail holds the
            byte length (one word) followed by the UTF-8 bytes right-padded
            to a word boundary

Only encoding is provided; nothing in the registrar decodes ABI data.
"""

from __future__ import annotations

from typing import Any, List, Sequence

from .bytes import as_address, as_bytes, left_pad, right_pad

__all__ = ["encode_single", "encode_params", "SUPPORTED_TYPES"]

WORD = 32

SUPPORTED_TYPES = ("address", "bytes32", "uint256", "string")


def _is_dynamic(typ: str) -> bool:
    return typ == "string"


def encode_single(typ: str, value: Any) -> bytes:
    """Encode one static value as a single word (or a dynamic tail)."""
    if typ == "address":
        return left_pad(as_address(value), WORD)
    if typ == "bytes32":
        raw = as_bytes(value)
        if len(raw) != WORD:
            raise ValueError(f"bytes32 value must be exactly 32 bytes (got {len(raw)})")
        return raw
    if typ == "uint256":
        n = int(value)
        if n < 0 or n >= 1 << 256:
            raise ValueError("uint256 out of range")
        return n.to_bytes(WORD, "big")
    if typ == "string":
        raw = value.encode("utf-8") if isinstance(value, str) else as_bytes(value)
        return len(raw).to_bytes(WORD, "big") + right_pad(raw, WORD)
    raise ValueError(f"unsupported ABI type: {typ!r}")


def encode_params(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    Encode a parameter tuple with head/tail layout.

    >>> encode_params(["uint256"], [1]).hex()[-2:]
    '01'
    """
    if len(types) != len(values):
        raise ValueError("types and values must have the same length")

    head_size = WORD * len(types)
    heads: List[bytes] = []
    tails: List[bytes] = []
    offset = head_size
    for typ, val in zip(types, values):
        if _is_dynamic(typ):
            tail = encode_single(typ, val)
            heads.append(offset.to_bytes(WORD, "big"))
            tails.append(tail)
            offset += len(tail)
        else:
            heads.append(encode_single(typ, val))
    return b"".join(heads) + b"".join(tails)

