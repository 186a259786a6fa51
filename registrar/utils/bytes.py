"""
registrar.utils.bytes
=====================

Small utilities for working with hex/bytes plus strict address guards.

Highlights
----------
- :func:`to_hex` / :func:`from_hex` with strict validation.
- :func:`as_bytes` to normalize bytes-like values.
- :func:`as_address` to accept a 20-byte address as bytes or ``0x`` hex.
- :func:`left_pad` / :func:`right_pad` for 32-byte word encoding.
- :func:`consteq` timing-safe equality (hmac.compare_digest).
"""

from __future__ import annotations

import hmac
import re
from typing import Union

from registrar.constants import ADDRESS_BYTES

BytesLike = Union[bytes, bytearray, memoryview]
AddressLike = Union[bytes, bytearray, memoryview, str]

__all__ = [
    "BytesLike",
    "AddressLike",
    "to_hex",
    "from_hex",
    "as_bytes",
    "as_address",
    "left_pad",
    "right_pad",
    "consteq",
]

_HEX_RE = re.compile(r"^(?:0x)?[0-9a-fA-F]*$")


def to_hex(b: BytesLike, *, prefix: bool = True) -> str:
    """Encode bytes-like as lowercase hex (``0x``-prefixed by default)."""
    h = bytes(b).hex()
    return "0x" + h if prefix else h


def from_hex(s: str) -> bytes:
    """Decode a hex string with optional ``0x`` prefix. Raises ValueError."""
    if not isinstance(s, str) or not _HEX_RE.match(s):
        raise ValueError(f"invalid hex string: {s!r}")
    body = s[2:] if s.startswith("0x") else s
    if len(body) % 2:
        raise ValueError("hex string must have an even number of nibbles")
    return bytes.fromhex(body)


def as_bytes(x: BytesLike) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    raise TypeError(f"expected bytes-like object (got {type(x).__name__})")


def as_address(x: AddressLike) -> bytes:
    """Normalize an address given as raw bytes or hex into 20 raw bytes."""
    b = from_hex(x) if isinstance(x, str) else as_bytes(x)
    if len(b) != ADDRESS_BYTES:
        raise ValueError(f"address must be exactly {ADDRESS_BYTES} bytes (got {len(b)})")
    return b


def left_pad(b: BytesLike, size: int = 32) -> bytes:
    raw = as_bytes(b)
    if len(raw) > size:
        raise ValueError(f"value longer than {size} bytes")
    return b"\x00" * (size - len(raw)) + raw


def right_pad(b: BytesLike, multiple: int = 32) -> bytes:
    """Right-pad with zeros up to the next multiple of *multiple* bytes."""
    raw = as_bytes(b)
    rem = len(raw) % multiple
    return raw if rem == 0 else raw + b"\x00" * (multiple - rem)


def consteq(a: BytesLike, b: BytesLike) -> bool:
    return hmac.compare_digest(as_bytes(a), as_bytes(b))
