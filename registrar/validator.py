"""
Name validation and canonicalization.

Names are judged **byte by byte**. A `str` is first encoded as UTF-8 and the
resulting bytes are checked; the length bound is a byte count as well. Every
byte must be ASCII ``0-9``, ``A-Z`` or ``a-z``. A multi-byte UTF-8 character
therefore fails because at least one of its bytes is outside those ranges;
this is the rejection set consumers rely on, so no Unicode-aware shortcut
(``str.isalnum``, ``str.lower``, casefolding) is used anywhere here.

Canonical form lowercases only ``A-Z`` through an explicit 256-entry
translation table; every other byte passes unchanged. The canonical bytes are
the uniqueness key: ``token_id(name) == int(keccak256(canonicalize(name)))``.
"""

from __future__ import annotations

from typing import Union

from registrar.constants import (
    DEFAULT_MAX_NAME_LENGTH,
    DEFAULT_MIN_NAME_LENGTH,
    LEGACY_NAME_WORD_BYTES,
)
from registrar.errors import InvalidArgument, InvalidCharacter, InvalidLength
from registrar.utils.hash import keccak256, token_id_of

NameLike = Union[str, bytes, bytearray]

__all__ = [
    "NameLike",
    "name_bytes",
    "canonicalize",
    "is_allowed_byte",
    "validate",
    "label_hash_of",
    "token_id",
    "format_uri",
    "bytes32_to_string",
]

_DIGITS = range(0x30, 0x3A)  # 0-9
_UPPER = range(0x41, 0x5B)  # A-Z
_LOWER = range(0x61, 0x7B)  # a-z

_ALLOWED = frozenset(_DIGITS) | frozenset(_UPPER) | frozenset(_LOWER)

# A-Z -> a-z, identity elsewhere.
_LOWER_TABLE = bytes(b + 0x20 if b in _UPPER else b for b in range(256))


def name_bytes(name: NameLike) -> bytes:
    if isinstance(name, str):
        return name.encode("utf-8", errors="surrogateescape")
    if isinstance(name, (bytes, bytearray)):
        return bytes(name)
    raise InvalidArgument(f"name must be str or bytes (got {type(name).__name__})")


def canonicalize(name: NameLike) -> bytes:
    return name_bytes(name).translate(_LOWER_TABLE)


def is_allowed_byte(b: int) -> bool:
    return b in _ALLOWED


def validate(
    name: NameLike,
    *,
    min_length: int = DEFAULT_MIN_NAME_LENGTH,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
) -> bytes:
    """
    Check `name` and return its canonical bytes.

    Raises:
        InvalidLength: byte length outside ``[min_length, max_length]``.
        InvalidCharacter: any byte outside ``[0-9A-Za-z]``.
    """
    raw = name_bytes(name)
    if not (min_length <= len(raw) <= max_length):
        raise InvalidLength(length=len(raw), min_length=min_length, max_length=max_length)
    for i, b in enumerate(raw):
        if b not in _ALLOWED:
            raise InvalidCharacter(details={"index": i, "byte": b})
    return raw.translate(_LOWER_TABLE)


def label_hash_of(name: NameLike) -> bytes:
    return keccak256(canonicalize(name))


def token_id(name: NameLike) -> int:
    return token_id_of(label_hash_of(name))


def format_uri(base_uri: str, display_name: str) -> str:
    if not base_uri:
        return ""
    return base_uri + display_name


def bytes32_to_string(raw: bytes) -> str:
    """
    Decode a legacy right zero-padded name word.

    Bytes up to the first NUL are kept and decoded as UTF-8 with surrogate
    escapes, so non-ASCII legacy data survives the round trip to the ledger
    unchanged at the byte level.
    """
    b = bytes(raw)
    if len(b) > LEGACY_NAME_WORD_BYTES:
        raise InvalidArgument(f"legacy name word longer than {LEGACY_NAME_WORD_BYTES} bytes")
    end = b.find(b"\x00")
    if end >= 0:
        b = b[:end]
    return b.decode("utf-8", errors="surrogateescape")
