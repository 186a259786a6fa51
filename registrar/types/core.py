from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import NewType

"""
Core typed primitives for the registrar.

These are intentionally minimal and immutable: the journaled state store
keeps references to them, so a mutation is always a *replacement* of the
stored record (see `registrar.state.journal`).

Types provided:
  • Address      : 20 raw bytes identifying an account or a component
  • TokenId      : integer view of keccak256(canonical name)
  • NameRecord   : the ledger's record for one registered name
  • CommitRecord : one account's outstanding commitment
  • MigrationGate: one-way switch between legacy import and live registration
  • MigrationItem: one legacy name to import
"""

Address = bytes
TokenId = NewType("TokenId", int)

_HASH32 = 32
_ADDR20 = 20


def _require_len(name: str, b: bytes, n: int) -> None:
    if len(b) != n:
        raise ValueError(f"{name} must be exactly {n} bytes (got {len(b)})")


def _require_nonneg(name: str, v: int) -> None:
    if v < 0:
        raise ValueError(f"{name} must be non-negative (got {v})")


@dataclass(frozen=True, slots=True)
class NameRecord:
    """
    A registered name.

    Fields:
      token_id     : keccak256(canonical name) as an integer (unique key)
      display_name : the name exactly as first registered (original case)
      owner        : current token owner (not necessarily the naming-system
                      owner of the child node; see `reclaim`)
      created_at   : registration timestamp (historical for migrated names)
    """

    token_id: int
    display_name: str
    owner: Address
    created_at: int

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_nonneg("token_id", int(self.token_id))
        _require_len("owner", self.owner, _ADDR20)
        _require_nonneg("created_at", int(self.created_at))

    def with_owner(self, owner: Address) -> "NameRecord":
        return replace(self, owner=owner)


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """
    A committer's latest commitment.

    Fields:
      hash         : 32-byte binding of (protocol, committer, name,
                      beneficiary, salt)
      committed_at : block timestamp of the commit
      revealed     : flips to True exactly once, on a successful reveal
    """

    hash: bytes
    committed_at: int
    revealed: bool = False

    def __post_init__(self) -> None:  # type: ignore[override]
        if not isinstance(self.hash, (bytes, bytearray)):
            raise TypeError("hash must be bytes")
        _require_len("hash", self.hash, _HASH32)
        _require_nonneg("committed_at", int(self.committed_at))

    def mark_revealed(self) -> "CommitRecord":
        return replace(self, revealed=True)


class MigrationGate(Enum):
    """`NOT_FINISHED --finish_migration()--> FINISHED` (terminal)."""

    NOT_FINISHED = "not_finished"
    FINISHED = "finished"

    @property
    def is_finished(self) -> bool:
        return self is MigrationGate.FINISHED


@dataclass(frozen=True, slots=True)
class MigrationItem:
    """One legacy name: raw (zero-padded) name bytes, owner, original date."""

    raw_name: bytes
    beneficiary: Address
    created_at: int

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_len("beneficiary", self.beneficiary, _ADDR20)
        _require_nonneg("created_at", int(self.created_at))
