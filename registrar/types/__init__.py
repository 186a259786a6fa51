"""
registrar.types
---------------

Typed records shared by the registrar components (ledger, controllers,
sequencer, tests). Re-exported here so callers can import them from a
stable path.
"""

from __future__ import annotations

from .core import (
    Address,
    CommitRecord,
    MigrationGate,
    MigrationItem,
    NameRecord,
    TokenId,
)
from .events import Event

__all__ = [
    "Address",
    "TokenId",
    "NameRecord",
    "CommitRecord",
    "MigrationGate",
    "MigrationItem",
    "Event",
]
