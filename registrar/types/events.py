"""
registrar.types.events: the event record appended to the ordered log.

An event is emitted by a component (identified by its address) under a
name such as ``"NameRegistered"`` with a small mapping of arguments. The
sequence number `seq` is assigned by the state store at emission time and is
strictly increasing across *committed* events; events emitted inside an
aborted operation are discarded together with its state changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from registrar.utils.bytes import to_hex


@dataclass(frozen=True)
class Event:
    emitter: bytes
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)
    seq: int = -1

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> dict:
        return {
            "seq": self.seq,
            "emitter": to_hex(self.emitter),
            "name": self.name,
            "args": {k: (to_hex(v) if isinstance(v, (bytes, bytearray)) else v) for k, v in self.args.items()},
        }


__all__ = ["Event"]
