"""
registrar.state.journal: journaled key/value state with nested checkpoints.

All registrar components keep their persisted state in one `StateStore` owned
by the sequencer. Keys are ``(namespace, key)`` pairs where the namespace is
the owning component's address plus a short tag (mirroring the storage
prefixes used by on-chain registries: ``addr || b"owners"``).

Atomicity
---------
Every public mutator runs inside :meth:`StateStore.atomic`. Opening a scope
pushes a checkpoint that records the *first* previous value of every key
written under it (a first-write log) and the length of the event log. On
success the checkpoint is merged into its parent (without overwriting the
parent's older entries); on any exception the first-write log is replayed in
reverse and the event log is truncated, so the failed operation leaves zero
observable effect. Scopes nest, which is how a controller's reveal, the
ledger's register and the token's burn all commit or abort together.

Values
------
Stored values must be immutable (ints, bytes, str, tuples, frozensets,
frozen dataclasses). A mutation is always a replacement; the journal never
deep-copies.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Hashable, Iterator, List, Tuple

from registrar.types.events import Event

log = logging.getLogger(__name__)

_MISSING = object()

Key = Tuple[bytes, Hashable]


@dataclass
class _Checkpoint:
    id: int
    events_len: int
    # first-write log: key -> previous value (or _MISSING)
    prev: Dict[Key, Any] = field(default_factory=dict)


class StateStore:
    """
    In-memory journaled state plus the ordered event log.

    API highlights
    --------------
    - get() / set() / delete() / contains()
    - checkpoint() / commit(cid) / revert(cid) with LIFO discipline
    - atomic() context manager wrapping the three above
    - emit() / events() / events_since()
    """

    def __init__(self) -> None:
        self._data: Dict[Key, Any] = {}
        self._events: List[Event] = []
        self._stack: List[_Checkpoint] = []
        self._next_id = 1
        self._next_seq = 0

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, ns: bytes, key: Hashable, default: Any = None) -> Any:
        return self._data.get((ns, key), default)

    def contains(self, ns: bytes, key: Hashable) -> bool:
        return (ns, key) in self._data

    def items(self, ns: bytes) -> Iterator[Tuple[Hashable, Any]]:
        for (n, k), v in list(self._data.items()):
            if n == ns:
                yield k, v

    def snapshot(self) -> Dict[Key, Any]:
        """Shallow copy of every stored value (values are immutable)."""
        return dict(self._data)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def _remember(self, k: Key) -> None:
        if self._stack:
            top = self._stack[-1]
            if k not in top.prev:
                top.prev[k] = self._data.get(k, _MISSING)

    def set(self, ns: bytes, key: Hashable, value: Any) -> None:
        k = (ns, key)
        self._remember(k)
        self._data[k] = value

    def delete(self, ns: bytes, key: Hashable) -> None:
        k = (ns, key)
        if k in self._data:
            self._remember(k)
            del self._data[k]

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def emit(self, event: Event) -> Event:
        stored = replace(event, seq=self._next_seq)
        self._next_seq += 1
        self._events.append(stored)
        return stored

    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def event_count(self) -> int:
        return len(self._events)

    def events_since(self, mark: int) -> Tuple[Event, ...]:
        return tuple(self._events[mark:])

    # ------------------------------------------------------------------ #
    # Checkpoints
    # ------------------------------------------------------------------ #

    def depth(self) -> int:
        return len(self._stack)

    def checkpoint(self) -> int:
        cid = self._next_id
        self._next_id += 1
        self._stack.append(_Checkpoint(cid, len(self._events)))
        return cid

    def _top(self, cid: int) -> _Checkpoint:
        if not self._stack or self._stack[-1].id != cid:
            raise RuntimeError(f"checkpoint {cid} is not the top-most checkpoint")
        return self._stack[-1]

    def commit(self, cid: int) -> None:
        cp = self._top(cid)
        self._stack.pop()
        if self._stack:
            parent = self._stack[-1]
            for k, prev in cp.prev.items():
                parent.prev.setdefault(k, prev)

    def revert(self, cid: int) -> None:
        cp = self._top(cid)
        self._stack.pop()
        for k, prev in reversed(list(cp.prev.items())):
            if prev is _MISSING:
                self._data.pop(k, None)
            else:
                self._data[k] = prev
        dropped = len(self._events) - cp.events_len
        del self._events[cp.events_len:]
        # Sequence numbers stay dense for committed events.
        self._next_seq = self._events[-1].seq + 1 if self._events else 0
        if dropped:
            log.debug("reverted checkpoint", extra={"checkpoint": cid, "events_dropped": dropped})

    @contextmanager
    def atomic(self) -> Iterator[int]:
        """Run a block all-or-nothing; re-raises whatever aborted it."""
        cid = self.checkpoint()
        try:
            yield cid
        except BaseException:
            self.revert(cid)
            raise
        else:
            self.commit(cid)


__all__ = ["StateStore"]
