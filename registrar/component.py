"""
Base class for deployable registrar components.

A component is anything with an address in the sequencer's component table:
the ledger, the controllers, and the in-memory collaborators. It keeps all of
its persisted state in the sequencer's journaled store under namespaces
derived from its own address, emits events into the shared ordered log, and
reads block time from the sequencer. Nothing is held in module globals.

Mutators are wrapped with :func:`atomic` so that every public operation either
commits all of its effects (including those of nested calls into other
components) or none of them.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Hashable, Iterator, Tuple, TypeVar

from registrar.constants import ZERO_ADDRESS
from registrar.errors import InvalidTarget, NotAdmin
from registrar.sequencer import Sequencer
from registrar.types.events import Event

F = TypeVar("F", bound=Callable[..., Any])

_ADMIN_KEY = b"admin"


def atomic(fn: F) -> F:
    """Run a component method inside one state checkpoint."""

    @functools.wraps(fn)
    def wrapper(self: "Component", *args: Any, **kwargs: Any) -> Any:
        with self._seq.state.atomic():
            return fn(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Component:
    def __init__(self, sequencer: Sequencer) -> None:
        self._seq = sequencer
        self.address: bytes = sequencer.deploy(self)

    # --- context ---

    @property
    def sequencer(self) -> Sequencer:
        return self._seq

    @property
    def now(self) -> int:
        return self._seq.now

    def _require_contract(self, addr: bytes, what: str) -> None:
        if not self._seq.is_contract(addr):
            raise InvalidTarget(f"{what} should be a contract", details={"address": addr})

    # --- storage ---

    def _ns(self, tag: bytes) -> bytes:
        return self.address + b":" + tag

    def _load(self, tag: bytes, key: Hashable = b"", default: Any = None) -> Any:
        return self._seq.state.get(self._ns(tag), key, default)

    def _store(self, tag: bytes, key: Hashable, value: Any) -> None:
        self._seq.state.set(self._ns(tag), key, value)

    def _drop(self, tag: bytes, key: Hashable) -> None:
        self._seq.state.delete(self._ns(tag), key)

    def _scan(self, tag: bytes) -> Iterator[Tuple[Hashable, Any]]:
        return self._seq.state.items(self._ns(tag))

    # --- events ---

    def _emit(self, event: str, /, **args: Any) -> Event:
        return self._seq.state.emit(Event(emitter=self.address, name=event, args=args))


class Administered(Component):
    """
    A component with a single designated administrator.

    "The administrator" is an authorization predicate, not a lock: the
    sequencer already serializes every call.
    """

    def __init__(self, sequencer: Sequencer, *, admin: bytes) -> None:
        super().__init__(sequencer)
        if admin == ZERO_ADDRESS:
            raise InvalidTarget("administrator can not be the zero address")
        self._seq.state.set(self._ns(_ADMIN_KEY), b"", admin)

    @property
    def admin(self) -> bytes:
        return self._load(_ADMIN_KEY)

    def _require_admin(self, caller: bytes) -> None:
        if caller != self.admin:
            raise NotAdmin(details={"caller": caller})

    @atomic
    def transfer_admin(self, new_admin: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        if new_admin == ZERO_ADDRESS:
            raise InvalidTarget("new administrator can not be the zero address")
        previous = self.admin
        self._store(_ADMIN_KEY, b"", new_admin)
        self._emit("OwnershipTransferred", previous=previous, new=new_admin)


__all__ = ["Component", "Administered", "atomic"]
