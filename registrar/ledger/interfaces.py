"""
Capability interfaces between the ownership ledger and its controllers.

Controllers need to mint through the ledger and the ledger needs to know
which controllers may mint. Neither side imports the other's concrete class:
controllers are written against :class:`Registrar`, and the ledger only ever
sees controller *addresses*. :class:`ControllerCaller` describes what a
controller exposes so deployment code can wire the two together.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from registrar.validator import NameLike


@runtime_checkable
class Registrar(Protocol):
    address: bytes

    def register(self, name: str, beneficiary: bytes, *, caller: bytes) -> int: ...

    def available(self, name: NameLike) -> bool: ...

    def is_controller(self, addr: bytes) -> bool: ...


@runtime_checkable
class ControllerCaller(Protocol):
    address: bytes

    @property
    def registrar(self) -> Registrar: ...


__all__ = ["Registrar", "ControllerCaller"]
