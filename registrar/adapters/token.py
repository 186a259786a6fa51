"""
Fungible payment token collaborator.

The registrar core only consumes the narrow :class:`PaymentToken` protocol
(`balance_of`, `allowance`, `transfer_from`, `burn`, `transfer`).
:class:`InMemoryToken` is a deterministic reference implementation living in
the same journaled state as the core, so a fee charged inside a failing
registration is rolled back with it.

Events
------
- ``Transfer``  {from, to, value}
- ``Approval``  {owner, spender, value}
- ``Burn``      {burner, value}

Reverts
-------
- `InsufficientFunds`     : balance lower than the amount moved/burned
- `NotAuthorizedToSpend`  : allowance lower than the amount pulled
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from registrar.component import Administered, atomic
from registrar.constants import ZERO_ADDRESS
from registrar.errors import InsufficientFunds, InvalidArgument, InvalidTarget, NotAuthorizedToSpend
from registrar.sequencer import Sequencer

_BAL = b"bal"
_ALW = b"alw"
_SUPPLY = b"supply"


@runtime_checkable
class PaymentToken(Protocol):
    address: bytes

    def balance_of(self, owner: bytes) -> int: ...

    def allowance(self, owner: bytes, spender: bytes) -> int: ...

    def transfer_from(self, owner: bytes, to: bytes, amount: int, *, caller: bytes) -> bool: ...

    def transfer(self, to: bytes, amount: int, *, caller: bytes) -> bool: ...

    def burn(self, amount: int, *, caller: bytes) -> bool: ...


def _amount(v: int) -> int:
    n = int(v)
    if n < 0 or n >= 1 << 256:
        raise InvalidArgument("amount out of range", details={"amount": n})
    return n


class InMemoryToken(Administered):
    def __init__(self, sequencer: Sequencer, *, admin: bytes, symbol: str = "MANA") -> None:
        super().__init__(sequencer, admin=admin)
        self.symbol = symbol

    # --- queries ---

    def balance_of(self, owner: bytes) -> int:
        return self._load(_BAL, owner, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self._load(_ALW, (owner, spender), 0)

    def total_supply(self) -> int:
        return self._load(_SUPPLY, b"", 0)

    # --- internals ---

    def _move(self, src: bytes, dst: bytes, amount: int) -> None:
        if dst == ZERO_ADDRESS:
            raise InvalidTarget("transfer to the zero address")
        bal = self.balance_of(src)
        if bal < amount:
            raise InsufficientFunds(details={"account": src, "balance": bal, "required": amount})
        self._store(_BAL, src, bal - amount)
        self._store(_BAL, dst, self.balance_of(dst) + amount)
        self._emit("Transfer", **{"from": src, "to": dst, "value": amount})

    # --- mutators ---

    @atomic
    def mint(self, to: bytes, amount: int, *, caller: bytes) -> bool:
        self._require_admin(caller)
        n = _amount(amount)
        self._store(_BAL, to, self.balance_of(to) + n)
        self._store(_SUPPLY, b"", self.total_supply() + n)
        self._emit("Transfer", **{"from": ZERO_ADDRESS, "to": to, "value": n})
        return True

    @atomic
    def approve(self, spender: bytes, amount: int, *, caller: bytes) -> bool:
        n = _amount(amount)
        self._store(_ALW, (caller, spender), n)
        self._emit("Approval", owner=caller, spender=spender, value=n)
        return True

    @atomic
    def transfer(self, to: bytes, amount: int, *, caller: bytes) -> bool:
        self._move(caller, to, _amount(amount))
        return True

    @atomic
    def transfer_from(self, owner: bytes, to: bytes, amount: int, *, caller: bytes) -> bool:
        n = _amount(amount)
        allowed = self.allowance(owner, caller)
        if allowed < n:
            raise NotAuthorizedToSpend(details={"owner": owner, "spender": caller, "allowance": allowed})
        self._move(owner, to, n)
        self._store(_ALW, (owner, caller), allowed - n)
        return True

    @atomic
    def burn(self, amount: int, *, caller: bytes) -> bool:
        n = _amount(amount)
        bal = self.balance_of(caller)
        if bal < n:
            raise InsufficientFunds(details={"account": caller, "balance": bal, "required": n})
        self._store(_BAL, caller, bal - n)
        self._store(_SUPPLY, b"", self.total_supply() - n)
        self._emit("Burn", burner=caller, value=n)
        return True


__all__ = ["PaymentToken", "InMemoryToken"]
