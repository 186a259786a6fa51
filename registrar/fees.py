"""
Fee settlement against the payment token.

`charge(payer, price)` pulls `price` from `payer` using the allowance the
payer granted to the charging controller (the `spender`) and then either

- **burn**: ``transfer_from(payer -> spender)`` followed by ``burn(price)``,
  so the total supply shrinks by exactly `price`, or
- **collector**: ``transfer_from(payer -> collector)``.

Preconditions are checked up front so the reported error is the one a payer
can act on: missing balance is reported before missing allowance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from registrar.adapters.token import PaymentToken
from registrar.errors import InsufficientFunds, NotAuthorizedToSpend
from registrar.metrics import METRICS

log = logging.getLogger(__name__)

BURN = "burn"
COLLECTOR = "collector"


@dataclass(frozen=True)
class FeeSettlement:
    token: PaymentToken
    spender: bytes
    collector: Optional[bytes] = None

    @property
    def strategy(self) -> str:
        return BURN if self.collector is None else COLLECTOR

    def with_collector(self, collector: Optional[bytes]) -> "FeeSettlement":
        return FeeSettlement(self.token, self.spender, collector)

    def charge(self, payer: bytes, price: int) -> None:
        balance = self.token.balance_of(payer)
        if balance < price:
            raise InsufficientFunds(details={"payer": payer, "balance": balance, "price": price})
        allowance = self.token.allowance(payer, self.spender)
        if allowance < price:
            raise NotAuthorizedToSpend(details={"payer": payer, "allowance": allowance, "price": price})

        if self.collector is None:
            self.token.transfer_from(payer, self.spender, price, caller=self.spender)
            self.token.burn(price, caller=self.spender)
        else:
            self.token.transfer_from(payer, self.collector, price, caller=self.spender)
        METRICS.record_fee(self.strategy)
        log.debug("fee charged", extra={"payer": payer.hex(), "price": price, "strategy": self.strategy})


__all__ = ["FeeSettlement", "BURN", "COLLECTOR"]
