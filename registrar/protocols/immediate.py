"""
registrar.protocols.immediate: single-call registration under a gas ceiling.

Instead of hiding the name, this controller refuses transactions that bid
more than `max_gas_price`, which caps how far an observer can outbid a
pending registration. It is the cheaper, lower-latency alternative to
commit-reveal and is deployed as an independent controller instance.

When a `fee_collector` is configured the fee is transferred to it;
otherwise it is burned.
"""

from __future__ import annotations

import logging
from typing import Optional

from registrar.adapters.token import PaymentToken
from registrar.component import atomic
from registrar.constants import (
    DEFAULT_MAX_GAS_PRICE,
    DEFAULT_MAX_NAME_LENGTH,
    DEFAULT_MIN_NAME_LENGTH,
    MIN_MAX_GAS_PRICE,
    PRICE,
)
from registrar.errors import BelowFloor, GasPriceTooHigh, SameValue
from registrar.ledger.interfaces import Registrar
from registrar.metrics import METRICS
from registrar.protocols.base import RegistrationController, check_fee_collector
from registrar.sequencer import Sequencer
from registrar.validator import NameLike

log = logging.getLogger(__name__)

_CFG = b"cfg"


class ImmediateController(RegistrationController):
    def __init__(
        self,
        sequencer: Sequencer,
        *,
        token: PaymentToken,
        registrar: Registrar,
        admin: bytes,
        price: int = PRICE,
        max_gas_price: int = DEFAULT_MAX_GAS_PRICE,
        fee_collector: Optional[bytes] = None,
        min_length: int = DEFAULT_MIN_NAME_LENGTH,
        max_length: int = DEFAULT_MAX_NAME_LENGTH,
    ) -> None:
        if max_gas_price < MIN_MAX_GAS_PRICE:
            raise BelowFloor(details={"max_gas_price": max_gas_price})
        super().__init__(
            sequencer,
            token=token,
            registrar=registrar,
            admin=admin,
            price=price,
            min_length=min_length,
            max_length=max_length,
            fee_collector=fee_collector,
        )
        self._store(_CFG, "max_gas_price", int(max_gas_price))

    @property
    def max_gas_price(self) -> int:
        return self._load(_CFG, "max_gas_price")

    @atomic
    def register(self, name: NameLike, beneficiary: bytes, *, caller: bytes, gas_price: int) -> int:
        ceiling = self.max_gas_price
        if gas_price > ceiling:
            METRICS.record_gas_price_rejection()
            raise GasPriceTooHigh(gas_price=gas_price, max_gas_price=ceiling)
        tid = self._purchase(name, beneficiary, caller)
        self._bought(name, beneficiary, caller)
        return tid

    @atomic
    def update_max_gas_price(self, value: int, *, caller: bytes) -> None:
        self._require_admin(caller)
        if value < MIN_MAX_GAS_PRICE:
            raise BelowFloor(details={"value": value, "floor": MIN_MAX_GAS_PRICE})
        old = self.max_gas_price
        if value == old:
            raise SameValue("Max gas price should be different")
        self._store(_CFG, "max_gas_price", int(value))
        self._emit("MaxGasPriceChanged", old=old, new=int(value))
        log.info("max gas price changed", extra={"old": old, "new": int(value)})

    @atomic
    def set_fee_collector(self, collector: Optional[bytes], *, caller: bytes) -> None:
        self._require_admin(caller)
        check_fee_collector(collector)
        old = self.fee_collector
        if collector == old:
            raise SameValue("Fee collector should be different")
        self._store(_CFG, "fee_collector", collector)
        self._emit("FeeCollectorChanged", old=old, new=collector)


__all__ = ["ImmediateController"]
