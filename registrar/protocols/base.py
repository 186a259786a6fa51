"""
Shared machinery for registration controllers.

A controller is a deployed component that the ledger's administrator has
added to the ledger's controller set. Every controller buys a name the same
way:

    validate(name)  ->  fees.charge(caller, price)  ->  ledger.register(name)

and then emits ``NameBought`` {caller, beneficiary, price, name}. The steps
run inside the caller's atomic scope, so a refusal at any step undoes the
others (including the token transfer and burn).
"""

from __future__ import annotations

import logging
from typing import Optional

from registrar.adapters.token import PaymentToken
from registrar.component import Administered
from registrar.constants import ADDRESS_BYTES, DEFAULT_MAX_NAME_LENGTH, DEFAULT_MIN_NAME_LENGTH, PRICE, ZERO_ADDRESS
from registrar.errors import InvalidArgument, InvalidTarget
from registrar.fees import FeeSettlement
from registrar.ledger.interfaces import Registrar
from registrar.sequencer import Sequencer
from registrar.validator import NameLike, name_bytes, validate

log = logging.getLogger(__name__)

_CFG = b"cfg"


def check_fee_collector(collector: Optional[bytes]) -> None:
    """`None` selects burning; anything else must be a non-zero address."""
    if collector is None:
        return
    if not isinstance(collector, (bytes, bytearray)) or len(collector) != ADDRESS_BYTES:
        raise InvalidTarget("fee collector must be a 20-byte address", details={"collector": collector})
    if collector == ZERO_ADDRESS:
        raise InvalidTarget("fee collector can not be the zero address")


class RegistrationController(Administered):
    def __init__(
        self,
        sequencer: Sequencer,
        *,
        token: PaymentToken,
        registrar: Registrar,
        admin: bytes,
        price: int = PRICE,
        min_length: int = DEFAULT_MIN_NAME_LENGTH,
        max_length: int = DEFAULT_MAX_NAME_LENGTH,
        fee_collector: Optional[bytes] = None,
    ) -> None:
        if price < 0:
            raise InvalidArgument("price must be >= 0")
        if not 1 <= min_length <= max_length:
            raise InvalidArgument("name length bounds must satisfy 1 <= min <= max")
        check_fee_collector(fee_collector)
        super().__init__(sequencer, admin=admin)
        self._require_contract(token.address, "Accepted token")
        self._require_contract(registrar.address, "Registrar")
        self.token = token
        self._registrar = registrar
        self.price = int(price)
        self.min_length = int(min_length)
        self.max_length = int(max_length)
        self._store(_CFG, "fee_collector", fee_collector)

    @property
    def registrar(self) -> Registrar:
        return self._registrar

    @property
    def fee_collector(self) -> Optional[bytes]:
        return self._load(_CFG, "fee_collector")

    @property
    def fees(self) -> FeeSettlement:
        return FeeSettlement(self.token, self.address, self.fee_collector)

    def _purchase(self, name: NameLike, beneficiary: bytes, caller: bytes) -> int:
        """Validate, charge and mint; the caller emits `NameBought` via `_bought`."""
        validate(name, min_length=self.min_length, max_length=self.max_length)
        display = name_bytes(name).decode("ascii")
        self.fees.charge(caller, self.price)
        tid = self._registrar.register(display, beneficiary, caller=self.address)
        log.info(
            "name bought",
            extra={"label": display, "beneficiary": beneficiary.hex(), "controller": self.address.hex()},
        )
        return tid

    def _bought(self, name: NameLike, beneficiary: bytes, caller: bytes) -> None:
        display = name_bytes(name).decode("ascii")
        self._emit("NameBought", caller=caller, beneficiary=beneficiary, price=self.price, name=display)


__all__ = ["RegistrationController", "check_fee_collector"]
