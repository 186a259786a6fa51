"""
registrar.sequencer: the single global sequencer.

The sequencer totally orders every mutating call across all components. It
owns:

- the journaled `StateStore` (persisted state + ordered event log),
- the block clock (`now`, `height`); waiting is only ever a timestamp
  precondition checked by a component, nothing sleeps,
- the table of deployed components (`deploy`, `get`, `is_contract`),
- a **public** pending pool of transactions.

The pool is deliberately observable: any party may inspect `pending()` and
submit a competing transaction with a higher gas price before `mine()` runs.
`mine()` orders by gas price (highest first, FIFO among equals), the way a
fee auction does, and applies each transaction atomically. This is the
adversary the commit-reveal protocol is designed against.

Typical usage
-------------
    seq = Sequencer(genesis_time=1_700_000_000)
    token = InMemoryToken(seq, admin=deployer)
    ...
    seq.submit(Tx(sender=alice, target=ctl.address, method="commit",
                  kwargs={"hash": h}, gas_price=20 * GWEI))
    receipts = seq.mine()
    seq.advance(60)
"""

from __future__ import annotations

import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from registrar.constants import GWEI
from registrar.errors import InvalidArgument, InvalidTarget, RegistrarError
from registrar.state.journal import StateStore
from registrar.types.events import Event
from registrar.utils.hash import keccak256

log = logging.getLogger(__name__)

DEFAULT_GENESIS_TIME = 1_700_000_000
DEFAULT_GAS_PRICE = 1 * GWEI


@dataclass(frozen=True)
class Tx:
    """
    A pending call, fully visible to every observer of the pool.

    `kwargs` are passed to ``target.method``; `caller=sender` is always
    injected and `gas_price` is injected when the method accepts it.
    """

    sender: bytes
    target: bytes
    method: str
    kwargs: Mapping[str, Any] = field(default_factory=dict)
    gas_price: int = DEFAULT_GAS_PRICE
    nonce: int = -1


@dataclass(frozen=True)
class Receipt:
    tx: Tx
    ok: bool
    height: int
    timestamp: int
    value: Any = None
    error: Optional[RegistrarError] = None
    events: Tuple[Event, ...] = ()

    @property
    def error_code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None


class Sequencer:
    def __init__(self, *, genesis_time: int = DEFAULT_GENESIS_TIME, start_height: int = 0) -> None:
        if genesis_time < 0 or start_height < 0:
            raise ValueError("genesis_time and start_height must be >= 0")
        self.state = StateStore()
        self._now = int(genesis_time)
        self._height = int(start_height)
        self._components: Dict[bytes, Any] = {}
        self._deploy_nonce = itertools.count()
        self._tx_nonce = itertools.count()
        self._pool: List[Tx] = []

    # ------------------------------------------------------------------ #
    # Clock
    # ------------------------------------------------------------------ #

    @property
    def now(self) -> int:
        return self._now

    @property
    def height(self) -> int:
        return self._height

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("time only moves forward")
        self._now += int(seconds)
        return self._now

    # ------------------------------------------------------------------ #
    # Components
    # ------------------------------------------------------------------ #

    def deploy(self, component: Any) -> bytes:
        n = next(self._deploy_nonce)
        addr = keccak256(b"registrar.deploy" + n.to_bytes(8, "big"))[-20:]
        self._components[addr] = component
        log.debug("component deployed", extra={"address": addr.hex(), "kind": type(component).__name__})
        return addr

    def is_contract(self, addr: bytes) -> bool:
        return addr in self._components

    def get(self, addr: bytes) -> Any:
        try:
            return self._components[addr]
        except KeyError:
            raise InvalidTarget(details={"address": addr}) from None

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    def submit(self, tx: Tx) -> Tx:
        stamped = Tx(
            sender=tx.sender,
            target=tx.target,
            method=tx.method,
            kwargs=dict(tx.kwargs),
            gas_price=int(tx.gas_price),
            nonce=next(self._tx_nonce),
        )
        self._pool.append(stamped)
        return stamped

    def pending(self) -> Tuple[Tx, ...]:
        return tuple(self._pool)

    def mine(self) -> List[Receipt]:
        """Apply the whole pool in fee-auction order as one block."""
        ordered = sorted(self._pool, key=lambda t: (-t.gas_price, t.nonce))
        self._pool.clear()
        receipts = [self._apply(tx) for tx in ordered]
        self._height += 1
        return receipts

    def execute(self, tx: Tx) -> Receipt:
        """Apply a single transaction immediately, bypassing the pool."""
        if tx.nonce < 0:
            tx = Tx(tx.sender, tx.target, tx.method, dict(tx.kwargs), int(tx.gas_price), next(self._tx_nonce))
        return self._apply(tx)

    def _apply(self, tx: Tx) -> Receipt:
        mark = self.state.event_count()
        try:
            fn = getattr(self.get(tx.target), tx.method)
            kwargs = dict(tx.kwargs)
            kwargs["caller"] = tx.sender
            if "gas_price" in inspect.signature(fn).parameters:
                kwargs["gas_price"] = tx.gas_price
            with self.state.atomic():
                value = fn(**kwargs)
        except RegistrarError as e:
            return self._reverted(tx, e)
        except Exception as e:
            # malformed call: reverted like any other failure, the block goes on
            err = InvalidArgument(str(e) or type(e).__name__, details={"method": tx.method, "kind": type(e).__name__})
            return self._reverted(tx, err)
        return Receipt(
            tx=tx,
            ok=True,
            height=self._height,
            timestamp=self._now,
            value=value,
            events=self.state.events_since(mark),
        )

    def _reverted(self, tx: Tx, err: RegistrarError) -> Receipt:
        log.debug("tx reverted", extra={"method": tx.method, "code": err.code, "nonce": tx.nonce})
        return Receipt(tx=tx, ok=False, height=self._height, timestamp=self._now, error=err)


__all__ = ["Sequencer", "Tx", "Receipt", "DEFAULT_GENESIS_TIME", "DEFAULT_GAS_PRICE"]
