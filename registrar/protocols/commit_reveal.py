"""
registrar.protocols.commit_reveal: two-phase registration.

    commit(hash)  --[reveal_delay seconds]-->  reveal(name, beneficiary, salt)

The commitment binds the controller's own address and the committer's
address together with the name, the beneficiary and a secret salt:

    keccak256(abi.encode(address controller, address committer,
                         string name, address beneficiary, bytes32 salt))

so a hash overheard in the pending pool can neither be replayed against
another controller instance nor revealed by another account. The name is
hashed exactly as supplied; validation happens at reveal time.

Records are keyed by committer. A new commit replaces the committer's
previous record (an unrevealed one is simply discarded). An identical hash
that is still unrevealed under *any* account is rejected, which stops an
observer from copying a pending commitment verbatim.

Reveal checks, in order: NoCommit, NotReady, HashMismatch, AlreadyRevealed.
Any later failure (validation, payment, NameTaken) aborts the whole reveal
and leaves the record unrevealed.
"""

from __future__ import annotations

import logging
from typing import Optional

from registrar.adapters.token import PaymentToken
from registrar.component import atomic
from registrar.constants import (
    DEFAULT_MAX_NAME_LENGTH,
    DEFAULT_MIN_NAME_LENGTH,
    DEFAULT_REVEAL_DELAY_S,
    PRICE,
)
from registrar.errors import (
    AlreadyRevealed,
    DuplicatePendingCommit,
    HashMismatch,
    InvalidArgument,
    NoCommit,
    NotReady,
    RegistrarError,
)
from registrar.ledger.interfaces import Registrar
from registrar.metrics import METRICS
from registrar.protocols.base import RegistrationController
from registrar.sequencer import Sequencer
from registrar.types.core import CommitRecord
from registrar.utils.abi import encode_params
from registrar.utils.bytes import as_bytes, consteq
from registrar.utils.hash import keccak256
from registrar.validator import NameLike, name_bytes

log = logging.getLogger(__name__)

_COMMITS = b"commits"
_PENDING = b"pending"

_HASH_TYPES = ("address", "address", "string", "address", "bytes32")

_REVEAL_OUTCOME = {
    NoCommit: "no_commit",
    NotReady: "too_early",
    HashMismatch: "bad_reveal",
    AlreadyRevealed: "replayed",
}


class CommitRevealController(RegistrationController):
    def __init__(
        self,
        sequencer: Sequencer,
        *,
        token: PaymentToken,
        registrar: Registrar,
        admin: bytes,
        price: int = PRICE,
        reveal_delay: int = DEFAULT_REVEAL_DELAY_S,
        min_length: int = DEFAULT_MIN_NAME_LENGTH,
        max_length: int = DEFAULT_MAX_NAME_LENGTH,
    ) -> None:
        if reveal_delay < 0:
            raise InvalidArgument("reveal_delay must be >= 0")
        super().__init__(
            sequencer,
            token=token,
            registrar=registrar,
            admin=admin,
            price=price,
            min_length=min_length,
            max_length=max_length,
        )
        self.reveal_delay = int(reveal_delay)

    # --- queries ---

    def get_hash(self, name: NameLike, beneficiary: bytes, salt: bytes, *, caller: bytes) -> bytes:
        try:
            encoded = encode_params(_HASH_TYPES, [self.address, caller, name_bytes(name), beneficiary, salt])
        except (TypeError, ValueError) as e:
            raise InvalidArgument(str(e)) from e
        return keccak256(encoded)

    def get_commit(self, account: bytes) -> Optional[CommitRecord]:
        return self._load(_COMMITS, account)

    # --- mutators ---

    @atomic
    def commit(self, hash: bytes, *, caller: bytes) -> None:
        if not isinstance(hash, (bytes, bytearray, memoryview)) or len(hash) != 32:
            METRICS.record_commit("invalid")
            raise InvalidArgument("commit hash must be 32 bytes", details={"type": type(hash).__name__})
        h = as_bytes(hash)
        if self._load(_PENDING, h) is not None:
            METRICS.record_commit("duplicate")
            raise DuplicatePendingCommit(details={"hash": h})

        previous: Optional[CommitRecord] = self.get_commit(caller)
        if previous is not None and not previous.revealed:
            self._drop(_PENDING, previous.hash)
        self._store(_COMMITS, caller, CommitRecord(hash=h, committed_at=self.now))
        self._store(_PENDING, h, caller)
        self._emit("CommittedName", caller=caller, hash=h)
        METRICS.record_commit("accepted")
        log.debug("commit stored", extra={"committer": caller.hex(), "overwrote": previous is not None})

    @atomic
    def reveal(self, name: NameLike, beneficiary: bytes, salt: bytes, *, caller: bytes) -> int:
        try:
            tid = self._reveal(name, beneficiary, salt, caller)
        except RegistrarError as e:
            METRICS.record_reveal(_REVEAL_OUTCOME.get(type(e), "invalid"))
            raise
        METRICS.record_reveal("accepted")
        return tid

    def _reveal(self, name: NameLike, beneficiary: bytes, salt: bytes, caller: bytes) -> int:
        record = self.get_commit(caller)
        if record is None:
            raise NoCommit(details={"caller": caller})
        ready_at = record.committed_at + self.reveal_delay
        if self.now < ready_at:
            raise NotReady(now=self.now, ready_at=ready_at)
        if not consteq(self.get_hash(name, beneficiary, salt, caller=caller), record.hash):
            raise HashMismatch(details={"caller": caller})
        if record.revealed:
            raise AlreadyRevealed(details={"hash": record.hash})

        self._store(_COMMITS, caller, record.mark_revealed())
        self._drop(_PENDING, record.hash)
        tid = self._purchase(name, beneficiary, caller)
        self._emit("RevealedName", caller=caller, hash=record.hash)
        self._bought(name, beneficiary, caller)
        return tid


__all__ = ["CommitRevealController"]
