"""
registrar.ledger.ownership: the single source of truth for name ownership.

The ledger ties together

    canonical name -> token id -> owner -> child node in the naming system

and is the only component that mints. Controllers (see
`registrar.protocols`) call :meth:`OwnershipLedger.register` after they have
validated the name and settled the fee; the ledger enforces the controller
ACL, the migration gate and uniqueness.

Parent domain
-------------
The ledger must own ``namehash(domain.top_domain)`` in the naming system for
`register`, `migrate` and `reclaim` to work. It usually also holds the
parent-domain token on the base registrar, which is what lets the
administrator recover the node with :meth:`reclaim_parent_domain`.

Ownership divergence
--------------------
`transfer` moves the token only. The naming-system owner of the child node
keeps pointing at the previous holder until the new holder (or a controller)
calls `reclaim`; the two owners are allowed to diverge.

Events
------
NameRegistered, Transfer, Approval, ApprovalForAll, Reclaimed,
ControllerAdded, ControllerRemoved, MigrationFinished, DomainReclaimed,
DomainTransferred, BaseURI, RegistryUpdated, BaseUpdated, ResolverUpdated.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple, Union

from registrar.component import Administered, atomic
from registrar.constants import (
    DEFAULT_BASE_URI,
    DEFAULT_DOMAIN,
    DEFAULT_TOP_DOMAIN,
    ZERO_ADDRESS,
)
from registrar.errors import (
    AlreadyFinished,
    DomainNotOwned,
    InvalidArgument,
    InvalidTarget,
    MigrationFinished,
    MigrationNotFinished,
    NameTaken,
    NonexistentToken,
    NotAuthorized,
    NotOwnerOrApproved,
    NotRegistered,
    SameValue,
)
from registrar.ledger.access import ControllerSet
from registrar.metrics import METRICS
from registrar.sequencer import Sequencer
from registrar.types.core import MigrationGate, MigrationItem, NameRecord
from registrar.utils.hash import keccak256, label_hash, namehash, token_id_of
from registrar.validator import NameLike, bytes32_to_string, canonicalize, format_uri, name_bytes

log = logging.getLogger(__name__)

_RECORDS = b"records"
_OWNED = b"owned"
_APPROVED = b"approved"
_OPERATORS = b"operators"
_CFG = b"cfg"


class OwnershipLedger(Administered):
    def __init__(
        self,
        sequencer: Sequencer,
        *,
        registry: bytes,
        base: bytes,
        admin: bytes,
        top_domain: str = DEFAULT_TOP_DOMAIN,
        domain: str = DEFAULT_DOMAIN,
        base_uri: str = DEFAULT_BASE_URI,
    ) -> None:
        if not top_domain or not domain:
            raise InvalidArgument("top domain and domain must be non-empty")
        super().__init__(sequencer, admin=admin)
        self._require_contract(registry, "Registry")
        self._require_contract(base, "Base")
        self.controllers = ControllerSet(self)
        self.top_domain = top_domain
        self.domain = domain
        self.parent_node = namehash(f"{domain}.{top_domain}")
        self.domain_label_hash = label_hash(domain)
        self._store(_CFG, "registry", registry)
        self._store(_CFG, "base", base)
        self._store(_CFG, "base_uri", base_uri)
        self._store(_CFG, "gate", MigrationGate.NOT_FINISHED)

    # ------------------------------------------------------------------ #
    # Wiring
    # ------------------------------------------------------------------ #

    @property
    def registry_address(self) -> bytes:
        return self._load(_CFG, "registry")

    @property
    def base_address(self) -> bytes:
        return self._load(_CFG, "base")

    @property
    def registry(self) -> Any:
        return self._seq.get(self.registry_address)

    @property
    def base(self) -> Any:
        return self._seq.get(self.base_address)

    @property
    def base_uri(self) -> str:
        return self._load(_CFG, "base_uri", "")

    @property
    def migration_gate(self) -> MigrationGate:
        return self._load(_CFG, "gate")

    def is_controller(self, addr: bytes) -> bool:
        return addr in self.controllers

    # ------------------------------------------------------------------ #
    # Token queries
    # ------------------------------------------------------------------ #

    def _record(self, token_id: int) -> NameRecord:
        rec = self._load(_RECORDS, int(token_id))
        if rec is None:
            raise NonexistentToken(details={"token_id": int(token_id)})
        return rec

    def exists(self, token_id: int) -> bool:
        return self._load(_RECORDS, int(token_id)) is not None

    def owner_of(self, token_id: int) -> bytes:
        return self._record(token_id).owner

    def name_of(self, token_id: int) -> str:
        return self._record(token_id).display_name

    def created_at_of(self, token_id: int) -> int:
        return self._record(token_id).created_at

    def balance_of(self, owner: bytes) -> int:
        return len(self._load(_OWNED, owner, ()))

    def token_of_owner_by_index(self, owner: bytes, index: int) -> int:
        owned: Tuple[int, ...] = self._load(_OWNED, owner, ())
        if not 0 <= index < len(owned):
            raise InvalidArgument("owner index out of bounds", details={"owner": owner, "index": index})
        return owned[index]

    def get_approved(self, token_id: int) -> bytes:
        self._record(token_id)
        return self._load(_APPROVED, int(token_id), ZERO_ADDRESS)

    def is_approved_for_all(self, owner: bytes, operator: bytes) -> bool:
        return bool(self._load(_OPERATORS, (owner, operator), False))

    def _is_approved_or_owner(self, spender: bytes, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return (
            spender == owner
            or spender == self._load(_APPROVED, int(token_id), ZERO_ADDRESS)
            or self.is_approved_for_all(owner, spender)
        )

    def token_uri(self, token_id: int) -> str:
        return format_uri(self.base_uri, self.name_of(token_id))

    # ------------------------------------------------------------------ #
    # Name queries
    # ------------------------------------------------------------------ #

    def available(self, name: NameLike) -> bool:
        return not self.exists(token_id_of(keccak256(canonicalize(name))))

    def get_token_id(self, name: NameLike) -> int:
        tid = token_id_of(keccak256(canonicalize(name)))
        if not self.exists(tid):
            raise NotRegistered(details={"name": name_bytes(name)})
        return tid

    def get_owner_of(self, name: NameLike) -> bytes:
        return self.owner_of(self.get_token_id(name))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _require_domain_owned(self) -> None:
        if self.registry.owner(self.parent_node) != self.address:
            raise DomainNotOwned(details={"node": self.parent_node})

    def _add_owned(self, owner: bytes, token_id: int) -> None:
        self._store(_OWNED, owner, self._load(_OWNED, owner, ()) + (token_id,))

    def _remove_owned(self, owner: bytes, token_id: int) -> None:
        remaining = tuple(t for t in self._load(_OWNED, owner, ()) if t != token_id)
        if remaining:
            self._store(_OWNED, owner, remaining)
        else:
            self._drop(_OWNED, owner)

    def _register(self, display_name: str, beneficiary: bytes, created_at: int, caller: bytes) -> int:
        if beneficiary == ZERO_ADDRESS:
            raise InvalidTarget("beneficiary can not be the zero address")
        self._require_domain_owned()
        digest = keccak256(canonicalize(display_name))
        tid = token_id_of(digest)
        if self.exists(tid):
            raise NameTaken(details={"name": name_bytes(display_name), "token_id": tid})

        self.registry.set_subnode_owner(self.parent_node, digest, beneficiary, caller=self.address)
        self._store(_RECORDS, tid, NameRecord(tid, display_name, beneficiary, int(created_at)))
        self._add_owned(beneficiary, tid)
        self._emit("Transfer", **{"from": ZERO_ADDRESS, "to": beneficiary, "token_id": tid})
        self._emit(
            "NameRegistered",
            caller=caller,
            beneficiary=beneficiary,
            label_hash=digest,
            name=display_name,
            created_at=int(created_at),
        )
        return tid

    def _set_child_owner(self, token_id: int, owner: bytes) -> None:
        self._require_domain_owned()
        self.registry.set_subnode_owner(
            self.parent_node, int(token_id).to_bytes(32, "big"), owner, caller=self.address
        )

    # ------------------------------------------------------------------ #
    # Registration & migration
    # ------------------------------------------------------------------ #

    @atomic
    def register(self, name: str, beneficiary: bytes, *, caller: bytes) -> int:
        """
        Mint `name` to `beneficiary`. Controllers only.

        `name` is the display name exactly as the claimant wrote it; the
        uniqueness key is derived from its canonical (lowercased) bytes.
        Character and length rules are the controller's responsibility.

        Raises (first failing check wins):
            NotController, MigrationNotFinished, DomainNotOwned, NameTaken
        """
        self.controllers.require(caller)
        if not self.migration_gate.is_finished:
            raise MigrationNotFinished()
        tid = self._register(name, beneficiary, self.now, caller)
        METRICS.record_registration("controller")
        log.info("name registered", extra={"token_id": hex(tid), "beneficiary": beneficiary.hex()})
        return tid

    @atomic
    def migrate(
        self,
        names: Sequence[Union[bytes, str]],
        beneficiaries: Sequence[bytes],
        created_dates: Sequence[int],
        *,
        caller: bytes,
    ) -> List[int]:
        """
        Import legacy names with their historical creation dates.

        Names are right zero-padded 32-byte words (a plain `str` is taken as
        already decoded). They are not re-validated: legacy data is imported
        as-is, subject only to uniqueness.
        """
        self._require_admin(caller)
        if self.migration_gate.is_finished:
            raise MigrationFinished()
        if not (len(names) == len(beneficiaries) == len(created_dates)):
            raise InvalidArgument(
                "names, beneficiaries and created dates must have the same length",
                details={"names": len(names), "beneficiaries": len(beneficiaries), "dates": len(created_dates)},
            )
        items = [
            MigrationItem(raw_name=name_bytes(raw), beneficiary=owner, created_at=int(created))
            for raw, owner, created in zip(names, beneficiaries, created_dates)
        ]
        out: List[int] = []
        for item in items:
            out.append(self._register(bytes32_to_string(item.raw_name), item.beneficiary, item.created_at, caller))
            METRICS.record_registration("migration")
        log.info("legacy names migrated", extra={"count": len(out)})
        return out

    @atomic
    def finish_migration(self, *, caller: bytes) -> None:
        self._require_admin(caller)
        if self.migration_gate.is_finished:
            raise AlreadyFinished()
        self._store(_CFG, "gate", MigrationGate.FINISHED)
        self._emit("MigrationFinished")
        log.info("migration finished")

    # ------------------------------------------------------------------ #
    # Token transfers & approvals
    # ------------------------------------------------------------------ #

    @atomic
    def approve(self, to: bytes, token_id: int, *, caller: bytes) -> None:
        owner = self.owner_of(token_id)
        if to == owner:
            raise InvalidArgument("approval to current owner")
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise NotOwnerOrApproved("approve caller is not owner nor approved for all", details={"caller": caller})
        self._store(_APPROVED, int(token_id), to)
        self._emit("Approval", owner=owner, approved=to, token_id=int(token_id))

    @atomic
    def set_approval_for_all(self, operator: bytes, approved: bool, *, caller: bytes) -> None:
        if operator == caller:
            raise InvalidArgument("approve to caller")
        self._store(_OPERATORS, (caller, operator), bool(approved))
        self._emit("ApprovalForAll", owner=caller, operator=operator, approved=bool(approved))

    @atomic
    def transfer(self, token_id: int, from_: bytes, to: bytes, *, caller: bytes) -> None:
        """Move the token; the naming-system child node is left untouched."""
        tid = int(token_id)
        if not self._is_approved_or_owner(caller, tid):
            raise NotOwnerOrApproved(details={"caller": caller, "token_id": tid})
        rec = self._record(tid)
        if rec.owner != from_:
            raise NotOwnerOrApproved("transfer of token that is not own", details={"from": from_})
        if to == ZERO_ADDRESS:
            raise InvalidTarget("transfer to the zero address")
        self._drop(_APPROVED, tid)
        self._remove_owned(from_, tid)
        self._add_owned(to, tid)
        self._store(_RECORDS, tid, rec.with_owner(to))
        self._emit("Transfer", **{"from": from_, "to": to, "token_id": tid})

    # ------------------------------------------------------------------ #
    # Naming-system synchronization
    # ------------------------------------------------------------------ #

    @atomic
    def reclaim(self, token_id: int, to: bytes, *, caller: bytes) -> None:
        """Point the child node of `token_id` at `to` in the naming system."""
        tid = int(token_id)
        self._record(tid)
        if not self._is_approved_or_owner(caller, tid):
            raise NotAuthorized(details={"caller": caller, "token_id": tid})
        self._set_child_owner(tid, to)
        self._emit("Reclaimed", caller=caller, owner=to, token_id=tid)

    @atomic
    def reclaim_by_controller(self, token_id: int, *, caller: bytes) -> None:
        self.controllers.require(caller)
        owner = self.owner_of(token_id)
        self._set_child_owner(int(token_id), owner)
        self._emit("Reclaimed", caller=caller, owner=owner, token_id=int(token_id))

    # ------------------------------------------------------------------ #
    # Controllers
    # ------------------------------------------------------------------ #

    @atomic
    def add_controller(self, controller: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        self.controllers.add(controller)

    @atomic
    def remove_controller(self, controller: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        self.controllers.remove(controller)

    # ------------------------------------------------------------------ #
    # Parent domain housekeeping
    # ------------------------------------------------------------------ #

    @atomic
    def reclaim_parent_domain(self, label: str, *, caller: bytes) -> None:
        """Have the base registrar point ``label.top_domain`` back at the ledger."""
        self._require_admin(caller)
        tid = token_id_of(label_hash(label))
        self.base.reclaim(tid, self.address, caller=self.address)
        self._emit("DomainReclaimed", token_id=tid)

    @atomic
    def transfer_parent_domain_ownership(self, to: bytes, label: str, *, caller: bytes) -> None:
        self._require_admin(caller)
        tid = token_id_of(label_hash(label))
        self.base.safe_transfer_from(self.address, to, tid, caller=self.address)
        self._emit("DomainTransferred", new_owner=to, token_id=tid)

    def on_token_received(self, operator: bytes, from_: bytes, token_id: int, *, caller: bytes) -> bool:
        """Accept parent-domain tokens from the configured base registrar only."""
        if caller != self.base_address:
            raise NotAuthorized("Only base can send NFTs to this contract", details={"caller": caller})
        log.debug("parent domain token received", extra={"token_id": hex(int(token_id))})
        return True

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @atomic
    def update_base_uri(self, uri: str, *, caller: bytes) -> None:
        self._require_admin(caller)
        old = self.base_uri
        if uri == old:
            raise SameValue("Base URI should be different from old")
        self._store(_CFG, "base_uri", uri)
        self._emit("BaseURI", old=old, new=uri)

    def _update_collaborator(self, key: str, addr: bytes, what: str, event: str) -> None:
        old = self._load(_CFG, key)
        if addr == old:
            raise SameValue(f"New {what.lower()} should be different from old")
        self._require_contract(addr, f"New {what.lower()}")
        self._store(_CFG, key, addr)
        self._emit(event, old=old, new=addr)
        log.info("collaborator updated", extra={"which": key, "address": addr.hex()})

    @atomic
    def update_registry(self, registry: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        self._update_collaborator("registry", registry, "Registry", "RegistryUpdated")

    @atomic
    def update_base(self, base: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        self._update_collaborator("base", base, "Base", "BaseUpdated")

    @atomic
    def set_resolver(self, resolver: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        if resolver in (self.registry_address, self.base_address, self.address):
            raise InvalidTarget(details={"resolver": resolver})
        self._require_contract(resolver, "Resolver")
        old: Optional[bytes] = self.registry.resolver(self.parent_node)
        if resolver == old:
            raise SameValue("New resolver should be different from old")
        self.registry.set_resolver(self.parent_node, resolver, caller=self.address)
        self._emit("ResolverUpdated", old=old, new=resolver)


__all__ = ["OwnershipLedger"]
