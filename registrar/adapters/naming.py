"""
External hierarchical naming system collaborators.

The ledger consumes the :class:`NamingSystem` protocol only:
``set_subnode_owner(node, label, owner)``, ``owner(node)``,
``resolver(node)``, ``set_resolver(node, resolver)``.

Reference implementations shipped here:

- :class:`InMemoryNamingRegistry`: node → (owner, resolver) records. Only the
  owner of a node, or an operator the owner approved, may change the node or
  create children under it.
- :class:`BaseRegistrar`: owns the top-level domain node (``eth``) and
  tokenizes second-level labels (``dcl``). The label token is what the ledger
  holds to control the parent domain; `reclaim` re-points the naming record
  of a label at whomever the token holder chooses.
- :class:`Resolver`: a deployable resolution target. Setting an address for
  a node is allowed to the node's *naming-system* owner, which is what makes
  the ledger's `reclaim` meaningful.

Events
------
Registry: ``NewOwner`` {node, label, owner}, ``Transfer`` {node, owner},
``NewResolver`` {node, resolver}, ``ApprovalForAll`` {owner, operator, approved}.
Base registrar: ``Transfer`` {from, to, token_id}, ``NameRegistered``
{token_id, owner}, ``ControllerAdded`` {controller}.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, runtime_checkable

from registrar.component import Administered, Component, atomic
from registrar.constants import ZERO_ADDRESS, ZERO_HASH
from registrar.errors import (
    AlreadyPresent,
    InvalidTarget,
    NameTaken,
    NonexistentToken,
    NotAuthorized,
    NotController,
    NotOwnerOrApproved,
)
from registrar.sequencer import Sequencer
from registrar.utils.hash import child_node, label_hash, namehash, token_id_of

log = logging.getLogger(__name__)

_OWNER = b"owner"
_RESOLVER = b"resolver"
_OPERATORS = b"operators"


@runtime_checkable
class NamingSystem(Protocol):
    address: bytes

    def owner(self, node: bytes) -> bytes: ...

    def resolver(self, node: bytes) -> bytes: ...

    def set_subnode_owner(self, node: bytes, label: bytes, owner: bytes, *, caller: bytes) -> bytes: ...

    def set_resolver(self, node: bytes, resolver: bytes, *, caller: bytes) -> None: ...


class InMemoryNamingRegistry(Component):
    """The root node is owned by `root_owner` at deployment."""

    def __init__(self, sequencer: Sequencer, *, root_owner: bytes) -> None:
        super().__init__(sequencer)
        self._seq.state.set(self._ns(_OWNER), ZERO_HASH, root_owner)

    # --- queries ---

    def owner(self, node: bytes) -> bytes:
        return self._load(_OWNER, node, ZERO_ADDRESS)

    def resolver(self, node: bytes) -> bytes:
        return self._load(_RESOLVER, node, ZERO_ADDRESS)

    def record_exists(self, node: bytes) -> bool:
        return self.owner(node) != ZERO_ADDRESS

    def is_approved_for_all(self, owner: bytes, operator: bytes) -> bool:
        return bool(self._load(_OPERATORS, (owner, operator), False))

    def _authorised(self, node: bytes, caller: bytes) -> None:
        owner = self.owner(node)
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise NotAuthorized("caller does not control the node", details={"node": node, "caller": caller})

    # --- mutators ---

    @atomic
    def set_owner(self, node: bytes, owner: bytes, *, caller: bytes) -> None:
        self._authorised(node, caller)
        self._store(_OWNER, node, owner)
        self._emit("Transfer", node=node, owner=owner)

    @atomic
    def set_subnode_owner(self, node: bytes, label: bytes, owner: bytes, *, caller: bytes) -> bytes:
        self._authorised(node, caller)
        sub = child_node(node, label)
        self._store(_OWNER, sub, owner)
        self._emit("NewOwner", node=node, label=label, owner=owner)
        return sub

    @atomic
    def set_resolver(self, node: bytes, resolver: bytes, *, caller: bytes) -> None:
        self._authorised(node, caller)
        self._store(_RESOLVER, node, resolver)
        self._emit("NewResolver", node=node, resolver=resolver)

    @atomic
    def set_approval_for_all(self, operator: bytes, approved: bool, *, caller: bytes) -> None:
        self._store(_OPERATORS, (caller, operator), bool(approved))
        self._emit("ApprovalForAll", owner=caller, operator=operator, approved=bool(approved))


class BaseRegistrar(Administered):
    """
    Tokenized second-level labels under `top_domain` (``eth``).

    The registrar must own the top-level node in `registry` to create
    labels; expiry and renewal are not modelled.
    """

    def __init__(self, sequencer: Sequencer, *, registry: InMemoryNamingRegistry, top_domain: str, admin: bytes) -> None:
        super().__init__(sequencer, admin=admin)
        self.registry = registry
        self.base_node = namehash(top_domain)

    # --- queries ---

    def owner_of(self, token_id: int) -> bytes:
        owner = self._load(_OWNER, int(token_id))
        if owner is None:
            raise NonexistentToken(details={"token_id": int(token_id)})
        return owner

    def get_approved(self, token_id: int) -> bytes:
        return self._load(b"approved", int(token_id), ZERO_ADDRESS)

    def is_controller(self, addr: bytes) -> bool:
        return bool(self._load(b"controllers", addr, False))

    def _is_approved_or_owner(self, spender: bytes, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        return spender == owner or spender == self.get_approved(token_id)

    # --- mutators ---

    @atomic
    def add_controller(self, controller: bytes, *, caller: bytes) -> None:
        self._require_admin(caller)
        if self.is_controller(controller):
            raise AlreadyPresent(details={"controller": controller})
        self._store(b"controllers", controller, True)
        self._emit("ControllerAdded", controller=controller)

    @atomic
    def register(self, label: str, owner: bytes, *, caller: bytes) -> int:
        if not self.is_controller(caller):
            raise NotController(details={"caller": caller})
        digest = label_hash(label)
        tid = token_id_of(digest)
        if self._load(_OWNER, tid) is not None:
            raise NameTaken(details={"label": label})
        self.registry.set_subnode_owner(self.base_node, digest, owner, caller=self.address)
        self._store(_OWNER, tid, owner)
        self._emit("Transfer", **{"from": ZERO_ADDRESS, "to": owner, "token_id": tid})
        self._emit("NameRegistered", token_id=tid, owner=owner)
        return tid

    @atomic
    def approve(self, to: bytes, token_id: int, *, caller: bytes) -> None:
        if caller != self.owner_of(token_id):
            raise NotOwnerOrApproved(details={"caller": caller})
        self._store(b"approved", int(token_id), to)

    @atomic
    def reclaim(self, token_id: int, owner: bytes, *, caller: bytes) -> None:
        if not self._is_approved_or_owner(caller, token_id):
            raise NotAuthorized(details={"caller": caller, "token_id": int(token_id)})
        self.registry.set_subnode_owner(
            self.base_node, int(token_id).to_bytes(32, "big"), owner, caller=self.address
        )

    @atomic
    def transfer_from(self, from_: bytes, to: bytes, token_id: int, *, caller: bytes) -> None:
        tid = int(token_id)
        if not self._is_approved_or_owner(caller, tid):
            raise NotOwnerOrApproved(details={"caller": caller, "token_id": tid})
        if self.owner_of(tid) != from_:
            raise NotOwnerOrApproved("transfer of token that is not own", details={"from": from_})
        if to == ZERO_ADDRESS:
            raise InvalidTarget("transfer to the zero address")
        self._drop(b"approved", tid)
        self._store(_OWNER, tid, to)
        self._emit("Transfer", **{"from": from_, "to": to, "token_id": tid})

    @atomic
    def safe_transfer_from(self, from_: bytes, to: bytes, token_id: int, *, caller: bytes) -> None:
        self.transfer_from(from_, to, token_id, caller=caller)
        if self._seq.is_contract(to):
            receiver = self._seq.get(to)
            hook = getattr(receiver, "on_token_received", None)
            if hook is None:
                raise InvalidTarget("transfer to non token receiver implementer", details={"to": to})
            hook(caller, from_, int(token_id), caller=self.address)


class Resolver(Component):
    """Address records keyed by node, writable by the node's naming owner."""

    def __init__(self, sequencer: Sequencer, *, registry: InMemoryNamingRegistry) -> None:
        super().__init__(sequencer)
        self.registry = registry

    def addr(self, node: bytes) -> Optional[bytes]:
        return self._load(b"addr", node)

    @atomic
    def set_addr(self, node: bytes, target: bytes, *, caller: bytes) -> None:
        owner = self.registry.owner(node)
        if caller != owner and not self.registry.is_approved_for_all(owner, caller):
            raise NotAuthorized(details={"node": node, "caller": caller})
        self._store(b"addr", node, target)
        self._emit("AddrChanged", node=node, addr=target)


__all__ = [
    "NamingSystem",
    "InMemoryNamingRegistry",
    "BaseRegistrar",
    "Resolver",
]
