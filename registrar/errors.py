from __future__ import annotations
# registrar/errors.py
"""
Error types for the name registrar.

Every failure is surfaced as a typed exception carrying a stable machine
`code` and a stable human-readable `reason`, so callers (and tests) can match
on either. Errors are lightweight and safe to surface over logs/RPC via
`to_dict()`.

Taxonomy
--------
RegistrarError (base)
 ├─ ValidationError      : bad input rejected locally (length, characters, arity)
 ├─ AuthorizationError   : caller is not admin / controller / owner / approved
 ├─ StateError           : the current state forbids the operation
 └─ CollaboratorError    : an external collaborator refused (funds, allowance,
                           target is not a deployed component, domain not owned)

A failing operation never leaves a partial effect; see `registrar.state`.
"""


import json
from typing import Any, Dict, Mapping, Optional


class RegistrarError(Exception):
    """Base class for registrar domain errors."""

    code: str = "REGISTRAR_ERROR"
    reason: str = "registrar operation failed"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.reason
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=_jsonable)
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


def _jsonable(o: Any) -> Any:
    if isinstance(o, (bytes, bytearray)):
        return "0x" + bytes(o).hex()
    return str(o)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(RegistrarError):
    code = "REGISTRAR_VALIDATION"
    reason = "invalid input"


class InvalidLength(ValidationError):
    code = "INVALID_LENGTH"
    reason = "Name length out of bounds"

    def __init__(
        self,
        *,
        length: int,
        min_length: int,
        max_length: int,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"length": int(length), "min": int(min_length), "max": int(max_length)})
        super().__init__(
            f"Name should be greater than or equal to {min_length} and less than or equal to {max_length}",
            details=d,
        )


class InvalidCharacter(ValidationError):
    code = "INVALID_CHARACTER"
    reason = "Invalid Character"


class InvalidArgument(ValidationError):
    code = "INVALID_ARGUMENT"
    reason = "Invalid argument"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class AuthorizationError(RegistrarError):
    code = "REGISTRAR_UNAUTHORIZED"
    reason = "caller is not authorized"


class NotAdmin(AuthorizationError):
    code = "NOT_ADMIN"
    reason = "Caller is not the administrator"


class NotController(AuthorizationError):
    code = "NOT_CONTROLLER"
    reason = "Only a controller can call this method"


class NotOwnerOrApproved(AuthorizationError):
    code = "NOT_OWNER_OR_APPROVED"
    reason = "Transfer caller is not owner nor approved"


class NotAuthorized(AuthorizationError):
    code = "NOT_AUTHORIZED"
    reason = "Only an authorized account can change the name settings"


# ---------------------------------------------------------------------------
# State consistency
# ---------------------------------------------------------------------------


class StateError(RegistrarError):
    code = "REGISTRAR_STATE"
    reason = "operation not allowed in the current state"


class NameTaken(StateError):
    code = "NAME_TAKEN"
    reason = "Name already owned"


class NotRegistered(StateError):
    code = "NOT_REGISTERED"
    reason = "The name is not registered"


class NonexistentToken(StateError):
    code = "NONEXISTENT_TOKEN"
    reason = "Query for a nonexistent token"


class NoCommit(StateError):
    code = "NO_COMMIT"
    reason = "The commit does not exist"


class NotReady(StateError):
    code = "NOT_READY"
    reason = "The commit is not ready to be revealed"

    def __init__(
        self,
        *,
        now: int,
        ready_at: int,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"now": int(now), "ready_at": int(ready_at)})
        super().__init__(details=d)


class HashMismatch(StateError):
    code = "HASH_MISMATCH"
    reason = "The revealed data does not match the commit"


class AlreadyRevealed(StateError):
    code = "ALREADY_REVEALED"
    reason = "The commit was already revealed"


class DuplicatePendingCommit(StateError):
    code = "DUPLICATE_PENDING_COMMIT"
    reason = "There is already a commit for the same hash"


class MigrationNotFinished(StateError):
    code = "MIGRATION_NOT_FINISHED"
    reason = "The migration has not finished"


class MigrationFinished(StateError):
    code = "MIGRATION_FINISHED"
    reason = "The migration has finished"


class AlreadyFinished(StateError):
    code = "ALREADY_FINISHED"
    reason = "The migration was already finished"


class AlreadyPresent(StateError):
    code = "ALREADY_PRESENT"
    reason = "The controller was already added"


class AlreadyAbsent(StateError):
    code = "ALREADY_ABSENT"
    reason = "The controller is already disabled"


class SameValue(StateError):
    code = "SAME_VALUE"
    reason = "New value should be different from old"


class BelowFloor(StateError):
    code = "BELOW_FLOOR"
    reason = "Max gas price should be greater than or equal to 1 gwei"


class GasPriceTooHigh(StateError):
    code = "GAS_PRICE_TOO_HIGH"
    reason = "Maximum gas price allowed exceeded"

    def __init__(
        self,
        *,
        gas_price: int,
        max_gas_price: int,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"gas_price": int(gas_price), "max_gas_price": int(max_gas_price)})
        super().__init__(details=d)


# ---------------------------------------------------------------------------
# External collaborators
# ---------------------------------------------------------------------------


class CollaboratorError(RegistrarError):
    code = "REGISTRAR_COLLABORATOR"
    reason = "external collaborator refused the operation"


class InsufficientFunds(CollaboratorError):
    code = "INSUFFICIENT_FUNDS"
    reason = "Insufficient funds"


class NotAuthorizedToSpend(CollaboratorError):
    code = "NOT_AUTHORIZED_TO_SPEND"
    reason = "The contract is not authorized to use the accepted token on sender behalf"


class InvalidTarget(CollaboratorError):
    code = "INVALID_TARGET"
    reason = "Invalid address"


class DomainNotOwned(CollaboratorError):
    code = "DOMAIN_NOT_OWNED"
    reason = "The contract does not own the domain"


__all__ = [
    "RegistrarError",
    "ValidationError",
    "InvalidLength",
    "InvalidCharacter",
    "InvalidArgument",
    "AuthorizationError",
    "NotAdmin",
    "NotController",
    "NotOwnerOrApproved",
    "NotAuthorized",
    "StateError",
    "NameTaken",
    "NotRegistered",
    "NonexistentToken",
    "NoCommit",
    "NotReady",
    "HashMismatch",
    "AlreadyRevealed",
    "DuplicatePendingCommit",
    "MigrationNotFinished",
    "MigrationFinished",
    "AlreadyFinished",
    "AlreadyPresent",
    "AlreadyAbsent",
    "SameValue",
    "BelowFloor",
    "GasPriceTooHigh",
    "CollaboratorError",
    "InsufficientFunds",
    "NotAuthorizedToSpend",
    "InvalidTarget",
    "DomainNotOwned",
]
