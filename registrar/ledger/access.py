"""
Controller access list for the ownership ledger.

Only addresses flagged here may mint names through
:meth:`OwnershipLedger.register`. The set is mutated by the ledger's
administrator only, and redundant changes are rejected rather than ignored:

- ``add`` of a present controller   -> `AlreadyPresent`
- ``remove`` of an absent controller -> `AlreadyAbsent`

Events
------
- ``ControllerAdded``   {controller}
- ``ControllerRemoved`` {controller}

Storage
-------
    owner.address || b":controllers"  [controller]  -> True
"""

from __future__ import annotations

import logging
from typing import List

from registrar.component import Component
from registrar.errors import AlreadyAbsent, AlreadyPresent, NotController

log = logging.getLogger(__name__)

_TAG = b"controllers"


class ControllerSet:
    """A flag set stored under the owning component's namespace."""

    def __init__(self, owner: Component) -> None:
        self._owner = owner

    def __contains__(self, addr: bytes) -> bool:
        return bool(self._owner._load(_TAG, addr, False))

    def members(self) -> List[bytes]:
        return sorted(k for k, v in self._owner._scan(_TAG) if v)

    def require(self, caller: bytes) -> None:
        if caller not in self:
            raise NotController(details={"caller": caller})

    def add(self, controller: bytes) -> None:
        if controller in self:
            raise AlreadyPresent(details={"controller": controller})
        self._owner._store(_TAG, controller, True)
        self._owner._emit("ControllerAdded", controller=controller)
        log.info("controller added", extra={"controller": controller.hex()})

    def remove(self, controller: bytes) -> None:
        if controller not in self:
            raise AlreadyAbsent(details={"controller": controller})
        self._owner._drop(_TAG, controller)
        self._owner._emit("ControllerRemoved", controller=controller)
        log.info("controller removed", extra={"controller": controller.hex()})


__all__ = ["ControllerSet"]
