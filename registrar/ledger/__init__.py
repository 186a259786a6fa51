"""
Ownership ledger: name -> token -> owner -> delegated node.

    from registrar.ledger import OwnershipLedger, Registrar
"""

from .access import ControllerSet
from .interfaces import ControllerCaller, Registrar
from .ownership import OwnershipLedger

__all__ = ["OwnershipLedger", "ControllerSet", "Registrar", "ControllerCaller"]
