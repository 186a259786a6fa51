"""
External collaborators of the registrar core.

The core depends only on the protocols declared here (`PaymentToken`,
`NamingSystem`); the in-memory implementations share the sequencer's
journaled state so they roll back together with the core.
"""

from .naming import BaseRegistrar, InMemoryNamingRegistry, NamingSystem, Resolver
from .token import InMemoryToken, PaymentToken

__all__ = [
    "PaymentToken",
    "InMemoryToken",
    "NamingSystem",
    "InMemoryNamingRegistry",
    "BaseRegistrar",
    "Resolver",
]
