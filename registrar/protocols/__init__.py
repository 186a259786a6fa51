"""
Registration controllers built on the ownership ledger.

- `CommitRevealController`: commit -> delay -> reveal.
- `ImmediateController`: one call, guarded by a gas-price ceiling.
"""

from .base import RegistrationController
from .commit_reveal import CommitRevealController
from .immediate import ImmediateController

__all__ = ["RegistrationController", "CommitRevealController", "ImmediateController"]
