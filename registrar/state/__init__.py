"""
registrar.state
---------------

Journaled in-memory state shared by every registrar component. See
`registrar.state.journal` for the checkpoint/atomicity model.
"""

from __future__ import annotations

from .journal import StateStore

__all__ = ["StateStore"]
