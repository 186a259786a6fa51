"""
Name registrar package.

Claims unique, human-readable names under a fixed parent domain (``dcl.eth``
by default), tokenizes every name as an exclusively-owned record and keeps a
delegated node for it in an external hierarchical naming system.

Two registration paths share one ownership ledger:
- commit → wait → reveal (hides the wanted name until a safety delay passed),
- immediate registration guarded by a gas-price ceiling.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
