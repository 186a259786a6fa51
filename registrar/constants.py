"""
Registrar constants.

This module centralizes:
- Units used by the fee and gas-price checks
- Default economic parameters (name price, gas ceiling, reveal delay)
- Name length bounds
- Well-known addresses and default domain labels

Operational knobs may be overridden via `registrar.config.RegistrarConfig`,
but code that needs stable defaults can import from here.
"""

from __future__ import annotations

# -----------------------------
# Units
# -----------------------------
WEI: int = 1
GWEI: int = 10**9
TOKEN_DECIMALS: int = 18
TOKEN_UNIT: int = 10**TOKEN_DECIMALS

# -----------------------------
# Economics
# -----------------------------
# Price of a name, in the smallest unit of the payment token (100 tokens).
PRICE: int = 100 * TOKEN_UNIT

# Immediate-registration gas ceiling. The floor is what an administrator may
# lower the ceiling to; anything below it would make registration impossible
# on a live network.
DEFAULT_MAX_GAS_PRICE: int = 20 * GWEI
MIN_MAX_GAS_PRICE: int = 1 * GWEI

# Commit-reveal safety delay (seconds between commit and the earliest reveal).
DEFAULT_REVEAL_DELAY_S: int = 60

# -----------------------------
# Names
# -----------------------------
DEFAULT_MIN_NAME_LENGTH: int = 2
DEFAULT_MAX_NAME_LENGTH: int = 15
# Legacy names arrive as right zero-padded 32-byte words.
LEGACY_NAME_WORD_BYTES: int = 32

# -----------------------------
# Addresses & domains
# -----------------------------
ADDRESS_BYTES: int = 20
ZERO_ADDRESS: bytes = b"\x00" * ADDRESS_BYTES
ZERO_HASH: bytes = b"\x00" * 32

DEFAULT_TOP_DOMAIN: str = "eth"
DEFAULT_DOMAIN: str = "dcl"
DEFAULT_BASE_URI: str = "https://api.example.org/v1/names/"

__all__ = [
    "WEI",
    "GWEI",
    "TOKEN_DECIMALS",
    "TOKEN_UNIT",
    "PRICE",
    "DEFAULT_MAX_GAS_PRICE",
    "MIN_MAX_GAS_PRICE",
    "DEFAULT_REVEAL_DELAY_S",
    "DEFAULT_MIN_NAME_LENGTH",
    "DEFAULT_MAX_NAME_LENGTH",
    "LEGACY_NAME_WORD_BYTES",
    "ADDRESS_BYTES",
    "ZERO_ADDRESS",
    "ZERO_HASH",
    "DEFAULT_TOP_DOMAIN",
    "DEFAULT_DOMAIN",
    "DEFAULT_BASE_URI",
]
