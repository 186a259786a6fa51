"""
Registrar configuration.

This file defines typed configuration objects and helpers for:
- Name rules (byte-length bounds) per controller instance
- Commit-reveal parameters (reveal delay, price)
- Immediate-registration parameters (gas ceiling, price, fee collector)
- Parent domain labels and the token metadata base URI

It provides:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file (YAML via PyYAML)
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

import yaml

from registrar.constants import (
    ADDRESS_BYTES,
    DEFAULT_BASE_URI,
    DEFAULT_DOMAIN,
    DEFAULT_MAX_GAS_PRICE,
    DEFAULT_MAX_NAME_LENGTH,
    DEFAULT_MIN_NAME_LENGTH,
    DEFAULT_REVEAL_DELAY_S,
    DEFAULT_TOP_DOMAIN,
    MIN_MAX_GAS_PRICE,
    PRICE,
)
from registrar.utils.bytes import from_hex

# -------------------------
# Sub-configs
# -------------------------


@dataclass
class NameRules:
    """Byte-length bounds applied by one controller instance."""

    min_length: int = DEFAULT_MIN_NAME_LENGTH
    max_length: int = DEFAULT_MAX_NAME_LENGTH

    def validate(self) -> None:
        if self.min_length < 1:
            raise ValueError("min_length must be >= 1")
        if self.max_length < self.min_length:
            raise ValueError("max_length must be >= min_length")


@dataclass
class CommitRevealParams:
    """
    reveal_delay_s: seconds that must pass between commit and reveal. It must
                    exceed the time an observer needs to front-run a name once
                    it becomes visible in a pending reveal.
    price:          fee in the payment token's smallest unit
    """

    enabled: bool = True
    reveal_delay_s: int = DEFAULT_REVEAL_DELAY_S
    price: int = PRICE
    rules: NameRules = field(default_factory=NameRules)

    def validate(self) -> None:
        if self.reveal_delay_s < 0:
            raise ValueError("reveal_delay_s must be >= 0")
        if self.price < 0:
            raise ValueError("price must be >= 0")
        self.rules.validate()


@dataclass
class ImmediateParams:
    """
    max_gas_price: ceiling on the bid of an immediate registration (wei)
    fee_collector: 0x-hex address receiving fees; None burns them
    """

    enabled: bool = True
    max_gas_price: int = DEFAULT_MAX_GAS_PRICE
    price: int = PRICE
    fee_collector: Optional[str] = None
    rules: NameRules = field(default_factory=NameRules)

    def validate(self) -> None:
        if self.max_gas_price < MIN_MAX_GAS_PRICE:
            raise ValueError(f"max_gas_price must be >= {MIN_MAX_GAS_PRICE}")
        if self.price < 0:
            raise ValueError("price must be >= 0")
        if self.fee_collector is not None:
            b = from_hex(self.fee_collector)
            if len(b) != ADDRESS_BYTES or b == b"\x00" * ADDRESS_BYTES:
                raise ValueError("fee_collector must be a non-zero 20-byte hex address")
        self.rules.validate()

    def fee_collector_bytes(self) -> Optional[bytes]:
        return from_hex(self.fee_collector) if self.fee_collector else None


# -------------------------
# Top-level config
# -------------------------


@dataclass
class RegistrarConfig:
    """
    Domain:
      - top_domain / domain: names live under ``<name>.<domain>.<top_domain>``
      - base_uri: prefix for token metadata URIs ("" disables them)

    Controllers: nested sub-configs; either may be disabled.
    """

    top_domain: str = DEFAULT_TOP_DOMAIN
    domain: str = DEFAULT_DOMAIN
    base_uri: str = DEFAULT_BASE_URI

    commit_reveal: CommitRevealParams = field(default_factory=CommitRevealParams)
    immediate: ImmediateParams = field(default_factory=ImmediateParams)

    def validate(self) -> None:
        for f_name in ("top_domain", "domain"):
            label = getattr(self, f_name)
            if not label or "." in label:
                raise ValueError(f"{f_name} must be a single non-empty label")
        self.commit_reveal.validate()
        self.immediate.validate()

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "REGISTRAR_") -> "RegistrarConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys (examples):
          - REGISTRAR_TOP_DOMAIN=eth
          - REGISTRAR_DOMAIN=dcl
          - REGISTRAR_BASE_URI=https://api.example.org/v1/names/

          - REGISTRAR_CR_ENABLED=true
          - REGISTRAR_CR_REVEAL_DELAY_S=60
          - REGISTRAR_CR_PRICE=100000000000000000000
          - REGISTRAR_CR_MIN_LENGTH=2
          - REGISTRAR_CR_MAX_LENGTH=15

          - REGISTRAR_IMM_ENABLED=true
          - REGISTRAR_IMM_MAX_GAS_PRICE=20000000000
          - REGISTRAR_IMM_PRICE=100000000000000000000
          - REGISTRAR_IMM_FEE_COLLECTOR=0x…
          - REGISTRAR_IMM_MIN_LENGTH=3
          - REGISTRAR_IMM_MAX_LENGTH=15
        """

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                if cast is bool:
                    return raw.lower() in {"1", "true", "yes", "on"}
                return cast(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        cfg = RegistrarConfig(
            top_domain=_get("TOP_DOMAIN", str, DEFAULT_TOP_DOMAIN),
            domain=_get("DOMAIN", str, DEFAULT_DOMAIN),
            base_uri=_get("BASE_URI", str, DEFAULT_BASE_URI),
            commit_reveal=CommitRevealParams(
                enabled=_get("CR_ENABLED", bool, True),
                reveal_delay_s=_get("CR_REVEAL_DELAY_S", int, DEFAULT_REVEAL_DELAY_S),
                price=_get("CR_PRICE", int, PRICE),
                rules=NameRules(
                    min_length=_get("CR_MIN_LENGTH", int, DEFAULT_MIN_NAME_LENGTH),
                    max_length=_get("CR_MAX_LENGTH", int, DEFAULT_MAX_NAME_LENGTH),
                ),
            ),
            immediate=ImmediateParams(
                enabled=_get("IMM_ENABLED", bool, True),
                max_gas_price=_get("IMM_MAX_GAS_PRICE", int, DEFAULT_MAX_GAS_PRICE),
                price=_get("IMM_PRICE", int, PRICE),
                fee_collector=_get("IMM_FEE_COLLECTOR", str, None),
                rules=NameRules(
                    min_length=_get("IMM_MIN_LENGTH", int, DEFAULT_MIN_NAME_LENGTH),
                    max_length=_get("IMM_MAX_LENGTH", int, DEFAULT_MAX_NAME_LENGTH),
                ),
            ),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "RegistrarConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        structure. Example (YAML):

            domain: dcl
            base_uri: "https://api.example.org/v1/names/"
            commit_reveal:
              reveal_delay_s: 60
              rules:
                min_length: 2
            immediate:
              max_gas_price: 20000000000
              rules:
                min_length: 3
        """
        text = _read_text(path)
        data = _parse_json_or_yaml(text, path)

        def _pop(d: Dict[str, Any], key: str, default: Any) -> Any:
            return d.pop(key, default) if isinstance(d, dict) else default

        cr_d = _pop(data, "commit_reveal", {}) or {}
        imm_d = _pop(data, "immediate", {}) or {}
        cr_rules = _pop(cr_d, "rules", {}) or {}
        imm_rules = _pop(imm_d, "rules", {}) or {}

        cfg = RegistrarConfig(
            top_domain=_pop(data, "top_domain", DEFAULT_TOP_DOMAIN),
            domain=_pop(data, "domain", DEFAULT_DOMAIN),
            base_uri=_pop(data, "base_uri", DEFAULT_BASE_URI),
            commit_reveal=CommitRevealParams(
                enabled=_pop(cr_d, "enabled", True),
                reveal_delay_s=_pop(cr_d, "reveal_delay_s", DEFAULT_REVEAL_DELAY_S),
                price=int(_pop(cr_d, "price", PRICE)),
                rules=NameRules(
                    min_length=_pop(cr_rules, "min_length", DEFAULT_MIN_NAME_LENGTH),
                    max_length=_pop(cr_rules, "max_length", DEFAULT_MAX_NAME_LENGTH),
                ),
            ),
            immediate=ImmediateParams(
                enabled=_pop(imm_d, "enabled", True),
                max_gas_price=int(_pop(imm_d, "max_gas_price", DEFAULT_MAX_GAS_PRICE)),
                price=int(_pop(imm_d, "price", PRICE)),
                fee_collector=_pop(imm_d, "fee_collector", None),
                rules=NameRules(
                    min_length=_pop(imm_rules, "min_length", DEFAULT_MIN_NAME_LENGTH),
                    max_length=_pop(imm_rules, "max_length", DEFAULT_MAX_NAME_LENGTH),
                ),
            ),
        )
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    # First try JSON
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse {path_hint!r} as JSON or YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path_hint!r} must contain a mapping at the top level")
    return data


DEFAULT: RegistrarConfig = RegistrarConfig()


__all__ = [
    "NameRules",
    "CommitRevealParams",
    "ImmediateParams",
    "RegistrarConfig",
    "DEFAULT",
]
