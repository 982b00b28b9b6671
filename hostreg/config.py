"""
hostreg.config — registry policy switches and numeric caps.

This module centralizes configuration for the registry and its in-process
chain. It has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (HOSTREG_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - HOSTREG_ADDRESS_LEN            (int)    default: 20
  - HOSTREG_CLEAR_REMOVED_ON_ADD   (bool)   default: true
  - HOSTREG_MAX_KEY_BYTES          (int)    default: 256
  - HOSTREG_MAX_VALUE_BYTES        (int)    default: 65_536
  - HOSTREG_DEFAULT_FEE            (int)    default: 100
  - HOSTREG_DEV_BALANCE            (int)    default: 10**21
  - HOSTREG_DEV_ACCOUNTS           (int)    default: 10
  - HOSTREG_LOG_LEVEL              (str)    default: INFO
  - HOSTREG_LOG_FORMAT             (str)    default: "" (auto: json off-tty)

Usage:
    from hostreg.config import load_config
    CFG = load_config()
    if CFG.clear_removed_on_add: ...

Tests that need a non-default policy build one with `dataclasses.replace`
and hand it to `Chain(config=...)` instead of touching the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict
import os


# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    return default if raw is None else raw.strip()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class HostregConfig:
    # Address width in bytes for EOAs and contracts
    address_len: int

    # Re-registration policy: does `add` clear a prior removal mark?
    clear_removed_on_add: bool

    # StringStorage caps (UTF-8 encoded lengths)
    max_key_bytes: int
    max_value_bytes: int

    # Development provisioning
    default_fee: int
    dev_balance: int
    dev_accounts: int

    # Logging
    log_level: str
    log_format: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "address_len": self.address_len,
            "clear_removed_on_add": self.clear_removed_on_add,
            "max_key_bytes": self.max_key_bytes,
            "max_value_bytes": self.max_value_bytes,
            "default_fee": self.default_fee,
            "dev_balance": self.dev_balance,
            "dev_accounts": self.dev_accounts,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }


@lru_cache(maxsize=1)
def load_config() -> HostregConfig:
    """
    Build and cache a HostregConfig from environment + safe defaults.
    """
    return HostregConfig(
        address_len=_env_int("HOSTREG_ADDRESS_LEN", 20, min_v=16, max_v=32),
        clear_removed_on_add=_env_bool("HOSTREG_CLEAR_REMOVED_ON_ADD", True),
        max_key_bytes=_env_int("HOSTREG_MAX_KEY_BYTES", 256, min_v=1, max_v=4_096),
        max_value_bytes=_env_int("HOSTREG_MAX_VALUE_BYTES", 65_536, min_v=32, max_v=1_048_576),
        default_fee=_env_int("HOSTREG_DEFAULT_FEE", 100, min_v=0, max_v=2**128),
        dev_balance=_env_int("HOSTREG_DEV_BALANCE", 10**21, min_v=0, max_v=2**128),
        dev_accounts=_env_int("HOSTREG_DEV_ACCOUNTS", 10, min_v=3, max_v=256),
        log_level=_env_str("HOSTREG_LOG_LEVEL", "INFO").upper() or "INFO",
        log_format=_env_str("HOSTREG_LOG_FORMAT", "").lower(),
    )


__all__ = ["HostregConfig", "load_config"]
