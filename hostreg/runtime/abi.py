"""
hostreg.runtime.abi — revert helpers and argument guards for contracts.

Contracts fail by raising a typed `Revert`; the chain undoes the call. These
helpers keep call sites to one line:

    require(msg.value >= fee, "Host.accountRegister: insufficient fee", InsufficientFee)
    addr = require_address(host, "Account.hostRegister", length=cfg.address_len)
"""

from __future__ import annotations

from typing import Any, NoReturn, Type

from hostreg.errors import Revert


def revert(reason: str = "revert", error: Type[Revert] = Revert) -> NoReturn:
    raise error(reason)


def require(cond: Any, reason: str = "require failed", error: Type[Revert] = Revert) -> None:
    if not cond:
        raise error(reason)


def require_address(value: Any, where: str, *, length: int) -> bytes:
    """Return `value` as address bytes or revert with "<where>: invalid address"."""
    if not isinstance(value, (bytes, bytearray, memoryview)) or len(value) != length:
        raise Revert(f"{where}: invalid address")
    return bytes(value)


def require_str(value: Any, where: str, *, max_bytes: int, what: str = "value") -> str:
    """Return `value` if it is a str whose UTF-8 form fits in `max_bytes`."""
    if not isinstance(value, str):
        raise Revert(f"{where}: {what} must be a string")
    if len(value.encode("utf-8")) > max_bytes:
        raise Revert(f"{where}: {what} too long")
    return value


__all__ = ["require", "require_address", "require_str", "revert"]
