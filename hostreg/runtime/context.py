"""
hostreg.runtime.context — the call envelope passed to contract methods.

Every mutating contract method receives a `Msg` as its first argument. It is
pure data: the authenticated caller, the attached payment and the callee.
The chain builds it; contracts never construct one themselves.

Hex strings (with or without "0x") are accepted by the helpers and normalized
to bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union


class ContextError(ValueError):
    """Validation or coercion failure for a call envelope."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def to_address(value: Union[bytes, bytearray, memoryview, str], *, length: int) -> bytes:
    """Coerce to bytes and check the fixed address width."""
    b = to_bytes(value)
    if len(b) != length:
        raise ContextError(f"address must be {length} bytes, got {len(b)}")
    return b


@dataclass(frozen=True)
class Msg:
    """
    Call envelope.

    Fields
    ------
    sender:  Authenticated caller (EOA or calling contract).
    value:   Payment attached to the call. It reaches `to` when the method
             accepts it or returns, whichever comes first.
    to:      Address of the contract being executed.
    depth:   Call depth (0 for a top-level transaction).
    """
    sender: bytes
    value: int = 0
    to: bytes = b""
    depth: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", to_bytes(self.sender))
        object.__setattr__(self, "to", to_bytes(self.to))
        if not isinstance(self.value, int) or isinstance(self.value, bool) or self.value < 0:
            raise ContextError(f"value must be a non-negative int, got {self.value!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"sender": to_hex(self.sender), "value": self.value, "to": to_hex(self.to), "depth": self.depth}


__all__ = ["ContextError", "Msg", "to_address", "to_bytes", "to_hex"]
