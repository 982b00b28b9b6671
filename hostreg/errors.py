"""
hostreg.errors — typed exceptions raised by the registry and its chain.

Contracts communicate failures via *typed exceptions*. Every contract-level
failure is a `Revert` carrying the exact reason string, and the chain rolls
back all state, balances and events touched by the failing call before the
exception reaches the caller.

Hierarchy
---------
ExecError (base)
 ├─ Revert              : Contract-triggered failure, carries `.reason`
 │   ├─ NotOwner        : caller is not the owner of the entity
 │   ├─ NotAuthorized   : caller fails a joint authorization rule
 │   ├─ InsufficientFee : attached payment below the host fee
 │   └─ NotRegistered   : address is not in the registered set
 ├─ InsufficientBalance : caller cannot cover the attached payment
 ├─ InvalidAccess       : unknown method, or a non-payable method called with value
 ├─ UnknownContract     : no deployed code at the target address
 └─ StateConflict       : deploy/create onto an occupied address

Notes
-----
* `Revert` and its subclasses are *semantic* failures of a call and map to
  status "REVERT"; everything else maps to "ERROR".
* This module imports nothing from the rest of the package so it can be used
  from the lowest layers (state, journal) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(eq=False)
class ExecError(Exception):
    """
    Base execution error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'NOT_OWNER', 'REVERT').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "execution error"
    code: str = "EXEC_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for receipts/logs/CLI output."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class Revert(ExecError):
    """
    Contract-triggered revert.

    The reason string is the message; it is also mirrored into `data["reason"]`
    so serialized receipts carry it verbatim.

    Usage:
        raise NotOwner("Account.changeOwner: message sender not an owner")
    """

    CODE = "REVERT"

    def __init__(self, reason: str = "reverted", *, data: Optional[Dict[str, Any]] = None):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        d.setdefault("reason", reason)
        super().__init__(message=reason, code=self.CODE, data=d)

    @property
    def reason(self) -> str:
        return self.message


class NotOwner(Revert):
    """Caller is not the current owner (for StringStorage, nor the owner of its owning entity)."""

    CODE = "NOT_OWNER"


class NotAuthorized(Revert):
    """Caller fails a joint authorization rule (e.g. Host.accountRegister)."""

    CODE = "NOT_AUTHORIZED"


class InsufficientFee(Revert):
    """Attached payment is below the host's registration fee."""

    CODE = "INSUFFICIENT_FEE"


class NotRegistered(Revert):
    """Removal targeted an address that is not currently registered."""

    CODE = "NOT_REGISTERED"


class InsufficientBalance(ExecError):
    """Raised when a debit would make a wallet balance negative."""

    def __init__(self, message: str = "insufficient balance", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INSUFFICIENT_BALANCE", data=data)


class InvalidAccess(ExecError):
    """
    Illegal call shape under the contract ABI.

    Examples:
      - Method is not exported by the contract kind
      - Value attached to a non-payable method
    """
    def __init__(
        self,
        message: str = "invalid access",
        *,
        method: Optional[str] = None,
        address: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        d: Dict[str, Any] = {}
        if data:
            d.update(data)
        if method is not None:
            d.setdefault("method", method)
        if address is not None:
            d.setdefault("address", address)
        super().__init__(message=message, code="INVALID_ACCESS", data=d or None)


class UnknownContract(ExecError):
    """No contract code is deployed at the target address."""

    def __init__(self, message: str = "unknown contract", *, address: Optional[str] = None):
        super().__init__(
            message=message,
            code="UNKNOWN_CONTRACT",
            data={"address": address} if address is not None else None,
        )


class StateConflict(ExecError):
    """A wallet or contract already exists where a fresh one was expected."""

    def __init__(self, message: str = "state conflict", *, address: Optional[str] = None):
        super().__init__(
            message=message,
            code="STATE_CONFLICT",
            data={"address": address} if address is not None else None,
        )


# -------- helper utilities ---------------------------------------------------


def error_to_receipt_fields(err: ExecError) -> Dict[str, Any]:
    """
    Map an ExecError to canonical receipt-like fields.

    Returns:
        {
          "status": "REVERT" | "ERROR",
          "error":  {code, message, data?}
        }
    """
    status = "REVERT" if isinstance(err, Revert) else "ERROR"
    return {"status": status, "error": err.to_dict()}


__all__ = [
    "ExecError",
    "Revert",
    "NotOwner",
    "NotAuthorized",
    "InsufficientFee",
    "NotRegistered",
    "InsufficientBalance",
    "InvalidAccess",
    "UnknownContract",
    "StateConflict",
    "error_to_receipt_fields",
]
