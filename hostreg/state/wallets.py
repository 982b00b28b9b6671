"""
hostreg.state.wallets — wallet records for externally owned and contract addresses.

A Wallet holds three fields:

- nonce:      u256 creation counter (bumped on every contract deployment)
- balance:    u256 currency amount
- code_hash:  32-byte identifier of the contract kind (all-zero for EOAs)

The record is named "Wallet" so it does not collide with the registry's own
`Account` contract. Mapping-level concerns (journals, snapshots) live elsewhere.

All arithmetic is u256-bounded and deterministic.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict

from hostreg.errors import InsufficientBalance, StateConflict

# --------------------------------------------------------------------------- #
# Constants & helpers
# --------------------------------------------------------------------------- #

U256_MAX = (1 << 256) - 1
EMPTY_CODE_HASH: bytes = b"\x00" * 32


def _ensure_u256(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    if value > U256_MAX:
        raise OverflowError(f"{name} exceeds u256")
    return value


def compute_code_hash(kind: str) -> bytes:
    """
    Canonical code hash for a contract kind name (SHA3-256 over a tagged name).
    """
    if not kind:
        return EMPTY_CODE_HASH
    return hashlib.sha3_256(b"hostreg/kind:" + kind.encode("utf-8")).digest()


# --------------------------------------------------------------------------- #
# Wallet
# --------------------------------------------------------------------------- #

@dataclass(slots=True)
class Wallet:
    """
    A minimal, deterministic wallet record.

    Invariants:
    - nonce and balance are u256
    - code_hash is exactly 32 bytes
    """
    nonce: int = 0
    balance: int = 0
    code_hash: bytes = EMPTY_CODE_HASH

    def __post_init__(self) -> None:
        self.nonce = _ensure_u256("nonce", int(self.nonce))
        self.balance = _ensure_u256("balance", int(self.balance))
        if not isinstance(self.code_hash, (bytes, bytearray, memoryview)):
            raise TypeError("code_hash must be bytes-like")
        ch = bytes(self.code_hash)
        if len(ch) != 32:
            raise ValueError("code_hash must be 32 bytes")
        self.code_hash = ch

    @property
    def is_contract(self) -> bool:
        return self.code_hash != EMPTY_CODE_HASH

    def copy(self) -> "Wallet":
        return Wallet(nonce=self.nonce, balance=self.balance, code_hash=self.code_hash)

    # ----------------------- field operations ------------------------------ #

    def increment_nonce(self) -> None:
        """
        Increase the nonce by 1; raises StateConflict on overflow.
        """
        if self.nonce == U256_MAX:
            raise StateConflict("nonce overflow (u256 max)")
        self.nonce += 1

    def credit(self, amount: int) -> None:
        amt = _ensure_u256("amount", int(amount))
        if self.balance + amt > U256_MAX:
            raise OverflowError("balance exceeds u256")
        self.balance += amt

    def debit(self, amount: int) -> None:
        """
        Decrease balance by `amount`; raises InsufficientBalance if it cannot be covered.
        """
        amt = _ensure_u256("amount", int(amount))
        if self.balance < amt:
            raise InsufficientBalance(data={"balance": self.balance, "amount": amt})
        self.balance -= amt

    # ----------------------- (de)serialization ----------------------------- #

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nonce": self.nonce,
            "balance": self.balance,
            "code_hash": self.code_hash.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Wallet":
        try:
            nonce = int(data["nonce"])
            balance = int(data["balance"])
            ch = data.get("code_hash") or EMPTY_CODE_HASH.hex()
            code_hash = bytes.fromhex(ch) if isinstance(ch, str) else bytes(ch)
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"bad wallet dict: {e}") from e
        return cls(nonce=nonce, balance=balance, code_hash=code_hash)


__all__ = [
    "EMPTY_CODE_HASH",
    "U256_MAX",
    "Wallet",
    "compute_code_hash",
]
