"""
hostreg.state.balances — safe balance ops over a minimal balance API.

It assumes the state exposes:

    class State(Protocol):
        def get_balance(self, address: bytes) -> int: ...
        def set_balance(self, address: bytes, value: int) -> None: ...

`Chain` implements both on top of the journal, so every transfer performed
here is rolled back together with the call that made it.
"""

from __future__ import annotations

from typing import Dict, Protocol

from hostreg.errors import InsufficientBalance


class BalanceAccess(Protocol):
    def get_balance(self, address: bytes) -> int: ...
    def set_balance(self, address: bytes, value: int) -> None: ...


class NegativeAmount(ValueError):
    """Raised when a negative amount is passed to a credit/debit/transfer."""


def _ensure_non_negative(amount: int) -> None:
    if amount < 0:
        raise NegativeAmount(f"amount must be >= 0, got {amount}")


def credit(state: BalanceAccess, address: bytes, amount: int) -> int:
    """Increase `address` balance by `amount` and return the new balance."""
    _ensure_non_negative(amount)
    cur = state.get_balance(address)
    if amount == 0:
        return cur
    state.set_balance(address, cur + amount)
    return cur + amount


def debit(state: BalanceAccess, address: bytes, amount: int) -> int:
    """
    Decrease `address` balance by `amount` and return the new balance.
    Raises InsufficientBalance if the balance cannot cover the debit.
    """
    _ensure_non_negative(amount)
    cur = state.get_balance(address)
    if amount == 0:
        return cur
    if cur < amount:
        raise InsufficientBalance(data={"address": "0x" + bytes(address).hex(), "balance": cur, "amount": amount})
    state.set_balance(address, cur - amount)
    return cur - amount


def safe_transfer(state: BalanceAccess, sender: bytes, recipient: bytes, amount: int) -> Dict[str, int]:
    """
    Transfer `amount` from `sender` to `recipient` with checks.

    No-op if amount == 0 or sender == recipient (after validation).
    """
    _ensure_non_negative(amount)
    if amount == 0 or sender == recipient:
        return {"debited": 0, "credited": 0}
    debit(state, sender, amount)
    credit(state, recipient, amount)
    return {"debited": amount, "credited": amount}


__all__ = [
    "BalanceAccess",
    "NegativeAmount",
    "credit",
    "debit",
    "safe_transfer",
]
