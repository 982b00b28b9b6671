"""
hostreg.stdlib.access
=====================

Single-owner access control for registry contracts.

- read the current owner (`get_owner`)
- initialize the owner once (`init_owner`)
- check that a caller is the owner (`require_owner`)
- check that a caller speaks for the owner context (`require_owner_context`)
- transfer ownership (`transfer_ownership`)

Storage and event conventions
-----------------------------
- The owner is stored at `OWNER_KEY = b"access:owner"` in the contract's own
  storage.
- Events:
    - "OwnershipTransferred" args: {"previous": bytes, "new": bytes}

Owner context
-------------
Storage contracts are owned by the entity that composes them. StringStorage
accepts a mutation from its owner (the entity calling its own store) and from
the owner *of* that owner, so an Account's owner can write the Account's
metadata store directly. AddressStorage uses plain `require_owner`.
"""

from __future__ import annotations

from typing import Any

from hostreg.errors import NotOwner
from hostreg.runtime.abi import require_address
from hostreg.runtime.context import Msg
from hostreg.runtime.contract import Contract, external, view

OWNER_KEY = b"access:owner"

__all__ = [
    "OWNER_KEY",
    "Ownable",
    "get_owner",
    "init_owner",
    "is_owner_context",
    "require_owner",
    "require_owner_context",
    "transfer_ownership",
]


def get_owner(store: Any) -> bytes:
    """Return the current owner address, or b"" if not set."""
    return store.get(OWNER_KEY)


def init_owner(store: Any, owner: bytes) -> None:
    """Initialize the owner. Idempotent: does not overwrite an existing owner."""
    if not store.has(OWNER_KEY):
        store.set(OWNER_KEY, owner)


def require_owner(store: Any, caller: bytes, reason: str) -> None:
    """Revert with NotOwner(reason) unless `caller` is the current owner."""
    owner = get_owner(store)
    if not owner or owner != caller:
        raise NotOwner(reason)


def is_owner_context(contract: Contract, caller: bytes) -> bool:
    owner = get_owner(contract.storage)
    if not owner:
        return False
    if caller == owner:
        return True
    if contract.chain.kind_of(owner) is None:
        return False
    parent = contract.chain.at(owner)
    return isinstance(parent, Ownable) and parent.owner() == caller


def require_owner_context(contract: Contract, caller: bytes, reason: str) -> None:
    if not is_owner_context(contract, caller):
        raise NotOwner(reason)


def transfer_ownership(contract: Contract, caller: bytes, new_owner: Any, reason: str) -> None:
    """
    Owner-only: transfer ownership to `new_owner`.

    Emits:
        - "OwnershipTransferred" with {"previous": <old>, "new": <new_owner>}
    """
    require_owner(contract.storage, caller, reason)
    where = reason.split(":", 1)[0]
    new = require_address(new_owner, where, length=contract.config.address_len)
    previous = get_owner(contract.storage)
    contract.storage.set(OWNER_KEY, new)
    contract._emit(b"OwnershipTransferred", {"previous": previous, "new": new})


class Ownable(Contract):
    """Mixin base exposing `owner()` and `change_owner(new_owner)`."""

    def _init_owner(self, owner: Any) -> None:
        init_owner(self.storage, require_address(owner, f"{self.kind}.init", length=self.config.address_len))

    def _only_owner(self, msg: Msg, method: str) -> None:
        require_owner(self.storage, msg.sender, f"{self.kind}.{method}: message sender not an owner")

    @view
    def owner(self) -> bytes:
        return get_owner(self.storage)

    @external()
    def change_owner(self, msg: Msg, new_owner: bytes) -> None:
        transfer_ownership(self, msg.sender, new_owner, f"{self.kind}.changeOwner: message sender not an owner")
