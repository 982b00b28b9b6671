"""
hostreg.stdlib.address_set — registered/removed address sets over contract storage.

Stateless library: every function takes the storage handle of the contract
that owns the data, so one copy of the logic serves any number of
AddressStorage instances.

Layout (per owning contract):
    b"as:reg:" + addr -> b"\\x01"    address is registered
    b"as:rm:"  + addr -> b"\\x01"    address was removed

Membership checks are single key lookups. With `clear_removed=True` (the
default policy) `add` drops a previous removal mark, so an address is never in
both sets; with `clear_removed=False` the removal mark is kept as history.
"""

from __future__ import annotations

from typing import Any

REGISTERED = b"as:reg:"
REMOVED = b"as:rm:"
_FLAG = b"\x01"


def has(store: Any, addr: bytes) -> bool:
    return store.has(REGISTERED + addr)


def was_removed(store: Any, addr: bytes) -> bool:
    return store.has(REMOVED + addr)


def add(store: Any, addr: bytes, *, clear_removed: bool = True) -> bool:
    """Register `addr`. Returns True if membership changed (False when already registered)."""
    if clear_removed and was_removed(store, addr):
        store.delete(REMOVED + addr)
    if has(store, addr):
        return False
    store.set(REGISTERED + addr, _FLAG)
    return True


def remove(store: Any, addr: bytes) -> bool:
    """Move `addr` from registered to removed. Returns False if it was not registered."""
    if not has(store, addr):
        return False
    store.delete(REGISTERED + addr)
    store.set(REMOVED + addr, _FLAG)
    return True


__all__ = ["REGISTERED", "REMOVED", "add", "has", "remove", "was_removed"]
