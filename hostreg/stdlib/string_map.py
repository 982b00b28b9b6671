"""
hostreg.stdlib.string_map — string → string mapping over contract storage.

Stateless library used by StringStorage. Keys and values are UTF-8 encoded
under `b"kv:" + key`. Absent keys read as "", and because storing an empty
value deletes a slot, `set(k, "")` and `remove(k)` leave the same state.
"""

from __future__ import annotations

from typing import Any

PREFIX = b"kv:"


def _slot(key: str) -> bytes:
    return PREFIX + key.encode("utf-8")


def get(store: Any, key: str) -> str:
    return store.get(_slot(key)).decode("utf-8")


def contains(store: Any, key: str) -> bool:
    return store.has(_slot(key))


def set(store: Any, key: str, value: str) -> None:  # noqa: A001 - mirrors storage API
    store.set(_slot(key), value.encode("utf-8"))


def remove(store: Any, key: str) -> str:
    """Delete `key` and return the value it held ("" if it was absent)."""
    old = get(store, key)
    if old:
        store.delete(_slot(key))
    return old


__all__ = ["PREFIX", "contains", "get", "remove", "set"]
