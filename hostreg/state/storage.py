"""
hostreg.state.storage — per-address key/value storage.

A minimal, deterministic key/value store keyed by address (`bytes`) and
storage key (`bytes`) with `bytes` values. This is the *base* layer the
journal commits into; contracts never touch it directly.

- Bytes-in / bytes-out API; all inputs are copied to immutable `bytes`.
- "Empty means absent": storing an empty value deletes the key.
- Keys are variable length (contract libraries use readable prefixes such
  as `b"as:reg:"` or `b"kv:"`).

Typical usage
-------------
    sv = StorageView()
    sv.set(addr, b"kv:name", b"Jain")
    sv.get(addr, b"kv:name")  # b"Jain"
    sv.delete(addr, b"kv:name")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

BytesLike = bytes | bytearray | memoryview


def _as_bytes(x: BytesLike, *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


def _check_len(x: bytes, *, expected: Optional[int], what: str) -> None:
    if expected is not None and len(x) != expected:
        raise ValueError(f"{what} must be exactly {expected} bytes (got {len(x)})")


@dataclass
class StorageView:
    """
    A per-address key/value store.

    Parameters
    ----------
    backend :
        Optional external mapping {address: {key: value}}; a dict by default.
    key_len :
        If not None, enforce that all storage keys are exactly this length.
    """
    backend: Optional[MutableMapping[bytes, Dict[bytes, bytes]]] = None
    key_len: Optional[int] = None

    _store: MutableMapping[bytes, Dict[bytes, bytes]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._store = self.backend if self.backend is not None else {}

    # ------------------------------ core ops --------------------------------

    def get(self, address: BytesLike, key: BytesLike, default: bytes = b"") -> bytes:
        addr_b = _as_bytes(address, name="address")
        key_b = _as_bytes(key, name="key")
        _check_len(key_b, expected=self.key_len, what="storage key")
        return self._store.get(addr_b, {}).get(key_b, default)

    def has(self, address: BytesLike, key: BytesLike) -> bool:
        addr_b = _as_bytes(address, name="address")
        key_b = _as_bytes(key, name="key")
        return key_b in self._store.get(addr_b, {})

    def set(self, address: BytesLike, key: BytesLike, value: BytesLike) -> None:
        """
        Set value for (address, key). An empty value deletes the key.
        """
        addr_b = _as_bytes(address, name="address")
        key_b = _as_bytes(key, name="key")
        _check_len(key_b, expected=self.key_len, what="storage key")
        val_b = _as_bytes(value, name="value")

        if not val_b:
            self.delete(addr_b, key_b)
            return
        self._store.setdefault(addr_b, {})[key_b] = val_b

    def delete(self, address: BytesLike, key: BytesLike) -> bool:
        """
        Delete (address, key). Returns True if a key existed and was removed.
        """
        addr_b = _as_bytes(address, name="address")
        key_b = _as_bytes(key, name="key")
        acc = self._store.get(addr_b)
        if acc is None:
            return False
        removed = acc.pop(key_b, None) is not None
        if not acc:
            self._store.pop(addr_b, None)
        return removed

    # ------------------------------ address ops -----------------------------

    def addresses(self) -> Iterator[bytes]:
        """Addresses holding at least one key, in sorted order."""
        yield from sorted(self._store.keys())

    def items(self, address: BytesLike) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate (key, value) pairs for an address. Stable order: lexicographic by key.
        """
        addr_b = _as_bytes(address, name="address")
        acc = self._store.get(addr_b, {})
        for k in sorted(acc.keys()):
            yield k, acc[k]

    def clear_account(self, address: BytesLike) -> int:
        """
        Remove all storage for an address. Returns number of keys removed.
        """
        addr_b = _as_bytes(address, name="address")
        acc = self._store.pop(addr_b, None)
        return 0 if acc is None else len(acc)

    # ------------------------------ export/import ---------------------------

    def import_account_hex(self, address: BytesLike, data: Mapping[str, str]) -> None:
        """
        Import storage from a {key_hex: value_hex} mapping, replacing existing keys.
        """
        addr_b = _as_bytes(address, name="address")
        self.clear_account(addr_b)
        for k_hex, v_hex in data.items():
            self.set(addr_b, bytes.fromhex(k_hex), bytes.fromhex(v_hex))

    def total_keys(self) -> int:
        """Total number of keys across all addresses."""
        return sum(len(acc) for acc in self._store.values())

    def __repr__(self) -> str:  # pragma: no cover (human-only)
        return f"StorageView(addresses={len(self._store)}, total_keys={self.total_keys()})"


__all__ = ["StorageView"]
