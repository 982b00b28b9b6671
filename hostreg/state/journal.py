"""
hostreg.state.journal — journaling writes, checkpoints, revert/commit.

A deterministic, in-memory write journal layered over a wallets mapping and a
StorageView. Nested checkpoints are a stack of overlays: writes go to the top
overlay, reads consult overlays from top → base. `commit()` merges the top
overlay into the layer below, `revert()` discards it.

Every chain call runs inside its own checkpoint, which is what makes a call
all-or-nothing: a failing call reverts its overlay, and a nested
contract-to-contract call that fails leaves its caller's earlier writes intact
only if the caller itself catches the error (contracts in this package never
do, so the whole outer call reverts).

Intended usage
--------------
    j = Journal(base_wallets, base_storage)
    j.begin()
    w = j.ensure_wallet_for_write(addr)
    w.credit(10)
    j.storage_set(addr, b"kv:name", b"Jain")
    j.commit()

The root overlay (depth 1) is never popped; `flush()` applies it to the base.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, MutableMapping, Optional, Set, Tuple

from hostreg.errors import StateConflict

from .storage import StorageView
from .wallets import EMPTY_CODE_HASH, Wallet

# Storage overlays use None as a deletion marker; _MISSING means "not staged here".
_MISSING = object()


def _b(x: bytes | bytearray | memoryview, *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


# =============================================================================
# Overlay model
# =============================================================================


@dataclass
class _Overlay:
    """
    A single journal layer.

    - `wallets`: copies of Wallet records modified/created in this layer.
    - `storage`: staged storage changes. `None` means deletion for that key.
    """

    wallets: Dict[bytes, Wallet] = field(default_factory=dict)
    storage: Dict[bytes, Dict[bytes, Optional[bytes]]] = field(default_factory=dict)

    def storage_get_local(self, addr: bytes, key: bytes) -> object:
        m = self.storage.get(addr)
        if m is None:
            return _MISSING
        return m.get(key, _MISSING)

    def storage_set_local(self, addr: bytes, key: bytes, value: Optional[bytes]) -> None:
        self.storage.setdefault(addr, {})[key] = value


# =============================================================================
# Journal
# =============================================================================


class Journal:
    """
    A copy-on-write write journal with nested checkpoints.

    Parameters
    ----------
    wallets : MutableMapping[bytes, Wallet]
        The base (persisted) wallet mapping.
    storage : StorageView
        The base storage view.
    """

    def __init__(self, wallets: MutableMapping[bytes, Wallet], storage: StorageView) -> None:
        self._base_wallets = wallets
        self._base_storage = storage
        self._layers: List[_Overlay] = [_Overlay()]

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of overlays (>= 1)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append(_Overlay())
        return len(self._layers)

    checkpoint = begin

    def commit(self) -> None:
        """Merge the top overlay into its parent. Committing the root is a flush."""
        if len(self._layers) == 1:
            self.flush()
            return
        top = self._layers.pop()
        self._merge_layers(self._layers[-1], top)

    def revert(self) -> None:
        """Discard the top overlay (or clear it if it's the root)."""
        if len(self._layers) > 1:
            self._layers.pop()
        else:
            self._layers[0] = _Overlay()

    def commit_to(self, marker: int) -> None:
        """Commit repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.commit()

    def revert_to(self, marker: int) -> None:
        """Revert repeatedly until the current depth equals `marker`."""
        if marker < 1:
            raise ValueError("marker must be >= 1")
        while len(self._layers) > marker:
            self.revert()

    def flush(self) -> None:
        """Commit every overlay and apply the result to the base state."""
        self.commit_to(1)
        self._apply_to_base(self._layers[0])
        self._layers[0] = _Overlay()

    # --------------------------------------------------------------------- #
    # Wallet API
    # --------------------------------------------------------------------- #

    def _lookup_wallet_any(self, addr: bytes) -> Optional[Wallet]:
        for layer in reversed(self._layers):
            local = layer.wallets.get(addr)
            if local is not None:
                return local
        return self._base_wallets.get(addr)

    def get_wallet(self, address: bytes | bytearray | memoryview) -> Optional[Wallet]:
        """Read-only lookup; callers must not mutate the returned record."""
        return self._lookup_wallet_any(_b(address, name="address"))

    def get_wallet_for_write(self, address: bytes | bytearray | memoryview) -> Optional[Wallet]:
        """
        Fetch a Wallet suitable for mutation in the top layer, promoting a copy
        from lower layers/base if needed. Returns None if absent everywhere.
        """
        addr = _b(address, name="address")
        top = self._layers[-1]
        if addr in top.wallets:
            return top.wallets[addr]
        w = self._lookup_wallet_any(addr)
        if w is None:
            return None
        top.wallets[addr] = w.copy()
        return top.wallets[addr]

    def ensure_wallet_for_write(self, address: bytes | bytearray | memoryview) -> Wallet:
        """Like get_wallet_for_write, creating a zeroed wallet when absent."""
        addr = _b(address, name="address")
        w = self.get_wallet_for_write(addr)
        if w is None:
            w = Wallet()
            self._layers[-1].wallets[addr] = w
        return w

    def create_wallet(
        self,
        address: bytes | bytearray | memoryview,
        *,
        initial_balance: int = 0,
        code_hash: Optional[bytes] = None,
    ) -> Wallet:
        """
        Create a new contract/EOA wallet in the top overlay.

        An existing wallet is only acceptable when it is a plain, never-used
        EOA record (funds sent ahead of deployment are kept).
        """
        addr = _b(address, name="address")
        existing = self._lookup_wallet_any(addr)
        if existing is not None and (existing.is_contract or existing.nonce != 0):
            raise StateConflict("wallet already exists", address="0x" + addr.hex())
        balance = int(initial_balance) + (existing.balance if existing is not None else 0)
        w = Wallet(
            nonce=0,
            balance=balance,
            code_hash=EMPTY_CODE_HASH if code_hash is None else bytes(code_hash),
        )
        self._layers[-1].wallets[addr] = w
        return w

    def wallet_addresses(self) -> Set[bytes]:
        """All addresses with a visible wallet record."""
        out = set(self._base_wallets.keys())
        for layer in self._layers:
            out.update(layer.wallets.keys())
        return out

    # --------------------------------------------------------------------- #
    # Storage API
    # --------------------------------------------------------------------- #

    def storage_get(
        self,
        address: bytes | bytearray | memoryview,
        key: bytes | bytearray | memoryview,
        default: bytes = b"",
    ) -> bytes:
        """Read storage with overlay precedence. Returns `default` if absent."""
        addr = _b(address, name="address")
        key_b = _b(key, name="key")
        for layer in reversed(self._layers):
            local = layer.storage_get_local(addr, key_b)
            if local is _MISSING:
                continue
            return default if local is None else local  # type: ignore[return-value]
        return self._base_storage.get(addr, key_b, default=default)

    def storage_set(
        self,
        address: bytes | bytearray | memoryview,
        key: bytes | bytearray | memoryview,
        value: bytes | bytearray | memoryview,
    ) -> None:
        """Stage a storage write in the top overlay. Empty value is a deletion."""
        addr = _b(address, name="address")
        key_b = _b(key, name="key")
        val_b = _b(value, name="value")
        self._layers[-1].storage_set_local(addr, key_b, val_b or None)

    def storage_delete(
        self,
        address: bytes | bytearray | memoryview,
        key: bytes | bytearray | memoryview,
    ) -> None:
        self._layers[-1].storage_set_local(_b(address, name="address"), _b(key, name="key"), None)

    def storage_items(self, address: bytes | bytearray | memoryview) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate visible (key, value) for an address with overlay precedence.
        Stable order by key.
        """
        addr = _b(address, name="address")
        visible: Dict[bytes, bytes] = dict(self._base_storage.items(addr))
        for layer in self._layers:
            for k, v in layer.storage.get(addr, {}).items():
                if v is None:
                    visible.pop(k, None)
                else:
                    visible[k] = v
        for k in sorted(visible.keys()):
            yield k, visible[k]

    def storage_addresses(self) -> Set[bytes]:
        """Addresses that have (or had staged) storage in any layer or the base."""
        out = set(self._base_storage.addresses())
        for layer in self._layers:
            out.update(layer.storage.keys())
        return out

    # --------------------------------------------------------------------- #
    # Internal merge/apply
    # --------------------------------------------------------------------- #

    @staticmethod
    def _merge_layers(dst: _Overlay, src: _Overlay) -> None:
        for addr, w in src.wallets.items():
            dst.wallets[addr] = w.copy()
        for addr, writes in src.storage.items():
            dst.storage.setdefault(addr, {}).update(writes)

    def _apply_to_base(self, layer: _Overlay) -> None:
        for addr, w in layer.wallets.items():
            self._base_wallets[addr] = w.copy()
        for addr, writes in layer.storage.items():
            for k, v in writes.items():
                if v is None:
                    self._base_storage.delete(addr, k)
                else:
                    self._base_storage.set(addr, k, v)

    # --------------------------------------------------------------------- #
    # Introspection
    # --------------------------------------------------------------------- #

    def pending_storage_keys(self) -> int:
        """Total number of staged storage (addr, key) entries across layers."""
        return sum(len(w) for layer in self._layers for w in layer.storage.values())


__all__ = ["Journal"]
