"""
AddressStorage — a privately owned registered/removed address set.

Each Account and Host composes two of these ("registered" and "removed").
The store's owner is the composing entity, and only that entity may add or
remove addresses; its owner goes through the entity's gated operations.

Events:
    AddressAdded   {"address": bytes}
    AddressRemoved {"address": bytes}
"""

from __future__ import annotations

from hostreg.errors import NotRegistered
from hostreg.runtime.abi import require_address
from hostreg.runtime.context import Msg
from hostreg.runtime.contract import external, view
from hostreg.stdlib import address_set
from hostreg.stdlib.access import Ownable, require_owner


class AddressStorage(Ownable):
    kind = "AddressStorage"

    def init(self, msg: Msg, owner: bytes) -> None:
        self._init_owner(owner)

    def _addr(self, value: bytes, method: str) -> bytes:
        return require_address(value, f"AddressStorage.{method}", length=self.config.address_len)

    @external()
    def add(self, msg: Msg, addr: bytes) -> bool:
        require_owner(self.storage, msg.sender, "AddressStorage.add: message sender not an owner")
        addr = self._addr(addr, "add")
        changed = address_set.add(self.storage, addr, clear_removed=self.config.clear_removed_on_add)
        if changed:
            self._emit(b"AddressAdded", {"address": addr})
        return changed

    @external()
    def remove(self, msg: Msg, addr: bytes) -> None:
        require_owner(self.storage, msg.sender, "AddressStorage.remove: message sender not an owner")
        addr = self._addr(addr, "remove")
        if not address_set.remove(self.storage, addr):
            raise NotRegistered("AddressStorage.remove: address not registered")
        self._emit(b"AddressRemoved", {"address": addr})

    @view
    def has(self, addr: bytes) -> bool:
        return address_set.has(self.storage, bytes(addr))

    @view
    def was_removed(self, addr: bytes) -> bool:
        return address_set.was_removed(self.storage, bytes(addr))
