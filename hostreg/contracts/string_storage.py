"""
StringStorage — a privately owned string key/value store.

An Account keeps its metadata here. Writes are accepted from the owning
entity or its current owner; reads are open.

Events:
    StringSet     {"key": str, "size": int}     (UTF-8 length of the value)
    StringRemoved {"key": str, "size": int}     (UTF-8 length of the removed value)
"""

from __future__ import annotations

from hostreg.runtime.abi import require_str
from hostreg.runtime.context import Msg
from hostreg.runtime.contract import external, view
from hostreg.stdlib import string_map
from hostreg.stdlib.access import Ownable, require_owner_context


class StringStorage(Ownable):
    kind = "StringStorage"

    def init(self, msg: Msg, owner: bytes) -> None:
        self._init_owner(owner)

    def _key(self, key: str, method: str) -> str:
        return require_str(key, f"StringStorage.{method}", max_bytes=self.config.max_key_bytes, what="key")

    @external()
    def set(self, msg: Msg, key: str, value: str) -> None:
        require_owner_context(self, msg.sender, "StringStorage.set: message sender not an owner")
        key = self._key(key, "set")
        value = require_str(value, "StringStorage.set", max_bytes=self.config.max_value_bytes)
        string_map.set(self.storage, key, value)
        self._emit(b"StringSet", {"key": key, "size": len(value.encode("utf-8"))})

    @external()
    def remove(self, msg: Msg, key: str) -> str:
        require_owner_context(self, msg.sender, "StringStorage.remove: message sender not an owner")
        old = string_map.remove(self.storage, self._key(key, "remove"))
        if old:
            self._emit(b"StringRemoved", {"key": key, "size": len(old.encode("utf-8"))})
        return old

    @view
    def get(self, key: str) -> str:
        return string_map.get(self.storage, key)

    @view
    def has(self, key: str) -> bool:
        return string_map.contains(self.storage, key)
