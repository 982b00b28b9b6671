"""
hostreg.state.events — validated, rollback-aware event log.

Contracts emit `(name: bytes, args: {str: value})` events. The log is a flat,
ordered list; rollback is done by truncating to a mark taken before the call
(or snapshot) that is being undone.

Allowed arg values: bytes (≤ 4096), bool, int (≤ 256 bits), str (≤ 4096
UTF-8 bytes). Arg keys are identifier-like.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EventError(ValueError):
    """Malformed event name or args."""


@dataclass(frozen=True)
class Event:
    address: bytes
    name: bytes
    args: Dict[str, Any]
    index: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "address": "0x" + self.address.hex(),
            "name": self.name.decode("utf-8", "replace"),
            "args": {k: _jsonable(v) for k, v in self.args.items()},
        }


def _jsonable(v: Any) -> Any:
    if isinstance(v, bytes):
        return "0x" + v.hex()
    return v


# Persisted args are tagged like canonical receipt args: b=bytes i=int z=bool s=str
def _tag(v: Any) -> Dict[str, Any]:
    if isinstance(v, bytes):
        return {"t": "b", "v": v.hex()}
    if isinstance(v, bool):
        return {"t": "z", "v": v}
    if isinstance(v, int):
        return {"t": "i", "v": str(v)}
    return {"t": "s", "v": v}


def _untag(item: Mapping[str, Any]) -> Any:
    t, v = item["t"], item["v"]
    if t == "b":
        return bytes.fromhex(v)
    if t == "z":
        return bool(v)
    if t == "i":
        return int(v)
    return str(v)


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)):
        raise EventError("event name must be bytes")
    b = bytes(name)
    if not b or len(b) > MAX_EVENT_NAME_BYTES:
        raise EventError(f"event name length out of range: {len(b)}")
    return b


def _check_value(key: str, value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
        if len(b) > MAX_BYTES_LEN:
            raise EventError(f"event arg {key!r} too long")
        return b
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise EventError(f"event arg {key!r} out of range")
        return value
    if isinstance(value, str):
        if len(value.encode("utf-8")) > MAX_BYTES_LEN:
            raise EventError(f"event arg {key!r} too long")
        return value
    raise EventError(f"unsupported event arg type for {key!r}: {type(value).__name__}")


class EventLog:
    def __init__(self) -> None:
        self._events: List[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))

    def emit(self, address: bytes, name: bytes, args: Optional[Mapping[str, Any]] = None) -> Event:
        bname = _check_name(name)
        clean: Dict[str, Any] = {}
        for k, v in (args or {}).items():
            if not isinstance(k, str) or not k or len(k) > MAX_KEY_LEN or not _KEY_RE.match(k):
                raise EventError(f"invalid event key: {k!r}")
            clean[k] = _check_value(k, v)
        ev = Event(address=bytes(address), name=bname, args=clean, index=len(self._events))
        self._events.append(ev)
        return ev

    # --- rollback ------------------------------------------------------------

    def mark(self) -> int:
        return len(self._events)

    def truncate(self, mark: int) -> None:
        del self._events[mark:]

    # --- queries -------------------------------------------------------------

    def since(self, mark: int) -> List[Event]:
        return self._events[mark:]

    def filter(self, *, address: Optional[bytes] = None, name: Optional[bytes] = None) -> List[Event]:
        return [
            e
            for e in self._events
            if (address is None or e.address == address) and (name is None or e.name == name)
        ]

    # --- persistence ---------------------------------------------------------

    def export(self) -> List[Dict[str, Any]]:
        return [
            {"address": e.address.hex(), "name": e.name.hex(), "args": {k: _tag(v) for k, v in e.args.items()}}
            for e in self._events
        ]

    def load(self, items: Iterable[Mapping[str, Any]]) -> None:
        self._events.clear()
        for item in items:
            args = {k: _untag(v) for k, v in dict(item.get("args") or {}).items()}
            self.emit(bytes.fromhex(item["address"]), bytes.fromhex(item["name"]), args)


__all__ = ["Event", "EventError", "EventLog"]
