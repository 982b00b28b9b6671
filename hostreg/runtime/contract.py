"""
hostreg.runtime.contract — base class and ABI markers for registry contracts.

A contract is a plain Python class bound to `(chain, address)`. It keeps no
state on the instance; everything lives in chain storage under the contract's
address, reached through `self.storage`. Handles are cheap and may be created
freely with `chain.at(address)`.

Methods are exported with two markers:

    @external()               mutating, receives `msg: Msg` first, rejects value
    @external(payable=True)   mutating, may receive value
    @view                     read-only, no `msg`

Only exported methods are reachable through `Chain.call`. Each concrete
contract sets `kind`; the kind's code hash is what identifies the contract
type of a deployed address.
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, Mapping, Optional, Type

from hostreg.config import HostregConfig
from hostreg.state.wallets import compute_code_hash

from .context import Msg

if TYPE_CHECKING:  # pragma: no cover
    from .chain import Chain

ABI_ATTR = "__hostreg_abi__"

_BY_CODE_HASH: Dict[bytes, Type["Contract"]] = {}


def external(fn: Optional[Callable] = None, *, payable: bool = False):
    """Export a mutating method. Usable as `@external()` or `@external(payable=True)`."""

    def wrap(f: Callable) -> Callable:
        setattr(f, ABI_ATTR, "payable" if payable else "external")
        return f

    return wrap(fn) if fn is not None else wrap


def view(fn: Callable) -> Callable:
    """Export a read-only method."""
    setattr(fn, ABI_ATTR, "view")
    return fn


def abi_kind(fn: Any) -> Optional[str]:
    return getattr(fn, ABI_ATTR, None)


def lookup_kind(code_hash: bytes) -> Optional[Type["Contract"]]:
    """Resolve a code hash to its contract class (None for EOAs/unknown)."""
    cls = _BY_CODE_HASH.get(bytes(code_hash))
    if cls is None:
        # Registration happens on import; make sure the bundled contracts are loaded.
        importlib.import_module("hostreg.contracts")
        cls = _BY_CODE_HASH.get(bytes(code_hash))
    return cls


class ContractStorage:
    """Storage facade bound to one contract address (journal-backed)."""

    __slots__ = ("_journal", "_address")

    def __init__(self, journal: Any, address: bytes) -> None:
        self._journal = journal
        self._address = address

    def get(self, key: bytes) -> bytes:
        return self._journal.storage_get(self._address, key)

    def has(self, key: bytes) -> bool:
        return len(self._journal.storage_get(self._address, key)) > 0

    def set(self, key: bytes, value: bytes) -> None:
        self._journal.storage_set(self._address, key, value)

    def delete(self, key: bytes) -> None:
        self._journal.storage_delete(self._address, key)


class Contract:
    kind: ClassVar[str] = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        kind = cls.__dict__.get("kind")
        if kind:
            _BY_CODE_HASH[compute_code_hash(kind)] = cls

    def __init__(self, chain: "Chain", address: bytes) -> None:
        self.chain = chain
        self.address = bytes(address)
        self.storage = ContractStorage(chain.journal, self.address)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(0x{self.address.hex()})"

    @classmethod
    def code_hash(cls) -> bytes:
        return compute_code_hash(cls.kind)

    @classmethod
    def abi(cls) -> Mapping[str, str]:
        """Exported method name → "external" | "payable" | "view"."""
        out: Dict[str, str] = {}
        for name in dir(cls):
            if name.startswith("_"):
                continue
            k = abi_kind(getattr(cls, name, None))
            if k is not None:
                out[name] = k
        return out

    @property
    def config(self) -> HostregConfig:
        return self.chain.config

    # ---- environment access used by contract code ----------------------------

    def _emit(self, name: bytes, args: Optional[Mapping[str, Any]] = None) -> None:
        self.chain.events.emit(self.address, name, args)

    def _call(self, to: bytes, method: str, *args: Any, value: int = 0) -> Any:
        """Call another contract with this contract as the sender."""
        return self.chain._execute(self.address, bytes(to), method, args, value)

    def _accept_payment(self, msg: Msg) -> None:
        """Take the value attached to `msg` now, after the method has run its guards."""
        self.chain.settle_payment(msg)

    def _create(self, cls: Type["Contract"], *args: Any) -> bytes:
        """Deploy a child contract with this contract as the deployer."""
        return self.chain._deploy(self.address, cls, args, 0)

    def _kind_at(self, address: bytes) -> Optional[str]:
        return self.chain.kind_of(address)

    def _at(self, address: bytes) -> "Contract":
        return self.chain.at(address)


__all__ = [
    "Contract",
    "ContractStorage",
    "abi_kind",
    "external",
    "lookup_kind",
    "view",
]
