"""
hostreg.runtime.chain — a deterministic, in-process chain for registry contracts.

The chain owns all state (wallets, storage, events) and is the only way to run
contract code. It provides the three guarantees every contract relies on:

- authenticated callers: the `sender` of a call is supplied by the chain and
  handed to the contract inside a `Msg`; contract-to-contract calls carry the
  calling contract's address as sender
- attached payments: `value` moves from sender to callee once the method
  accepts it (`Contract._accept_payment`, after its guards) or, at the
  latest, when the method returns
- atomicity: each call (and each nested call) runs in its own journal
  checkpoint; any exception reverts storage, balances and events touched by
  that call, then propagates unchanged

Typical usage
-------------
    chain = Chain()
    chain.fund(alice, 10**18)
    acct = chain.deploy(Account, alice, sender=alice)
    chain.call(acct, "host_register", host, sender=alice, value=100)
    chain.at(acct).registered()

Snapshots (`snapshot`/`revert`) wrap the journal's depth markers and also
rewind the event log. Calls are serialized by a re-entrant lock.
"""

from __future__ import annotations

import hashlib
import threading
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Type

from hostreg.config import HostregConfig, load_config
from hostreg.errors import ExecError, InvalidAccess, Revert, UnknownContract
from hostreg.logging import get_logger, trace_scope
from hostreg.state import snapshots
from hostreg.state.balances import credit, safe_transfer
from hostreg.state.events import EventLog
from hostreg.state.journal import Journal
from hostreg.state.storage import StorageView
from hostreg.state.wallets import Wallet

from .context import Msg, to_bytes, to_hex
from .contract import Contract, abi_kind, lookup_kind

log = get_logger("hostreg.chain")

MAX_CALL_DEPTH = 64


class Chain:
    def __init__(self, config: Optional[HostregConfig] = None) -> None:
        self.config = config or load_config()
        self._wallets: Dict[bytes, Wallet] = {}
        self._storage = StorageView()
        self.journal = Journal(self._wallets, self._storage)
        self.events = EventLog()
        self._lock = threading.RLock()
        self._depth = 0
        self._payments: Dict[int, list] = {}  # frame depth -> [sender, to, value, settled]
        self._snapshots: Dict[int, int] = {}  # snapshot id -> event mark

    # ------------------------------------------------------------------ #
    # Balances (BalanceAccess protocol)
    # ------------------------------------------------------------------ #

    def get_balance(self, address: bytes) -> int:
        w = self.journal.get_wallet(address)
        return 0 if w is None else w.balance

    def set_balance(self, address: bytes, value: int) -> None:
        w = self.journal.ensure_wallet_for_write(address)
        delta = value - w.balance
        if delta >= 0:
            w.credit(delta)
        else:
            w.debit(-delta)

    balance_of = get_balance

    def nonce_of(self, address: bytes) -> int:
        w = self.journal.get_wallet(address)
        return 0 if w is None else w.nonce

    def fund(self, address: bytes | str, amount: int) -> int:
        """Mint `amount` to `address` outside of any call. Returns the new balance."""
        with self._lock:
            return credit(self, to_bytes(address), int(amount))

    # ------------------------------------------------------------------ #
    # Contract lookup
    # ------------------------------------------------------------------ #

    def contract_address(self, deployer: bytes, nonce: int) -> bytes:
        """CREATE-style address: H("hostreg/create" | deployer | nonce)[-address_len:]."""
        h = hashlib.sha3_256(b"hostreg/create" + bytes(deployer) + int(nonce).to_bytes(32, "big")).digest()
        return h[-self.config.address_len:]

    def kind_of(self, address: bytes | str) -> Optional[str]:
        """Contract kind deployed at `address`, or None for EOAs/empty addresses."""
        w = self.journal.get_wallet(to_bytes(address))
        if w is None or not w.is_contract:
            return None
        cls = lookup_kind(w.code_hash)
        return None if cls is None else cls.kind

    def at(self, address: bytes | str, kind: Optional[str] = None) -> Any:
        """
        Return a contract handle for `address`.

        Raises UnknownContract if nothing is deployed there, or if `kind` is
        given and the deployed contract is of another kind.
        """
        addr = to_bytes(address)
        w = self.journal.get_wallet(addr)
        cls = lookup_kind(w.code_hash) if w is not None and w.is_contract else None
        if cls is None:
            raise UnknownContract(address=to_hex(addr))
        if kind is not None and cls.kind != kind:
            raise UnknownContract(f"expected {kind}, found {cls.kind}", address=to_hex(addr))
        return cls(self, addr)

    def contracts(self) -> Dict[bytes, str]:
        """Every deployed contract address → kind, sorted by address."""
        out: Dict[bytes, str] = {}
        for addr in sorted(self.journal.wallet_addresses()):
            kind = self.kind_of(addr)
            if kind is not None:
                out[addr] = kind
        return out

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    def deploy(self, cls: Type[Contract], *args: Any, sender: bytes | str, value: int = 0) -> bytes:
        """Deploy `cls` from `sender`, running its `init(msg, *args)`. Returns the address."""
        sender_b = to_bytes(sender)
        with self._lock, trace_scope(component="chain", sender=to_hex(sender_b), method=f"{getattr(cls, 'kind', '?')}.init"):
            try:
                address = self._deploy(sender_b, cls, args, value)
            except Revert as e:
                log.info("deploy reverted", extra={"reason": e.reason, "code": e.code})
                raise
            log.info("deployed", extra={"kind": cls.kind, "address": to_hex(address)})
            return address

    def call(self, address: bytes | str, method: str, *args: Any, sender: bytes | str, value: int = 0) -> Any:
        """Run `method` as a committing transaction and return its result."""
        sender_b, to = to_bytes(sender), to_bytes(address)
        with self._lock, trace_scope(component="chain", sender=to_hex(sender_b), contract=to_hex(to), method=method):
            try:
                result = self._execute(sender_b, to, method, args, value)
            except Revert as e:
                log.info("call reverted", extra={"reason": e.reason, "code": e.code})
                raise
            except ExecError as e:
                log.warning("call failed", extra={"code": e.code, "error": e.message})
                raise
            log.debug("call committed", extra={"value": value})
            return result

    def simulate(self, address: bytes | str, method: str, *args: Any, sender: bytes | str, value: int = 0) -> Any:
        """Run `method` exactly like `call`, then discard every effect. Returns its result."""
        sender_b, to = to_bytes(sender), to_bytes(address)
        with self._lock, trace_scope(component="chain", sender=to_hex(sender_b), contract=to_hex(to), method=method):
            marker = self.journal.begin()
            ev_mark = self.events.mark()
            try:
                return self._execute(sender_b, to, method, args, value)
            finally:
                self.journal.revert_to(marker - 1)
                self.events.truncate(ev_mark)

    def _deploy(self, sender: bytes, cls: Type[Contract], args: Sequence[Any], value: int) -> bytes:
        if not (isinstance(cls, type) and issubclass(cls, Contract) and cls.kind):
            raise TypeError(f"not a deployable contract class: {cls!r}")
        with self._lock:
            marker = self.journal.begin()
            ev_mark = self.events.mark()
            self._depth += 1
            try:
                if self._depth > MAX_CALL_DEPTH:
                    raise InvalidAccess("call depth exceeded", method=f"{cls.kind}.init")
                deployer = self.journal.ensure_wallet_for_write(sender)
                address = self.contract_address(sender, deployer.nonce)
                deployer.increment_nonce()
                self.journal.create_wallet(address, code_hash=cls.code_hash())
                safe_transfer(self, sender, address, value)
                instance = cls(self, address)
                init = getattr(instance, "init", None)
                if init is not None:
                    init(Msg(sender=sender, value=value, to=address, depth=self._depth - 1), *args)
                self.journal.commit_to(marker - 1)
            except BaseException:
                self.journal.revert_to(marker - 1)
                self.events.truncate(ev_mark)
                raise
            finally:
                self._depth -= 1
            log.debug("created", extra={"kind": cls.kind, "address": to_hex(address), "deployer": to_hex(sender)})
            return address

    def _execute(self, sender: bytes, to: bytes, method: str, args: Sequence[Any], value: int) -> Any:
        with self._lock:
            target = self.at(to)
            fn = getattr(type(target), method, None) if not method.startswith("_") else None
            kind = abi_kind(fn)
            if kind is None:
                raise InvalidAccess(f"{target.kind}: method not exported", method=method, address=to_hex(to))
            if value and kind != "payable":
                raise InvalidAccess(f"{target.kind}.{method}: not payable", method=method, address=to_hex(to))

            marker = self.journal.begin()
            ev_mark = self.events.mark()
            self._depth += 1
            try:
                if self._depth > MAX_CALL_DEPTH:
                    raise InvalidAccess("call depth exceeded", method=method, address=to_hex(to))
                bound = getattr(target, method)
                if kind == "view":
                    result = bound(*args)
                else:
                    msg = Msg(sender=sender, value=value, to=to, depth=self._depth - 1)
                    self._payments[self._depth] = [sender, to, value, False]
                    result = bound(msg, *args)
                    self.settle_payment(msg)
                self.journal.commit_to(marker - 1)
            except BaseException:
                self.journal.revert_to(marker - 1)
                self.events.truncate(ev_mark)
                raise
            finally:
                self._payments.pop(self._depth, None)
                self._depth -= 1
            return result

    def settle_payment(self, msg: Msg) -> None:
        """Move the value attached to the running call `msg` to its callee. Idempotent."""
        with self._lock:
            entry = self._payments.get(msg.depth + 1)
            if entry is None or entry[1] != msg.to:
                raise InvalidAccess("no running call to settle", address=to_hex(msg.to))
            sender, to, value, settled = entry
            if not settled:
                entry[3] = True
                safe_transfer(self, sender, to, value)

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def snapshot(self) -> int:
        """Take a snapshot; returns its id."""
        with self._lock:
            sid = snapshots.take(self.journal)
            self._snapshots[sid] = self.events.mark()
            return sid

    def revert(self, snapshot_id: int) -> None:
        """Restore state and events to `snapshot_id`; it and later snapshots are consumed."""
        with self._lock:
            if snapshot_id not in self._snapshots:
                raise ValueError(f"unknown snapshot id {snapshot_id}")
            snapshots.revert_to(self.journal, snapshot_id)
            self.events.truncate(self._snapshots[snapshot_id])
            for sid in [s for s in self._snapshots if s >= snapshot_id]:
                del self._snapshots[sid]

    def diff_since(self, snapshot_id: int) -> snapshots.StateDiff:
        with self._lock:
            return snapshots.diff_since(self.journal, snapshot_id)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def export_state(self) -> Dict[str, Any]:
        """Visible state (including open snapshots) as a JSON-safe dict."""
        with self._lock:
            wallets = {
                addr.hex(): self.journal.get_wallet(addr).to_dict()  # type: ignore[union-attr]
                for addr in sorted(self.journal.wallet_addresses())
            }
            storage: Dict[str, Dict[str, str]] = {}
            for addr in sorted(self.journal.storage_addresses()):
                items = {k.hex(): v.hex() for k, v in self.journal.storage_items(addr)}
                if items:
                    storage[addr.hex()] = items
            return {
                "address_len": self.config.address_len,
                "wallets": wallets,
                "storage": storage,
                "events": self.events.export(),
            }

    @classmethod
    def from_state(cls, data: Mapping[str, Any], config: Optional[HostregConfig] = None) -> "Chain":
        chain = cls(config)
        alen = int(data.get("address_len", chain.config.address_len))
        if alen != chain.config.address_len:
            raise ValueError(f"state uses {alen}-byte addresses, config expects {chain.config.address_len}")
        for a_hex, w in dict(data.get("wallets") or {}).items():
            chain._wallets[bytes.fromhex(a_hex)] = Wallet.from_dict(w)
        for a_hex, items in dict(data.get("storage") or {}).items():
            chain._storage.import_account_hex(bytes.fromhex(a_hex), items)
        chain.events.load(data.get("events") or [])
        return chain


def iter_events(chain: Chain, since: int = 0) -> Iterable[Dict[str, Any]]:
    """Events emitted after mark `since`, as JSON-safe dicts."""
    return [e.to_dict() for e in chain.events.since(since)]


__all__ = ["Chain", "MAX_CALL_DEPTH", "iter_events"]
