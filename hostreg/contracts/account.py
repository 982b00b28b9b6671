"""
Account — an owned entity that links itself to Hosts.

On creation an Account deploys and owns three stores:

    data        StringStorage   free-form metadata ("name" -> "Jain", ...)
    registered  AddressStorage  hosts this account is linked to
    removed     AddressStorage  hosts this account has unlinked

Registration is driven by the account owner and is symmetric: a successful
`host_register` leaves the account in the host's registered set and the host
in the account's. Removal is unilateral; `host_remove` only edits this
account's side, and the host keeps listing the account until the host owner
runs `Host.account_remove`.

Events:
    HostRegistered {"host": bytes, "fee": int}
    HostLinked     {"host": bytes}               (registration driven from the Host side)
    HostRemoved    {"host": bytes}
"""

from __future__ import annotations

from hostreg.errors import InsufficientFee, NotAuthorized, NotRegistered
from hostreg.runtime.abi import require, require_address
from hostreg.runtime.context import Msg
from hostreg.runtime.contract import external, view
from hostreg.stdlib.access import Ownable

from .address_storage import AddressStorage
from .string_storage import StringStorage

DATA_KEY = b"account:data"
REGISTERED_KEY = b"account:registered"
REMOVED_KEY = b"account:removed"


class Account(Ownable):
    kind = "Account"

    def init(self, msg: Msg, owner: bytes) -> None:
        self._init_owner(owner)
        self.storage.set(DATA_KEY, self._create(StringStorage, self.address))
        self.storage.set(REGISTERED_KEY, self._create(AddressStorage, self.address))
        self.storage.set(REMOVED_KEY, self._create(AddressStorage, self.address))

    # ---- views -----------------------------------------------------------------

    @view
    def data(self) -> bytes:
        return self.storage.get(DATA_KEY)

    @view
    def registered(self) -> bytes:
        return self.storage.get(REGISTERED_KEY)

    @view
    def removed(self) -> bytes:
        return self.storage.get(REMOVED_KEY)

    @view
    def is_linked(self, host: bytes) -> bool:
        return self._at(self.registered()).has(host)

    # ---- registration ----------------------------------------------------------

    @external(payable=True)
    def host_register(self, msg: Msg, host: bytes) -> None:
        self._only_owner(msg, "hostRegister")
        host = require_address(host, "Account.hostRegister", length=self.config.address_len)
        require(self._kind_at(host) == "Host", "Account.hostRegister: not a host")
        require(msg.value >= self._at(host).fee(), "Account.hostRegister: insufficient fee", InsufficientFee)
        self._accept_payment(msg)

        self._call(host, "account_register", self.address, value=msg.value)
        self._link(host)
        self._emit(b"HostRegistered", {"host": host, "fee": msg.value})

    @external()
    def host_linked(self, msg: Msg, host: bytes) -> None:
        reason = "Account.hostLinked: message sender not a linked host"
        require(msg.sender == host, reason, NotAuthorized)
        require(self._kind_at(host) == "Host" and self._at(host).is_linked(self.address), reason, NotAuthorized)
        self._link(host)
        self._emit(b"HostLinked", {"host": bytes(host)})

    @external()
    def host_remove(self, msg: Msg, host: bytes) -> None:
        self._only_owner(msg, "hostRemove")
        host = require_address(host, "Account.hostRemove", length=self.config.address_len)
        registered = self.registered()
        if not self._at(registered).has(host):
            raise NotRegistered("Account.hostRemove: host not registered")
        self._call(registered, "remove", host)
        self._call(self.removed(), "add", host)
        self._emit(b"HostRemoved", {"host": host})

    def _link(self, host: bytes) -> None:
        self._call(self.registered(), "add", host)
        removed = self.removed()
        if self.config.clear_removed_on_add and self._at(removed).has(host):
            self._call(removed, "remove", host)
