"""
Host — an owned entity that accounts register against for a fee.

On creation a Host deploys and owns two AddressStorage stores, "registered"
and "removed", over account addresses, and records its fee.

Authorization is asymmetric:

- `account_register` is for the account side only. It accepts the Account
  contract itself (forwarding its owner's `host_register`) or that Account's
  owner. The Host's own owner cannot register accounts.
- `account_remove` is for the host owner only and edits the host side only.

Events:
    AccountRegistered {"account": bytes, "fee": int}
    AccountRemoved    {"account": bytes}
    FeeChanged        {"previous": int, "fee": int}
"""

from __future__ import annotations

from typing import Any

from hostreg.errors import InsufficientFee, NotAuthorized, NotRegistered
from hostreg.runtime.abi import require, require_address
from hostreg.runtime.context import Msg
from hostreg.runtime.contract import external, view
from hostreg.state.wallets import U256_MAX
from hostreg.stdlib.access import Ownable, require_owner

from .address_storage import AddressStorage

FEE_KEY = b"host:fee"
REGISTERED_KEY = b"host:registered"
REMOVED_KEY = b"host:removed"


class Host(Ownable):
    kind = "Host"

    def init(self, msg: Msg, owner: bytes, fee: int) -> None:
        self._init_owner(owner)
        self._set_fee(fee, "Host.init")
        self.storage.set(REGISTERED_KEY, self._create(AddressStorage, self.address))
        self.storage.set(REMOVED_KEY, self._create(AddressStorage, self.address))

    def _set_fee(self, fee: Any, where: str) -> None:
        ok = isinstance(fee, int) and not isinstance(fee, bool) and 0 <= fee <= U256_MAX
        require(ok, f"{where}: fee must be a non-negative integer")
        self.storage.set(FEE_KEY, fee.to_bytes(32, "big"))

    # ---- views -----------------------------------------------------------------

    @view
    def fee(self) -> int:
        return int.from_bytes(self.storage.get(FEE_KEY), "big")

    @view
    def registered(self) -> bytes:
        return self.storage.get(REGISTERED_KEY)

    @view
    def removed(self) -> bytes:
        return self.storage.get(REMOVED_KEY)

    @view
    def is_linked(self, account: bytes) -> bool:
        return self._at(self.registered()).has(account)

    # ---- registration ----------------------------------------------------------

    def _authorized(self, sender: bytes, account: bytes) -> bool:
        if self._kind_at(account) != "Account":
            return False
        return sender == account or self._at(account).owner() == sender

    @external(payable=True)
    def account_register(self, msg: Msg, account: bytes) -> None:
        account = require_address(account, "Host.accountRegister", length=self.config.address_len)
        require(
            self._authorized(msg.sender, account),
            "Host.accountRegister: message sender not authorized",
            NotAuthorized,
        )
        require(msg.value >= self.fee(), "Host.accountRegister: insufficient fee", InsufficientFee)
        self._accept_payment(msg)

        self._call(self.registered(), "add", account)
        removed = self.removed()
        if self.config.clear_removed_on_add and self._at(removed).has(account):
            self._call(removed, "remove", account)
        if msg.sender != account:
            # Owner-driven registration: have the account record its side too.
            self._call(account, "host_linked", self.address)
        self._emit(b"AccountRegistered", {"account": account, "fee": msg.value})

    @external()
    def account_remove(self, msg: Msg, account: bytes) -> None:
        require_owner(self.storage, msg.sender, "Host.accountRemove: message sender not authorized")
        account = require_address(account, "Host.accountRemove", length=self.config.address_len)
        registered = self.registered()
        if not self._at(registered).has(account):
            raise NotRegistered("Host.accountRemove: account not registered")
        self._call(registered, "remove", account)
        self._call(self.removed(), "add", account)
        self._emit(b"AccountRemoved", {"account": account})

    @external()
    def change_fee(self, msg: Msg, fee: int) -> None:
        self._only_owner(msg, "changeFee")
        previous = self.fee()
        self._set_fee(fee, "Host.changeFee")
        self._emit(b"FeeChanged", {"previous": previous, "fee": fee})
