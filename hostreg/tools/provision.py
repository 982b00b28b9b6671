"""
provision.py
============

Development deployment of the registry.

Mirrors the development migration:

    StringStorage  owner = dev #0   (standalone store)
    Account        owner = dev #1   (creates its own data/registered/removed stores)
    Host           owner = dev #2, fee = 100 (creates its registered/removed stores)

All contracts are deployed from dev #0. The result is a `Deployment` record
that serializes to JSON for the CLI state file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from hostreg.contracts import Account, Host, StringStorage
from hostreg.logging import bind, get_logger, trace_scope
from hostreg.runtime.chain import Chain
from hostreg.runtime.context import to_hex

log = get_logger("hostreg.provision")


@dataclass(frozen=True)
class Deployment:
    string_storage: bytes
    account: bytes
    host: bytes
    deployer: bytes
    account_owner: bytes
    host_owner: bytes
    fee: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "string_storage": to_hex(self.string_storage),
            "account": to_hex(self.account),
            "host": to_hex(self.host),
            "deployer": to_hex(self.deployer),
            "account_owner": to_hex(self.account_owner),
            "host_owner": to_hex(self.host_owner),
            "fee": self.fee,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Deployment":
        def b(k: str) -> bytes:
            return bytes.fromhex(str(data[k])[2:])

        return cls(
            string_storage=b("string_storage"),
            account=b("account"),
            host=b("host"),
            deployer=b("deployer"),
            account_owner=b("account_owner"),
            host_owner=b("host_owner"),
            fee=int(data["fee"]),
        )


def provision_development(chain: Chain, accounts: Sequence[bytes], *, fee: Optional[int] = None) -> Deployment:
    """Deploy the development set on `chain` using dev `accounts` (needs at least 3)."""
    if len(accounts) < 3:
        raise ValueError("development provisioning needs at least 3 accounts")
    deployer, account_owner, host_owner = accounts[0], accounts[1], accounts[2]
    fee = chain.config.default_fee if fee is None else int(fee)

    with trace_scope():
        bind(component="provision")
        log.info("provisioning development deployment", extra={"fee": fee})
        string_storage = chain.deploy(StringStorage, deployer, sender=deployer)
        account = chain.deploy(Account, account_owner, sender=deployer)
        host = chain.deploy(Host, host_owner, fee, sender=deployer)

    return Deployment(
        string_storage=string_storage,
        account=account,
        host=host,
        deployer=deployer,
        account_owner=account_owner,
        host_owner=host_owner,
        fee=fee,
    )


def deployment_summary(chain: Chain, dep: Deployment) -> Dict[str, Any]:
    """Addresses of every contract in the deployment, including the stores entities created."""
    account = chain.at(dep.account, kind="Account")
    host = chain.at(dep.host, kind="Host")
    out: Dict[str, Any] = dep.to_dict()
    out["stores"] = {
        "account.data": to_hex(account.data()),
        "account.registered": to_hex(account.registered()),
        "account.removed": to_hex(account.removed()),
        "host.registered": to_hex(host.registered()),
        "host.removed": to_hex(host.removed()),
    }
    return out


__all__: List[str] = ["Deployment", "deployment_summary", "provision_development"]
