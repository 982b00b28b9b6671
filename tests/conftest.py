"""
Shared pytest fixtures:
- Deterministic dev accounts (#0 deployer, #1 Account owner, #2 Host owner, #9 bystander)
- A funded chain with the development deployment, shared per module
- `net`: per-test snapshot/revert around that deployment
- `make_config`: HostregConfig variants for policy tests
"""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Callable, List

import pytest

from hostreg.config import HostregConfig, load_config
from hostreg.contracts import Account, AddressStorage, Host, StringStorage
from hostreg.runtime.chain import Chain
from hostreg.tools.fixtures import dev_accounts, fund_accounts
from hostreg.tools.provision import Deployment, provision_development

os.environ.setdefault("PYTHONHASHSEED", "0")

HOST_FEE = 100


@dataclass
class Devnet:
    chain: Chain
    accounts: List[bytes]
    deployment: Deployment

    # Dev account roles
    @property
    def deployer(self) -> bytes:
        return self.accounts[0]

    @property
    def account_owner(self) -> bytes:
        return self.accounts[1]

    @property
    def host_owner(self) -> bytes:
        return self.accounts[2]

    @property
    def stranger(self) -> bytes:
        return self.accounts[9]

    # Contract handles
    @property
    def account(self) -> Account:
        return self.chain.at(self.deployment.account, kind="Account")

    @property
    def host(self) -> Host:
        return self.chain.at(self.deployment.host, kind="Host")

    def store(self, address: bytes) -> Any:
        return self.chain.at(address)

    def account_registered(self) -> AddressStorage:
        return self.store(self.account.registered())

    def account_removed(self) -> AddressStorage:
        return self.store(self.account.removed())

    def account_data(self) -> StringStorage:
        return self.store(self.account.data())

    def host_registered(self) -> AddressStorage:
        return self.store(self.host.registered())

    def host_removed(self) -> AddressStorage:
        return self.store(self.host.removed())

    def register(self, value: int = HOST_FEE) -> None:
        self.chain.call(
            self.deployment.account, "host_register", self.deployment.host, sender=self.account_owner, value=value
        )


def build_devnet(config: HostregConfig | None = None, *, fee: int = HOST_FEE) -> Devnet:
    cfg = config or load_config()
    chain = Chain(cfg)
    accounts = dev_accounts(10, length=cfg.address_len)
    fund_accounts(chain, accounts, 10**18)
    dep = provision_development(chain, accounts, fee=fee)
    return Devnet(chain=chain, accounts=accounts, deployment=dep)


@pytest.fixture(scope="module")
def devnet() -> Devnet:
    return build_devnet()


@pytest.fixture
def net(devnet: Devnet):
    """The module's devnet, rolled back after each test."""
    snapshot_id = devnet.chain.snapshot()
    yield devnet
    devnet.chain.revert(snapshot_id)


@pytest.fixture(scope="session")
def devnet_factory() -> Callable[..., Devnet]:
    return build_devnet


@pytest.fixture(scope="session")
def make_config() -> Callable[..., HostregConfig]:
    def _make(**overrides: Any) -> HostregConfig:
        return dataclasses.replace(load_config(), **overrides)

    return _make


@pytest.fixture
def chain() -> Chain:
    return Chain()


@pytest.fixture
def accounts(chain: Chain) -> List[bytes]:
    accs = dev_accounts(10, length=chain.config.address_len)
    fund_accounts(chain, accs, 10**18)
    return accs
