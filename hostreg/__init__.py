"""
hostreg — an access-controlled Account/Host registry.

Two kinds of owned entities, Accounts and Hosts, link to each other through a
fee-gated, mutual registration protocol. Both are built from two reusable
storage contracts: an address set with removal history (AddressStorage) and a
string key/value map (StringStorage). Everything runs on an in-process,
journaled chain that authenticates callers, moves payments and makes every
call atomic.

    from hostreg import Chain, dev_accounts, fund_accounts, provision_development

    chain = Chain()
    accounts = dev_accounts(10)
    fund_accounts(chain, accounts)
    dep = provision_development(chain, accounts)
    chain.call(dep.account, "host_register", dep.host, sender=accounts[1], value=dep.fee)

Heavy submodules are imported lazily.
"""

from __future__ import annotations

import importlib
from typing import Any

from .version import __version__

_LAZY = {
    "Chain": ("hostreg.runtime.chain", "Chain"),
    "Msg": ("hostreg.runtime.context", "Msg"),
    "Account": ("hostreg.contracts.account", "Account"),
    "Host": ("hostreg.contracts.host", "Host"),
    "AddressStorage": ("hostreg.contracts.address_storage", "AddressStorage"),
    "StringStorage": ("hostreg.contracts.string_storage", "StringStorage"),
    "link_status": ("hostreg.contracts.links", "link_status"),
    "provision_development": ("hostreg.tools.provision", "provision_development"),
    "Deployment": ("hostreg.tools.provision", "Deployment"),
    "dev_accounts": ("hostreg.tools.fixtures", "dev_accounts"),
    "fund_accounts": ("hostreg.tools.fixtures", "fund_accounts"),
    "load_config": ("hostreg.config", "load_config"),
}


def __getattr__(name: str) -> Any:
    try:
        mod_name, attr = _LAZY[name]
    except KeyError:
        raise AttributeError(f"module 'hostreg' has no attribute {name!r}") from None
    return getattr(importlib.import_module(mod_name), attr)


def version() -> str:
    """Return the hostreg version string."""
    return __version__


__all__ = ["__version__", "version", *sorted(_LAZY)]
