"""
hostreg.contracts — the registry contracts.

Importing this package registers every contract kind with the runtime, which
is how `Chain.at` resolves a deployed address back to its class.
"""

from __future__ import annotations

from .account import Account
from .address_storage import AddressStorage
from .host import Host
from .links import link_status
from .string_storage import StringStorage

__all__ = ["Account", "AddressStorage", "Host", "StringStorage", "link_status"]
