"""
Link status between an Account and a Host, as seen from both sides.

Removal never cascades, so after a unilateral `host_remove` or
`account_remove` the pair is "half-linked" until the other owner removes too.
"""

from __future__ import annotations

from typing import Any

LINKED = "linked"
ACCOUNT_ONLY = "account-only"  # account lists the host, host no longer lists the account
HOST_ONLY = "host-only"  # host lists the account, account no longer lists the host
UNLINKED = "unlinked"


def link_status(chain: Any, account: bytes, host: bytes) -> str:
    a = chain.at(account, kind="Account")
    h = chain.at(host, kind="Host")
    on_account = a.is_linked(h.address)
    on_host = h.is_linked(a.address)
    if on_account and on_host:
        return LINKED
    if on_account:
        return ACCOUNT_ONLY
    if on_host:
        return HOST_ONLY
    return UNLINKED


def is_half_linked(chain: Any, account: bytes, host: bytes) -> bool:
    return link_status(chain, account, host) in (ACCOUNT_ONLY, HOST_ONLY)


__all__ = ["ACCOUNT_ONLY", "HOST_ONLY", "LINKED", "UNLINKED", "is_half_linked", "link_status"]
