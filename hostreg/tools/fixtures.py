"""
fixtures.py
===========

Deterministic development accounts.

Addresses are derived from a tag with SHA3-256 so that every run (tests, CLI,
provisioning) sees the same `#0 … #N` accounts:

    accounts = dev_accounts(10)
    fund_accounts(chain, accounts)      # each gets config.dev_balance

By convention #0 deploys, #1 owns the Account, #2 owns the Host and #9 is an
unrelated bystander used by negative tests.
"""

from __future__ import annotations

import hashlib
from typing import Iterable, List, Optional

DEV_TAG = "hostreg-dev"


def det_address(tag: str, *, length: int = 20) -> bytes:
    """A stable `length`-byte address derived from `tag`."""
    return hashlib.sha3_256(tag.encode("utf-8")).digest()[:length]


def dev_accounts(n: int, *, length: int = 20, tag: str = DEV_TAG) -> List[bytes]:
    return [det_address(f"{tag}|{i}", length=length) for i in range(n)]


def fund_accounts(chain, accounts: Iterable[bytes], amount: Optional[int] = None) -> None:
    amt = chain.config.dev_balance if amount is None else int(amount)
    for a in accounts:
        chain.fund(a, amt)


def resolve_account(token: str, accounts: List[bytes]) -> bytes:
    """
    Resolve "#N" to dev account N, or a 0x-hex address to bytes.
    """
    token = token.strip()
    if token.startswith("#"):
        idx = int(token[1:])
        if not 0 <= idx < len(accounts):
            raise ValueError(f"no dev account {token} (have {len(accounts)})")
        return accounts[idx]
    h = token[2:] if token.lower().startswith("0x") else token
    return bytes.fromhex(h)


__all__ = ["DEV_TAG", "det_address", "dev_accounts", "fund_accounts", "resolve_account"]
