"""
hostreg.state — in-memory chain state.

- `wallets`    nonce/balance/code_hash records
- `storage`    base per-address key/value store
- `journal`    nested copy-on-write checkpoints over both
- `snapshots`  snapshot ids and diffs over the journal
- `balances`   safe credit/debit/transfer helpers
- `events`     validated, rollback-aware event log
"""

from __future__ import annotations

from .balances import credit, debit, safe_transfer
from .events import Event, EventError, EventLog
from .journal import Journal
from .snapshots import SnapshotId, StateDiff, diff_since
from .storage import StorageView
from .wallets import EMPTY_CODE_HASH, Wallet, compute_code_hash

__all__ = [
    "EMPTY_CODE_HASH",
    "Event",
    "EventError",
    "EventLog",
    "Journal",
    "SnapshotId",
    "StateDiff",
    "StorageView",
    "Wallet",
    "compute_code_hash",
    "credit",
    "debit",
    "diff_since",
    "safe_transfer",
]
