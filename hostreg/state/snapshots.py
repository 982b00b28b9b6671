"""
hostreg.state.snapshots — snapshot ids & diffs over the Journal.

Snapshots are *markers*, not copies: a snapshot id is the journal depth right
after opening a dedicated checkpoint for it. Reverting a snapshot pops that
checkpoint and everything above it, so later snapshots are invalidated too.

- `take(journal)` opens the checkpoint and returns its id
- `revert_to(journal, sid)` discards every change made since `take`
- `commit_to(journal, sid)` keeps the changes and drops the marker
- `diff_since(journal, sid)` aggregates staged changes since the marker into
  a canonical `StateDiff` (wallet upserts and storage writes, last-wins)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from .journal import Journal
from .wallets import Wallet

SnapshotId = int  # journal depth marker (>= 2; depth 1 is the root layer)


@dataclass
class StateDiff:
    """
    A canonical, mergeable state diff.

    - wallets_upsert: full Wallet records that overwrite the target.
    - storage_writes: per-address dict of key -> Optional[value]
        * bytes to set
        * None to delete the key
    """
    wallets_upsert: Dict[bytes, Wallet] = field(default_factory=dict)
    storage_writes: Dict[bytes, Dict[bytes, Optional[bytes]]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.wallets_upsert or any(self.storage_writes.values()))

    def items_count(self) -> int:
        return len(self.wallets_upsert) + sum(len(m) for m in self.storage_writes.values())

    def to_dict(self) -> Dict[str, object]:
        return {
            "wallets": {"0x" + a.hex(): w.to_dict() for a, w in sorted(self.wallets_upsert.items())},
            "storage": {
                "0x" + a.hex(): {k.hex(): (None if v is None else v.hex()) for k, v in sorted(m.items())}
                for a, m in sorted(self.storage_writes.items())
            },
        }


def take(journal: Journal) -> SnapshotId:
    """Open a checkpoint dedicated to a snapshot and return its id."""
    return journal.begin()


def _check(journal: Journal, sid: SnapshotId) -> None:
    depth = journal.depth()
    if sid < 2 or sid > depth:
        raise ValueError(f"invalid snapshot id {sid}; current depth={depth}")


def revert_to(journal: Journal, sid: SnapshotId) -> None:
    """Discard everything staged since snapshot `sid` (and the snapshot itself)."""
    _check(journal, sid)
    journal.revert_to(sid - 1)


def commit_to(journal: Journal, sid: SnapshotId) -> None:
    """Keep everything staged since snapshot `sid`, dropping the marker."""
    _check(journal, sid)
    journal.commit_to(sid - 1)


def diff_since(journal: Journal, sid: SnapshotId) -> StateDiff:
    """
    Aggregate all overlays at positions [sid-1, depth) into a StateDiff.

    Raises
    ------
    ValueError
        If `sid` does not name an open snapshot.
    """
    _check(journal, sid)
    out = StateDiff()
    for layer in journal._layers[sid - 1:]:  # same-package access to overlays
        for addr, w in layer.wallets.items():
            out.wallets_upsert[addr] = w.copy()
        for addr, writes in layer.storage.items():
            out.storage_writes.setdefault(addr, {}).update(writes)
    return out


__all__ = [
    "SnapshotId",
    "StateDiff",
    "commit_to",
    "diff_since",
    "revert_to",
    "take",
]
