"""
hostreg.runtime — contract execution.

- `context`   the `Msg` call envelope and hex/bytes helpers
- `abi`       revert/require helpers used by contract code
- `contract`  `Contract` base class and `external`/`view` markers
- `chain`     `Chain`: deploy, call, simulate, snapshots, persistence
"""

from __future__ import annotations

from .abi import require, require_address, revert
from .chain import Chain
from .context import Msg, to_bytes, to_hex
from .contract import Contract, external, view

__all__ = [
    "Chain",
    "Contract",
    "Msg",
    "external",
    "require",
    "require_address",
    "revert",
    "to_bytes",
    "to_hex",
    "view",
]
