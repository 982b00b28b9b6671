"""
Tooling helpers shared by the provisioner and the CLI:
- Canonical JSON encode for deterministic state files
- Atomic writes (tmp → fsync → rename)
- State file load/save (chain state + deployment record)
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

__all__ = [
    "atomic_write_text",
    "canonical_json_str",
    "load_state_file",
    "save_state_file",
]

STATE_FILE_VERSION = 1


def canonical_json_str(obj: Any, *, indent: int | None = None) -> str:
    """Stable JSON: sorted keys, no NaN; compact unless `indent` is given."""
    return json.dumps(
        obj,
        ensure_ascii=False,
        sort_keys=True,
        indent=indent,
        separators=(",", ":") if indent is None else (",", ": "),
        allow_nan=False,
    )


def atomic_write_text(path: Union[str, "os.PathLike[str]"], text: str) -> Path:
    """Write text atomically: path.tmp → fsync → rename."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=str(target.parent), delete=False) as tf:
        tf.write(text.encode("utf-8"))
        tf.flush()
        os.fsync(tf.fileno())
        tmp_name = tf.name
    os.replace(tmp_name, target)
    return target


def save_state_file(path: Union[str, "os.PathLike[str]"], payload: Dict[str, Any]) -> Path:
    body = dict(payload)
    body["version"] = STATE_FILE_VERSION
    return atomic_write_text(path, canonical_json_str(body, indent=2) + "\n")


def load_state_file(path: Union[str, "os.PathLike[str]"]) -> Dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or data.get("version") != STATE_FILE_VERSION:
        raise ValueError(f"{path}: not a hostreg state file (version {STATE_FILE_VERSION})")
    return data
