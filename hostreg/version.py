"""hostreg.version — package version.

Resolution order: HOSTREG_VERSION env → installed package metadata → BASE_VERSION.
"""

from __future__ import annotations

import os
from importlib import metadata as importlib_metadata

BASE_VERSION = "0.1.0"


def compute_version() -> str:
    env = os.getenv("HOSTREG_VERSION")
    if env:
        return env.strip()
    try:
        return importlib_metadata.version("hostreg")
    except importlib_metadata.PackageNotFoundError:
        return BASE_VERSION


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "compute_version"]
