"""hostreg.cli — typer application (`hostreg` console script)."""

from __future__ import annotations

from .main import app

__all__ = ["app"]
