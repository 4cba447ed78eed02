# src/cache/models.py — v2
"""Cache configuration model and the provider contract.

The provider is called on every cache operation so that enabling or
disabling the cache takes effect without a restart.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class CacheConfig(BaseModel):
    """Snapshot of the cache flag and directory."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    root: Path = Path("~/.introfp/cache")


CacheConfigProvider = Callable[[], CacheConfig]
