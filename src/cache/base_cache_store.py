# src/cache/base_cache_store.py — v2
"""Abstract fingerprint cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from introfp.core.models import Fingerprint, QueuedItem


class BaseFingerprintStore(ABC):
    """Unified interface for fingerprint cache backends."""

    @abstractmethod
    async def try_load(self, item: QueuedItem) -> Fingerprint | None:
        """Return the cached fingerprint for an item, or None on a miss."""

    @abstractmethod
    async def store(self, item: QueuedItem, fingerprint: Fingerprint) -> None:
        """Persist a fingerprint for an item."""

    @abstractmethod
    def cache_path(self, item: QueuedItem) -> Path:
        """Location of the item's cache entry."""
