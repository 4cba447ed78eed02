# src/cache/file_store.py — v1
"""Text-file fingerprint cache store.

One file per item under the configured root, named after the item's
identity (32 lowercase hex chars). Content is one decimal uint32 per line,
UTF-8, no header and no checksum.

A cache entry that exists while caching is enabled is authoritative: it is
never checked against the source media. A corrupt entry raises
CacheCorruptionError instead of silently falling back to recomputation,
so systemic corruption cannot go unnoticed.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from introfp.cache.base_cache_store import BaseFingerprintStore
from introfp.cache.models import CacheConfig, CacheConfigProvider
from introfp.core.errors import CacheCorruptionError, NumberFormatError
from introfp.core.models import Fingerprint, QueuedItem
from introfp.fpcalc.parser import parse_uint32

logger = logging.getLogger(__name__)


class FileFingerprintStore(BaseFingerprintStore):
    """File-based fingerprint cache driven by a live config provider."""

    def __init__(self, config_provider: CacheConfigProvider) -> None:
        self._config_provider = config_provider

    async def try_load(self, item: QueuedItem) -> Fingerprint | None:
        """Load a cached fingerprint.

        Returns None without touching the disk when caching is disabled.

        Raises:
            CacheCorruptionError: If a line is not UTF-8 or a non-empty line
                is not a uint32.
        """
        config = self._config_provider()
        if not config.enabled:
            return None

        path = self._path_for(config, item)
        if not path.is_file():
            return None

        result: list[int] = []
        raw = path.read_bytes()
        for line_number, raw_line in enumerate(raw.splitlines(), start=1):
            try:
                line = raw_line.decode("utf-8")
            except UnicodeDecodeError as e:
                raise CacheCorruptionError(path, line_number, repr(raw_line)) from e
            if not line.strip():
                continue
            try:
                result.append(parse_uint32(line))
            except NumberFormatError as e:
                raise CacheCorruptionError(path, line_number, line) from e

        return tuple(result)

    async def store(self, item: QueuedItem, fingerprint: Fingerprint) -> None:
        """Write a fingerprint atomically. No-op when caching is disabled.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        config = self._config_provider()
        if not config.enabled:
            return

        path = self._path_for(config, item)
        payload = "".join(f"{number:d}\n" for number in fingerprint)
        await asyncio.to_thread(_atomic_write, path, payload)
        logger.debug("Cached %d fingerprint points at %s", len(fingerprint), path)

    def cache_path(self, item: QueuedItem) -> Path:
        """Location of the item's cache entry under the current root."""
        return self._path_for(self._config_provider(), item)

    @staticmethod
    def _path_for(config: CacheConfig, item: QueuedItem) -> Path:
        return Path(config.root).expanduser() / item.cache_key


def _atomic_write(path: Path, payload: str) -> None:
    """Write to a sibling temp file, then rename over the target."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
