# src/service/fingerprint_service.py — v1
"""Fingerprint acquisition with a disk-backed cache in front of fpcalc.

Usage:
    async with FingerprintService.from_settings() as service:
        fingerprint = await service.fingerprint(item)

Flow for one item:
  1. Cache lookup (a hit returns without running fpcalc)
  2. fpcalc -raw -length <seconds> <path>
  3. Strict parse of the output
  4. Cache write, scheduled in the background
  5. Return the fingerprint

Concurrent calls for the same item are not deduplicated; both run fpcalc
and the last cache write wins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING

from introfp.cache.background import BackgroundPersistence
from introfp.fpcalc.parser import parse_output
from introfp.fpcalc.runner import DEFAULT_TIMEOUT_MS, PROBE_TIMEOUT_MS, FpcalcRunner
from introfp.logging.context import clear_context, set_item_context, set_operation

if TYPE_CHECKING:
    from introfp.cache.base_cache_store import BaseFingerprintStore
    from introfp.config.settings import Settings
    from introfp.core.models import Fingerprint, QueuedItem

logger = logging.getLogger(__name__)

VERSION_PREFIX = "fpcalc version"


class FingerprintService:
    """Orchestrates cache lookup, fpcalc invocation, parsing and caching."""

    def __init__(
        self,
        store: BaseFingerprintStore,
        runner: FpcalcRunner | None = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        probe_timeout_ms: int = PROBE_TIMEOUT_MS,
        persistence: BackgroundPersistence | None = None,
    ) -> None:
        self._store = store
        self._runner = runner or FpcalcRunner()
        self._timeout_ms = timeout_ms
        self._probe_timeout_ms = probe_timeout_ms
        self._persistence = persistence or BackgroundPersistence()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> FingerprintService:
        """Build a service wired to a file cache.

        Without explicit settings the cache flag and directory are re-read
        from the environment on every operation. With explicit settings they
        are fixed to that instance's values.
        """
        from introfp.cache.file_store import FileFingerprintStore
        from introfp.config.settings import load_settings, settings_cache_config

        if settings is None:
            provider = settings_cache_config
            settings = load_settings()
        else:
            provider = settings.cache_config

        return cls(
            FileFingerprintStore(config_provider=provider),
            FpcalcRunner(settings.fpcalc_binary),
            timeout_ms=settings.fpcalc_timeout_ms,
            probe_timeout_ms=settings.fpcalc_probe_timeout_ms,
        )

    @property
    def store(self) -> BaseFingerprintStore:
        return self._store

    @property
    def persistence(self) -> BackgroundPersistence:
        return self._persistence

    async def fingerprint(self, item: QueuedItem) -> Fingerprint:
        """Return the fingerprint of an item, from cache when possible.

        Raises:
            MalformedOutputError: If fpcalc output is not in the expected form.
            NumberFormatError: If a fingerprint point is not a uint32.
            ToolInvocationError: If fpcalc could not be started.
            CacheCorruptionError: If the cached entry cannot be parsed.
        """
        set_item_context(item.cache_key, str(item.path), "fingerprint")
        try:
            cached = await self._store.try_load(item)
            if cached is not None:
                logger.debug("Fingerprint cache hit on %s", item.path)
                return cached

            logger.debug(
                "Fingerprinting %s seconds from %s",
                item.duration_argument(), item.path,
            )
            raw = await self._runner.run(self.build_arguments(item), self._timeout_ms)
            fingerprint = parse_output(raw, item.path)

            self._persistence.submit(
                self._store.store(item, fingerprint),
                description=f"cache fingerprint for {item.path}",
            )
            return fingerprint
        finally:
            clear_context()

    async def check_tool_installed(self) -> bool:
        """Return True if fpcalc answers `-version` as expected. Never raises."""
        set_operation("probe")
        try:
            version = (
                await self._runner.run(["-version"], self._probe_timeout_ms)
            ).rstrip()
        except Exception as e:
            logger.debug("fpcalc probe failed: %s", e)
            return False
        finally:
            set_operation(None)

        logger.info("fpcalc -version: %s", version)
        return version.lower().startswith(VERSION_PREFIX)

    @staticmethod
    def build_arguments(item: QueuedItem) -> list[str]:
        """argv for fingerprinting an item (the binary itself excluded)."""
        return ["-raw", "-length", item.duration_argument(), _path_argument(item.path)]

    async def drain(self) -> None:
        """Wait for background cache writes to finish."""
        await self._persistence.drain()

    async def aclose(self) -> None:
        await self.drain()

    async def __aenter__(self) -> FingerprintService:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _path_argument(path: Path) -> str:
    """Render a media path so fpcalc cannot read it as an option."""
    text = str(path)
    if text.startswith("-"):
        return f".{os.sep}{text}"
    return text
