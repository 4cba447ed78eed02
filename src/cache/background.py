# src/cache/background.py — v1
"""Best-effort background persistence of cache writes.

Writes are scheduled as asyncio tasks that the caller never awaits. Each
task is held until it finishes and its failure is logged, not raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from functools import partial
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundPersistence:
    """Tracks fire-and-forget cache writes."""

    def __init__(self) -> None:
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        """Number of writes not yet finished."""
        return len(self._pending)

    def submit(
        self, coro: Coroutine[Any, Any, Any], *, description: str
    ) -> asyncio.Task[Any]:
        """Schedule a write. Must be called from a running event loop."""
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(partial(self._on_done, description))
        return task

    async def drain(self) -> None:
        """Wait for every outstanding write. Never raises write errors."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_done(self, description: str, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            logger.warning("Background write cancelled: %s", description)
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background write failed: %s: %s", description, exc,
                exc_info=exc,
            )
