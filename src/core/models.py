# src/core/models.py — v1
"""Core domain models: QueuedItem and the Fingerprint vector type.

A QueuedItem is produced by the caller (the queueing layer) and is never
mutated here. A Fingerprint is an immutable, ordered tuple of unsigned
32-bit integers, one per acoustic feature window.
"""

from __future__ import annotations

import math
import uuid
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

Fingerprint = tuple[int, ...]

UINT32_MAX = 0xFFFFFFFF


class QueuedItem(BaseModel):
    """A media item waiting to be fingerprinted."""

    model_config = ConfigDict(frozen=True)

    item_id: uuid.UUID
    path: Path
    fingerprint_duration: float = Field(gt=0)

    @property
    def cache_key(self) -> str:
        """Stable 32-char lowercase hex token used as the cache filename."""
        return self.item_id.hex

    def duration_argument(self) -> str:
        """Render the duration for the tool command line.

        fpcalc takes whole seconds; fractional durations round up.
        """
        return str(math.ceil(self.fingerprint_duration))
