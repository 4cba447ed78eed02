# tests/conftest.py — v1
"""Shared test fixtures: sample items and toggleable cache configs.

The fpcalc binary is never required; subprocess tests use the running
Python interpreter as a stand-in tool.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path

import pytest

from introfp.cache.models import CacheConfig
from introfp.core.models import QueuedItem


@dataclass
class ToggleableConfig:
    """CacheConfigProvider whose flag and root can change between calls."""

    root: Path
    enabled: bool = True
    calls: int = 0

    def __call__(self) -> CacheConfig:
        self.calls += 1
        return CacheConfig(enabled=self.enabled, root=self.root)


@pytest.fixture
def sample_item(tmp_path) -> QueuedItem:
    """Item with a fixed identity and a media file that exists."""
    media = tmp_path / "media" / "S01E01.mkv"
    media.parent.mkdir(parents=True)
    media.write_bytes(b"")
    return QueuedItem(
        item_id=uuid.UUID("0f8fad5b-d9cb-469f-a165-70867728950e"),
        path=media,
        fingerprint_duration=120,
    )


@pytest.fixture
def cache_root(tmp_path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cache_config(cache_root) -> ToggleableConfig:
    return ToggleableConfig(root=cache_root)
