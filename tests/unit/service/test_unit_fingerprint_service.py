# tests/unit/service/test_fingerprint_service.py — v1
"""Tests for service/fingerprint_service.py — cache-then-tool orchestration."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from introfp.cache.file_store import FileFingerprintStore
from introfp.config.settings import Settings
from introfp.core.errors import (
    CacheCorruptionError,
    MalformedOutputError,
    NumberFormatError,
    ToolInvocationError,
)
from introfp.core.models import QueuedItem
from introfp.fpcalc.runner import FpcalcRunner
from introfp.service.fingerprint_service import FingerprintService

SAMPLE_OUTPUT = "DURATION=120\nFINGERPRINT=4294967295,0,1\n"


@pytest.fixture
def runner():
    mock = AsyncMock(spec=FpcalcRunner)
    mock.run.return_value = SAMPLE_OUTPUT
    return mock


@pytest.fixture
def store(cache_config):
    return FileFingerprintStore(config_provider=cache_config)


@pytest.fixture
def service(store, runner):
    return FingerprintService(store, runner)


class TestFingerprint:
    @pytest.mark.asyncio
    async def test_miss_runs_tool_and_parses(self, service, runner, sample_item):
        result = await service.fingerprint(sample_item)
        assert result == (4294967295, 0, 1)
        runner.run.assert_awaited_once_with(
            ["-raw", "-length", "120", str(sample_item.path)], 60_000
        )

    @pytest.mark.asyncio
    async def test_miss_writes_cache_in_background(self, service, sample_item, cache_root):
        await service.fingerprint(sample_item)
        await service.drain()
        cached = cache_root / sample_item.cache_key
        assert cached.read_text(encoding="utf-8") == "4294967295\n0\n1\n"

    @pytest.mark.asyncio
    async def test_hit_skips_tool(self, service, runner, sample_item, cache_root):
        cache_root.mkdir()
        (cache_root / sample_item.cache_key).write_text("10\n20\n30\n", encoding="utf-8")
        assert await service.fingerprint(sample_item) == (10, 20, 30)
        runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, service, runner, sample_item):
        first = await service.fingerprint(sample_item)
        await service.drain()
        second = await service.fingerprint(sample_item)
        assert first == second
        assert runner.run.await_count == 1

    @pytest.mark.asyncio
    async def test_disabled_cache_always_runs_tool(self, service, runner, sample_item, cache_config, cache_root):
        cache_config.enabled = False
        await service.fingerprint(sample_item)
        await service.drain()
        await service.fingerprint(sample_item)
        await service.drain()
        assert runner.run.await_count == 2
        assert not cache_root.exists()

    @pytest.mark.asyncio
    async def test_custom_timeout(self, store, runner, sample_item):
        service = FingerprintService(store, runner, timeout_ms=5_000)
        await service.fingerprint(sample_item)
        assert runner.run.await_args.args[1] == 5_000

    @pytest.mark.asyncio
    async def test_malformed_output(self, service, runner, sample_item, cache_root):
        runner.run.return_value = "garbage"
        with pytest.raises(MalformedOutputError, match="S01E01.mkv"):
            await service.fingerprint(sample_item)
        await service.drain()
        assert not cache_root.exists()

    @pytest.mark.asyncio
    async def test_non_numeric_output(self, service, runner, sample_item, cache_root):
        runner.run.return_value = "DURATION=120\nFINGERPRINT=1,x,3\n"
        with pytest.raises(NumberFormatError):
            await service.fingerprint(sample_item)
        await service.drain()
        assert not cache_root.exists()

    @pytest.mark.asyncio
    async def test_tool_start_failure_propagates(self, service, runner, sample_item):
        runner.run.side_effect = ToolInvocationError(
            "fpcalc", [], FileNotFoundError("fpcalc")
        )
        with pytest.raises(ToolInvocationError):
            await service.fingerprint(sample_item)

    @pytest.mark.asyncio
    async def test_corrupt_cache_is_escalated(self, service, runner, sample_item, cache_root):
        cache_root.mkdir()
        (cache_root / sample_item.cache_key).write_text("1\nnope\n", encoding="utf-8")
        with pytest.raises(CacheCorruptionError):
            await service.fingerprint(sample_item)
        runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_write_failure_still_returns(self, runner, sample_item, tmp_path, cache_config, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache_config.root = blocker / "cache"
        service = FingerprintService(FileFingerprintStore(cache_config), runner)

        with caplog.at_level(logging.ERROR, logger="introfp.cache.background"):
            result = await service.fingerprint(sample_item)
            await service.drain()

        assert result == (4294967295, 0, 1)
        assert any("Background write failed" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_context_manager_drains(self, store, runner, sample_item, cache_root):
        async with FingerprintService(store, runner) as service:
            await service.fingerprint(sample_item)
        assert service.persistence.pending == 0
        assert (cache_root / sample_item.cache_key).exists()

    @pytest.mark.asyncio
    async def test_end_to_end_with_stand_in_tool(self, store, sample_item, tmp_path, cache_root):
        import sys

        script = tmp_path / "fake_fpcalc.py"
        script.write_text(
            "import sys\n"
            "assert sys.argv[1:4] == ['-raw', '-length', '120'], sys.argv\n"
            "sys.stdout.write('DURATION=120\\nFINGERPRINT=7,8,9\\n')\n",
            encoding="utf-8",
        )

        class ScriptRunner(FpcalcRunner):
            async def run(self, args, timeout_ms=60_000):
                return await super().run([str(script), *args], timeout_ms)

        async with FingerprintService(store, ScriptRunner(sys.executable)) as service:
            assert await service.fingerprint(sample_item) == (7, 8, 9)
        assert (cache_root / sample_item.cache_key).read_text() == "7\n8\n9\n"


class TestBuildArguments:
    def test_plain_path(self):
        item = QueuedItem(
            item_id=uuid.uuid4(), path=Path("/tv/Show/S01E01.mkv"),
            fingerprint_duration=600,
        )
        assert FingerprintService.build_arguments(item) == [
            "-raw", "-length", "600", "/tv/Show/S01E01.mkv",
        ]

    def test_path_with_quotes_and_spaces_is_one_argument(self):
        path = Path('/tv/The "Best" Show/it\'s here.mkv')
        item = QueuedItem(item_id=uuid.uuid4(), path=path, fingerprint_duration=90.5)
        args = FingerprintService.build_arguments(item)
        assert args == ["-raw", "-length", "91", str(path)]

    def test_path_starting_with_dash(self):
        item = QueuedItem(
            item_id=uuid.uuid4(), path=Path("-weird.mkv"), fingerprint_duration=10,
        )
        args = FingerprintService.build_arguments(item)
        assert not args[-1].startswith("-")
        assert args[-1].endswith("-weird.mkv")


class TestCheckToolInstalled:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("output", [
        "fpcalc version 1.5.1 (FFmpeg Lavc58.134.100 Lavf58.76.100 SwR3.9.100)\n",
        "FPCALC VERSION 1.4.3",
        "Fpcalc Version 1.5.0\r\n",
    ])
    async def test_installed(self, store, runner, output):
        runner.run.return_value = output
        service = FingerprintService(store, runner)
        assert await service.check_tool_installed() is True
        runner.run.assert_awaited_once_with(["-version"], 2_000)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("output", ["", "command not found", "chromaprint 1.5"])
    async def test_unexpected_output(self, store, runner, output):
        runner.run.return_value = output
        service = FingerprintService(store, runner)
        assert await service.check_tool_installed() is False

    @pytest.mark.asyncio
    async def test_runner_error(self, store, runner):
        runner.run.side_effect = RuntimeError("boom")
        service = FingerprintService(store, runner)
        assert await service.check_tool_installed() is False

    @pytest.mark.asyncio
    async def test_missing_binary_never_raises(self, store):
        service = FingerprintService(store, FpcalcRunner("introfp-no-such-binary-1b2e7a"))
        assert await service.check_tool_installed() is False

    @pytest.mark.asyncio
    async def test_logs_version(self, store, runner, caplog):
        runner.run.return_value = "fpcalc version 1.5.1\n"
        service = FingerprintService(store, runner)
        with caplog.at_level(logging.INFO, logger="introfp.service.fingerprint_service"):
            await service.check_tool_installed()
        assert any("fpcalc version 1.5.1" in r.getMessage() for r in caplog.records)


class TestFromSettings:
    @pytest.mark.asyncio
    async def test_uses_settings_values(self, sample_item, tmp_path):
        settings = Settings(
            _env_file=None,
            fingerprint_cache_root=tmp_path / "cfg-cache",
            fpcalc_binary="my-fpcalc",
            fpcalc_timeout_ms=30_000,
            fpcalc_probe_timeout_ms=1_000,
        )
        service = FingerprintService.from_settings(settings)
        assert service.store.cache_path(sample_item) == tmp_path / "cfg-cache" / sample_item.cache_key
        assert service._runner.binary == "my-fpcalc"
        assert service._timeout_ms == 30_000
        assert service._probe_timeout_ms == 1_000

    @pytest.mark.asyncio
    async def test_live_environment(self, sample_item, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("FINGERPRINT_CACHE_ROOT", str(tmp_path / "env-cache"))
        monkeypatch.setenv("CACHE_FINGERPRINTS", "true")
        service = FingerprintService.from_settings()
        await service.store.store(sample_item, (1, 2))
        assert await service.store.try_load(sample_item) == (1, 2)

        monkeypatch.setenv("CACHE_FINGERPRINTS", "false")
        assert await service.store.try_load(sample_item) is None
