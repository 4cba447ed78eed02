# src/fpcalc/runner.py — v1
"""Subprocess wrapper for the fpcalc binary.

Arguments are always passed as an argv list, never through a shell.
Only standard output is captured; standard error is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import sys
from collections.abc import Sequence

from introfp.core.errors import ToolInvocationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 60 * 1000
PROBE_TIMEOUT_MS = 2000

_READ_CHUNK = 64 * 1024

if sys.platform == "win32":
    _CREATION_FLAGS = subprocess.CREATE_NO_WINDOW
else:
    _CREATION_FLAGS = 0


class FpcalcRunner:
    """Run fpcalc and return its standard output as text.

    The runner knows nothing about fingerprints and does not interpret
    exit codes. One process is spawned and reaped per call.
    """

    def __init__(self, binary: str = "fpcalc") -> None:
        self._binary = binary

    @property
    def binary(self) -> str:
        return self._binary

    async def run(
        self, args: Sequence[str], timeout_ms: int = DEFAULT_TIMEOUT_MS
    ) -> str:
        """Run the tool and return whatever it wrote to stdout.

        The timeout is best effort: when it elapses the process is killed
        and the output captured up to that point is returned.

        Raises:
            ToolInvocationError: If the process could not be started.
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                creationflags=_CREATION_FLAGS,
            )
        except OSError as e:
            raise ToolInvocationError(self._binary, args, e) from e

        stdout = process.stdout
        if stdout is None:
            _kill(process)
            await process.wait()
            raise ToolInvocationError(
                self._binary, args, RuntimeError("stdout pipe not available")
            )

        chunks: list[bytes] = []
        try:
            await asyncio.wait_for(
                _collect(process, stdout, chunks), timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.warning(
                "%s did not exit within %d ms, returning partial output",
                self._binary, timeout_ms,
            )
            _kill(process)
            chunks.append(await stdout.read())
            await process.wait()
        except BaseException:
            # Cancelled or failed while waiting: never leave the child running
            _kill(process)
            await asyncio.shield(process.wait())
            raise

        return b"".join(chunks).decode("utf-8", errors="replace")


async def _collect(
    process: asyncio.subprocess.Process,
    stdout: asyncio.StreamReader,
    chunks: list[bytes],
) -> None:
    """Read stdout to EOF, then wait for the process to exit."""
    while True:
        chunk = await stdout.read(_READ_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)
    await process.wait()


def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        # Already exited
        pass
