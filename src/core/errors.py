# src/core/errors.py — v1
"""Exception hierarchy for fingerprint acquisition and caching."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class FingerprintException(Exception):
    """Base class for every fingerprinting failure."""


class MalformedOutputError(FingerprintException):
    """fpcalc output does not follow the DURATION/FINGERPRINT grammar."""

    def __init__(self, item_path: Path | str, reason: str) -> None:
        self.item_path = str(item_path)
        self.reason = reason
        super().__init__(f"fpcalc output for {self.item_path} was malformed: {reason}")


class NumberFormatError(FingerprintException, ValueError):
    """A token is not a base-10 unsigned 32-bit integer."""

    def __init__(self, token: str, source: str | None = None) -> None:
        self.token = token
        self.source = source
        msg = f"Invalid unsigned 32-bit integer: {token!r}"
        if source:
            msg += f" (in {source})"
        super().__init__(msg)


class ToolInvocationError(FingerprintException):
    """The external tool could not be started."""

    def __init__(self, binary: str, args: Sequence[str], cause: BaseException) -> None:
        self.binary = binary
        self.args_list = list(args)
        self.cause = cause
        super().__init__(f"Failed to start {binary!r}: {cause}")


class CacheCorruptionError(FingerprintException):
    """A cached fingerprint file contains a line that is not a uint32."""

    def __init__(self, path: Path, line_number: int, token: str) -> None:
        self.path = path
        self.line_number = line_number
        self.token = token
        super().__init__(
            f"Corrupt fingerprint cache file {path} at line {line_number}: {token!r}"
        )
