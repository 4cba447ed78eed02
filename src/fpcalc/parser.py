# src/fpcalc/parser.py — v1
"""Strict parser for `fpcalc -raw` output.

Expected output:

    DURATION=123
    FINGERPRINT=123456789,987654321,123456789

The format is not versioned, so any deviation is an explicit error rather
than a best guess that could end up in the cache.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from introfp.core.errors import MalformedOutputError, NumberFormatError
from introfp.core.models import UINT32_MAX, Fingerprint

logger = logging.getLogger(__name__)

FINGERPRINT_PREFIX = "FINGERPRINT="

# ASCII digits only; str.isdigit() and int() also accept other scripts.
_UINT_PATTERN = re.compile(r"\+?[0-9]+")


def parse_uint32(token: str) -> int:
    """Parse a locale-independent base-10 unsigned 32-bit integer.

    Surrounding whitespace and a leading '+' are accepted.

    Raises:
        NumberFormatError: If the token is not a decimal in [0, 2**32 - 1].
    """
    text = token.strip()
    if not _UINT_PATTERN.fullmatch(text):
        raise NumberFormatError(token)
    value = int(text)
    if value > UINT32_MAX:
        raise NumberFormatError(token)
    return value


def parse_output(raw: str, item_path: Path | str) -> Fingerprint:
    """Parse raw fpcalc output into a Fingerprint.

    Args:
        raw: Captured standard output of `fpcalc -raw`.
        item_path: Media path, used for error context only.

    Returns:
        Ordered tuple of fingerprint points (possibly empty).

    Raises:
        MalformedOutputError: Fewer than two lines, or the second line does
            not start with FINGERPRINT=.
        NumberFormatError: A fingerprint point is not a uint32.
    """
    lines = raw.split("\n")
    if len(lines) < 2:
        logger.debug("fpcalc output for %s is %r", item_path, raw)
        raise MalformedOutputError(item_path, f"expected 2 lines, got {len(lines)}")

    line = lines[1].rstrip("\r")
    if not line.startswith(FINGERPRINT_PREFIX):
        logger.debug("fpcalc output for %s is %r", item_path, raw)
        raise MalformedOutputError(
            item_path, f"second line does not start with {FINGERPRINT_PREFIX}"
        )

    body = line[len(FINGERPRINT_PREFIX):].strip()
    if not body:
        return ()

    try:
        return tuple(parse_uint32(token) for token in body.split(","))
    except NumberFormatError as e:
        logger.debug("fpcalc output for %s is %r", item_path, raw)
        raise NumberFormatError(e.token, source=str(item_path)) from e
