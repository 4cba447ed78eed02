# src/main.py — v2
"""CLI entry point: check, fingerprint, cache-path commands.

Usage:
    introfp check
    introfp fingerprint <file> --item-id <uuid> [--duration N] [--no-cache]
    introfp cache-path --item-id <uuid>
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

from introfp.core.errors import FingerprintException
from introfp.logging.logger import get_logger, setup_logging
from introfp.version import __version__

logger = get_logger("cli")

DEFAULT_DURATION_S = 600.0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    from introfp.config.settings import load_settings

    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="introfp",
        description=f"introfp v{__version__} - cached fpcalc fingerprints",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- check ---
    p_check = subparsers.add_parser(
        "check", help="Check that fpcalc is installed",
    )
    p_check.set_defaults(func=_cmd_check)

    # --- fingerprint ---
    p_fp = subparsers.add_parser(
        "fingerprint", help="Fingerprint a media file",
    )
    p_fp.add_argument("file", type=Path, help="Path to media file")
    p_fp.add_argument(
        "--item-id", type=uuid.UUID, required=True,
        help="Stable item identifier (cache key)",
    )
    p_fp.add_argument(
        "--duration", type=float, default=DEFAULT_DURATION_S,
        help=f"Seconds of audio to analyze (default: {DEFAULT_DURATION_S:g})",
    )
    p_fp.add_argument(
        "--no-cache", action="store_true",
        help="Bypass the fingerprint cache for this run",
    )
    p_fp.set_defaults(func=_cmd_fingerprint)

    # --- cache-path ---
    p_path = subparsers.add_parser(
        "cache-path", help="Print the cache file path for an item",
    )
    p_path.add_argument(
        "--item-id", type=uuid.UUID, required=True,
        help="Stable item identifier (cache key)",
    )
    p_path.set_defaults(func=_cmd_cache_path)

    return parser


async def _cmd_check(args: argparse.Namespace) -> int:
    """Probe the fpcalc binary."""
    from introfp.service.fingerprint_service import FingerprintService

    service = FingerprintService.from_settings()
    if await service.check_tool_installed():
        print("fpcalc is installed")
        return 0
    print("fpcalc is not installed or not working", file=sys.stderr)
    return 1


async def _cmd_fingerprint(args: argparse.Namespace) -> int:
    """Fingerprint one file and print one point per line."""
    from introfp.config.settings import load_settings
    from introfp.core.models import QueuedItem
    from introfp.service.fingerprint_service import FingerprintService

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1

    settings = load_settings(cache_fingerprints=False) if args.no_cache else None
    item = QueuedItem(
        item_id=args.item_id,
        path=file_path,
        fingerprint_duration=args.duration,
    )

    async with FingerprintService.from_settings(settings) as service:
        try:
            fingerprint = await service.fingerprint(item)
        except FingerprintException as exc:
            logger.error("%s", exc, exc_info=args.verbose)
            return 1

    for point in fingerprint:
        print(point)
    return 0


async def _cmd_cache_path(args: argparse.Namespace) -> int:
    """Print where an item's fingerprint is (or would be) cached."""
    from introfp.cache.file_store import FileFingerprintStore
    from introfp.config.settings import settings_cache_config
    from introfp.core.models import QueuedItem

    # Duration does not affect the cache key
    item = QueuedItem(item_id=args.item_id, path=Path("."), fingerprint_duration=1)
    print(FileFingerprintStore(settings_cache_config).cache_path(item))
    return 0


if __name__ == "__main__":
    sys.exit(main())
