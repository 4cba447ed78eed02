# src/logging/context.py — v2
"""Contextual logging support: attach item_id, item_path, operation to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per fingerprint request.
_item_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_id", default=None
)
_item_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_path", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    item_id: str | None = None
    item_path: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        item_id=_item_id.get(),
        item_path=_item_path.get(),
        operation=_operation.get(),
    )


def set_item_context(item_id: str, item_path: str, operation: str) -> None:
    """Set item-level context (called once per service operation)."""
    _item_id.set(item_id)
    _item_path.set(item_path)
    _operation.set(operation)


def set_operation(operation: str | None) -> None:
    """Set only the operation name (e.g. for the tool probe)."""
    _operation.set(operation)


def clear_context() -> None:
    """Reset all context variables."""
    _item_id.set(None)
    _item_path.set(None)
    _operation.set(None)
