"""Error hierarchy for ton-watcher."""

from __future__ import annotations

from ton_watcher.errors.watcher_errors import (
    AddressError,
    CursorError,
    LedgerError,
    MessageDecodeError,
    TransportError,
    WatcherError,
)

__all__ = [
    "AddressError",
    "CursorError",
    "LedgerError",
    "MessageDecodeError",
    "TransportError",
    "WatcherError",
]
