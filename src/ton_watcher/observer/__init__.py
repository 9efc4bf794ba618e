"""Observer - classification, cursor, live tailing and history listing."""

from __future__ import annotations

from ton_watcher.observer.classifier import (
    ClassificationResult,
    TransferKind,
    classify,
    parse_transaction,
)
from ton_watcher.observer.cursor import TransactionCursor
from ton_watcher.observer.formatting import (
    MarkdownV2Formatter,
    MessageFormatter,
    PlainTextFormatter,
    format_nano,
)
from ton_watcher.observer.lister import HistoricalLister, HistoryEntry, HistoryPage
from ton_watcher.observer.tailer import LiveTailer, TailerState

__all__ = [
    "ClassificationResult",
    "HistoricalLister",
    "HistoryEntry",
    "HistoryPage",
    "LiveTailer",
    "MarkdownV2Formatter",
    "MessageFormatter",
    "PlainTextFormatter",
    "TailerState",
    "TransactionCursor",
    "TransferKind",
    "classify",
    "format_nano",
    "parse_transaction",
]
