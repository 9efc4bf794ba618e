"""Transaction classification - SELL / BUY detection and net amounts.

A transaction is a SELL when value arrives with an internal inbound message
and a BUY when internal outbound messages carry value. Both can hold for the
same transaction. Classification is pure and safe to run concurrently.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ton_watcher.errors.watcher_errors import MessageDecodeError
from ton_watcher.observer.formatting import DEFAULT_FORMATTER

if TYPE_CHECKING:
    from ton_watcher.ledger.models import Transaction
    from ton_watcher.observer.formatting import MessageFormatter


class TransferKind(enum.StrEnum):
    """Direction of value movement for the watched account."""

    SELL = "SELL"
    BUY = "BUY"
    NONE = "NONE"


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one transaction.

    Attributes:
        tx_hash: Hash of the classified transaction.
        sell_amount: Inbound internal value in nanotons.
        source: Source address of the inbound message (SELL only).
        buy_amount: Sum of internal outbound values in nanotons.
        counterparties: Destinations of every outbound message, in order.
        error: Decoding error description; amounts are zero when set.
    """

    tx_hash: bytes = b""
    sell_amount: int = 0
    source: str = ""
    buy_amount: int = 0
    counterparties: tuple[str, ...] = ()
    error: str = ""

    @property
    def is_sell(self) -> bool:
        return self.sell_amount != 0

    @property
    def is_buy(self) -> bool:
        return self.buy_amount != 0

    @property
    def kinds(self) -> list[TransferKind]:
        """``[SELL]``, ``[BUY]``, ``[SELL, BUY]`` or ``[NONE]``."""
        kinds = []
        if self.is_sell:
            kinds.append(TransferKind.SELL)
        if self.is_buy:
            kinds.append(TransferKind.BUY)
        return kinds or [TransferKind.NONE]

    @property
    def is_empty(self) -> bool:
        """True when nothing should be reported for this transaction."""
        return not self.error and not self.is_sell and not self.is_buy


def classify(tx: Transaction) -> ClassificationResult:
    """Classify *tx* by its inbound and outbound message set."""
    counterparties: list[str] = []
    out_total = 0
    if tx.out_msgs is not None:
        try:
            messages = tx.out_msgs.to_list()
        except MessageDecodeError as exc:
            return ClassificationResult(tx_hash=tx.hash, error=exc.message)
        for message in messages:
            counterparties.append(message.destination)
            if message.is_internal:
                out_total += message.value

    in_total = 0
    source = ""
    if tx.in_msg is not None and tx.in_msg.is_internal:
        in_total = tx.in_msg.value
        source = tx.in_msg.source

    return ClassificationResult(
        tx_hash=tx.hash,
        sell_amount=in_total,
        source=source if in_total else "",
        buy_amount=out_total,
        counterparties=tuple(counterparties),
    )


def render(result: ClassificationResult, formatter: MessageFormatter | None = None) -> str:
    """Render *result* with *formatter*; empty string when nothing applies."""
    formatter = formatter or DEFAULT_FORMATTER
    if result.error:
        return formatter.render_error(result.error)
    if result.is_empty:
        return ""
    return formatter.render(result)


def parse_transaction(
    tx: Transaction, formatter: MessageFormatter | None = None
) -> tuple[str, str]:
    """Classify and render *tx*.

    Returns:
        ``(text, tx_hash_hex)``. On an outbound decoding failure the text
        describes the error and the hash is empty; when the transaction is
        neither SELL nor BUY the text is empty.
    """
    result = classify(tx)
    text = render(result, formatter)
    if result.error:
        return text, ""
    return text, result.tx_hash.hex()
