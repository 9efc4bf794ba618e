"""Live tailing of an account's transactions.

State machine::

    INIT → SUBSCRIBED → (RECEIVING ⇄ DELIVERING) → TERMINATED

The ledger subscription runs on its own task and feeds an unbounded FIFO
queue; the receive loop handles one transaction at a time and advances the
cursor only after the notification fan-out for that transaction finished.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from typing import TYPE_CHECKING

from ton_watcher.errors.watcher_errors import LedgerError
from ton_watcher.observer.classifier import classify, render
from ton_watcher.observer.cursor import TransactionCursor

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ton_watcher.ledger.address import Address
    from ton_watcher.ledger.base import LedgerClient
    from ton_watcher.ledger.models import Transaction
    from ton_watcher.metrics.collector import WatcherMetrics
    from ton_watcher.notifications.dispatcher import NotificationDispatcher
    from ton_watcher.observer.formatting import MessageFormatter

logger = logging.getLogger(__name__)

_END = object()
_STOP = object()


class TailerState(enum.StrEnum):
    """Lifecycle states of :class:`LiveTailer`."""

    INIT = "INIT"
    SUBSCRIBED = "SUBSCRIBED"
    RECEIVING = "RECEIVING"
    DELIVERING = "DELIVERING"
    TERMINATED = "TERMINATED"


class LiveTailer:
    """Follows new transactions of one account and notifies subscribers.

    Usage::

        tailer = LiveTailer(ledger, dispatcher, Address.parse(target))
        await tailer.run()  # returns only if the subscription ends
    """

    def __init__(
        self,
        ledger: LedgerClient,
        dispatcher: NotificationDispatcher,
        address: Address,
        *,
        formatter: MessageFormatter | None = None,
        start_from: TransactionCursor | None = None,
        on_advance: Callable[[TransactionCursor], Awaitable[None]] | None = None,
        echo: Callable[[str], None] | None = None,
        metrics: WatcherMetrics | None = None,
    ) -> None:
        """Initialize the tailer.

        Args:
            ledger: Ledger collaborator.
            dispatcher: Notification fan-out.
            address: Watched account.
            formatter: Message formatter; Telegram MarkdownV2 by default.
            start_from: Cursor restored by the caller; when None the tailer
                starts from the account's current last transaction.
            on_advance: Awaited after every cursor move, e.g. to persist it.
            echo: Called with every non-empty rendered text.
            metrics: Optional metrics sink.
        """
        self._ledger = ledger
        self._dispatcher = dispatcher
        self._address = address
        self._formatter = formatter
        self._start_from = start_from
        self._on_advance = on_advance
        self._echo = echo
        self._metrics = metrics
        self._state = TailerState.INIT
        self._cursor: TransactionCursor | None = start_from
        self._queue: asyncio.Queue[object] | None = None
        self._stop_requested = False

    @property
    def state(self) -> TailerState:
        return self._state

    @property
    def cursor(self) -> TransactionCursor | None:
        return self._cursor

    def stop(self) -> None:
        """Ask :meth:`run` to return once the backlog is handled.

        A request made before the subscription starts ends the run as soon
        as it reaches SUBSCRIBED.
        """
        self._stop_requested = True
        if self._queue is not None:
            self._queue.put_nowait(_STOP)

    async def run(self) -> TransactionCursor:
        """Subscribe and process transactions until the subscription ends.

        Returns:
            The cursor of the last processed transaction.

        Raises:
            LedgerError: If the chain head, the account state or the
                subscription fails.
        """
        self._state = TailerState.INIT
        logger.info("Fetching chain head and checking proofs, this may take a while...")
        head = await self._ledger.get_chain_head()
        account = await self._ledger.get_account_state(head, self._address)
        logger.info("Chain head at seqno %d, account %s resolved", head.seqno, self._address)

        # Transactions at or before the starting point are never processed.
        cursor = self._start_from or TransactionCursor.from_locator(account.last_locator)
        self._cursor = cursor
        self._state = TailerState.SUBSCRIBED

        queue: asyncio.Queue[object] = asyncio.Queue()
        if self._stop_requested:
            queue.put_nowait(_STOP)
        self._queue = queue
        producer = asyncio.create_task(self._pump(cursor, queue))
        logger.info("Waiting for transfers from lt %d...", cursor.lt)
        try:
            while True:
                self._state = TailerState.RECEIVING
                item = await queue.get()
                if item is _STOP:
                    logger.info("Tailer stopped at lt %d", cursor.lt)
                    break
                if item is _END:
                    logger.error("Transaction listening unexpectedly finished at lt %d", cursor.lt)
                    break
                if isinstance(item, LedgerError):
                    raise item
                if isinstance(item, Exception):
                    msg = f"transaction subscription failed: {item}"
                    raise LedgerError(msg, code="subscription-failed") from item
                await self.process(item)  # type: ignore[arg-type]
        finally:
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer
            self._queue = None
            self._stop_requested = False
            self._state = TailerState.TERMINATED
        return cursor

    async def process(self, tx: Transaction) -> str:
        """Classify, echo and dispatch one transaction, then advance the cursor.

        Returns:
            The rendered text (empty when nothing was reported).
        """
        cursor = self._cursor
        if cursor is not None and cursor.has_seen(tx):
            logger.warning("Skipping transaction %s at lt %d: already processed", tx.hash_hex, tx.lt)
            return ""

        self._state = TailerState.DELIVERING
        result = classify(tx)
        text = render(result, self._formatter)
        tx_hash_hex = "" if result.error else tx.hash_hex
        if result.error:
            logger.warning("Transaction %s not parsed: %s", tx.hash_hex, result.error)

        if text:
            if self._echo:
                self._echo(text)
            try:
                report = await self._dispatcher.dispatch(text, tx_hash_hex)
            except Exception:
                logger.exception("Dispatch failed for transaction %s", tx.hash_hex)
            else:
                if not report.ok:
                    logger.warning(
                        "Transaction %s delivered to %d/%d recipients",
                        tx.hash_hex,
                        len(report.delivered),
                        report.attempted,
                    )

        if cursor is None:
            cursor = TransactionCursor.from_locator(tx.locator)
            self._cursor = cursor
        else:
            cursor.advance(tx)
        if self._metrics:
            kind = "ERROR" if result.error else "+".join(result.kinds)
            self._metrics.record_transaction(kind)
            self._metrics.set_cursor(cursor.lt)
        if self._on_advance:
            await self._on_advance(cursor)
        return text

    async def _pump(self, cursor: TransactionCursor, queue: asyncio.Queue[object]) -> None:
        """Move transactions from the ledger subscription into *queue*."""
        try:
            async for tx in self._ledger.subscribe_transactions(self._address, cursor.locator):
                queue.put_nowait(tx)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            queue.put_nowait(exc)
            return
        queue.put_nowait(_END)
