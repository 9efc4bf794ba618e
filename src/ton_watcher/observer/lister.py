"""On-demand listing of an account's historical transactions.

One call is one bounded round trip: a single page ending at the account's
last transaction (or at a caller-supplied locator), newest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ton_watcher.observer.classifier import ClassificationResult, classify, render

if TYPE_CHECKING:
    from collections.abc import Callable

    from ton_watcher.ledger.address import Address
    from ton_watcher.ledger.base import LedgerClient
    from ton_watcher.ledger.models import Transaction, TransactionLocator
    from ton_watcher.notifications.dispatcher import NotificationDispatcher
    from ton_watcher.observer.formatting import MessageFormatter

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 15


@dataclass(frozen=True)
class HistoryEntry:
    """A listed transaction with its classification and rendering."""

    transaction: Transaction
    result: ClassificationResult
    text: str

    @property
    def tx_hash_hex(self) -> str:
        return "" if self.result.error else self.transaction.hash_hex


@dataclass(frozen=True)
class HistoryPage:
    """One page of history, newest first.

    ``next_locator`` points at the oldest listed transaction; pass it back to
    :meth:`HistoricalLister.fetch_page` to continue further into the past.
    It is None once the beginning of the history is reached.
    """

    entries: tuple[HistoryEntry, ...] = ()
    next_locator: TransactionLocator | None = None

    def __len__(self) -> int:
        return len(self.entries)


class HistoricalLister:
    """Fetches and renders pages of past transactions.

    Usage::

        lister = HistoricalLister(ledger, Address.parse(target), echo=print)
        page = await lister.fetch_page()
        older = await lister.fetch_page(page.next_locator)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        address: Address,
        *,
        dispatcher: NotificationDispatcher | None = None,
        formatter: MessageFormatter | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        notify: bool = False,
        wait_for_block: bool = True,
        echo: Callable[[str], None] | None = None,
    ) -> None:
        if page_size < 1:
            msg = f"page_size must be positive, got {page_size}"
            raise ValueError(msg)
        if notify and dispatcher is None:
            msg = "notify=True requires a dispatcher"
            raise ValueError(msg)
        self._ledger = ledger
        self._address = address
        self._dispatcher = dispatcher
        self._formatter = formatter
        self._page_size = page_size
        self._notify = notify
        self._wait_for_block = wait_for_block
        self._echo = echo

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def notify(self) -> bool:
        return self._notify

    async def fetch_page(self, from_locator: TransactionLocator | None = None) -> HistoryPage:
        """Fetch one page of history.

        Args:
            from_locator: ``next_locator`` of a previous page. When None the
                page ends at the account's last transaction. The transaction
                at *from_locator* itself is not listed again.

        Raises:
            LedgerError: If the chain head or the account state cannot be fetched.
        """
        head = await self._ledger.get_chain_head()
        if self._wait_for_block:
            await self._ledger.wait_for_block(head)
        account = await self._ledger.get_account_state(head, self._address)

        if from_locator is None:
            locator = account.last_locator
            limit = self._page_size
        else:
            locator = from_locator
            limit = self._page_size + 1
        if locator.is_empty:
            logger.info("Account %s has no transactions", self._address)
            return HistoryPage()

        batch = await self._ledger.list_transactions(self._address, limit, locator)
        if from_locator is not None:
            batch = [tx for tx in batch if tx.lt < from_locator.lt]
        short = len(batch) < self._page_size
        transactions = sorted(batch, key=lambda tx: tx.lt, reverse=True)[: self._page_size]

        entries: list[HistoryEntry] = []
        for tx in transactions:
            entry = await self._handle(tx)
            entries.append(entry)

        next_locator = None if short or not transactions else transactions[-1].locator
        return HistoryPage(entries=tuple(entries), next_locator=next_locator)

    async def _handle(self, tx: Transaction) -> HistoryEntry:
        result = classify(tx)
        entry = HistoryEntry(transaction=tx, result=result, text=render(result, self._formatter))
        if self._echo and entry.text:
            self._echo(entry.text)
        if self._notify and self._dispatcher is not None and entry.text:
            await self._dispatcher.dispatch(entry.text, entry.tx_hash_hex)
        return entry
