"""Ledger collaborator interface consumed by the observer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ton_watcher.ledger.address import Address
    from ton_watcher.ledger.models import (
        AccountState,
        BlockRef,
        Transaction,
        TransactionLocator,
    )


class LedgerClient(Protocol):
    """Trusted view of chain state.

    Implementations raise :class:`~ton_watcher.errors.LedgerError` on
    failures; any retry policy belongs to the implementation.
    """

    async def get_chain_head(self) -> BlockRef:
        """Return the most recently finalized masterchain block."""
        ...

    async def get_account_state(self, head: BlockRef, address: Address) -> AccountState:
        """Return the state of *address* as of *head*."""
        ...

    async def wait_for_block(self, head: BlockRef) -> None:
        """Block until *head* is ready to be queried."""
        ...

    def subscribe_transactions(
        self, address: Address, since: TransactionLocator
    ) -> AsyncIterator[Transaction]:
        """Yield new transactions after *since*, oldest first, indefinitely."""
        ...

    async def list_transactions(
        self, address: Address, limit: int, locator: TransactionLocator
    ) -> list[Transaction]:
        """Return up to *limit* transactions ending at *locator* (inclusive).

        The returned order is unspecified.
        """
        ...
