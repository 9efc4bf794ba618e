"""Ledger layer - chain models, addresses and the toncenter client."""

from ton_watcher.ledger.address import Address
from ton_watcher.ledger.base import LedgerClient
from ton_watcher.ledger.models import (
    AccountState,
    BlockRef,
    Message,
    MessageList,
    MessageType,
    Transaction,
    TransactionLocator,
)
from ton_watcher.ledger.toncenter import ToncenterClient

__all__ = [
    "AccountState",
    "Address",
    "BlockRef",
    "LedgerClient",
    "Message",
    "MessageList",
    "MessageType",
    "ToncenterClient",
    "Transaction",
    "TransactionLocator",
]
