"""Shared test fixtures for the ton-watcher test suite."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Any

import pytest

from ton_watcher.errors.watcher_errors import TransportError
from ton_watcher.ledger.address import Address
from ton_watcher.ledger.models import (
    AccountState,
    BlockRef,
    Message,
    MessageList,
    MessageType,
    Transaction,
    TransactionLocator,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

TARGET_ADDRESS = "EQCXwWAyDG_IhRh6CzPSetvgGecywZBU3YNCawmz03Uk25RG"


def tx_hash(lt: int) -> bytes:
    """Deterministic 32-byte hash for a transaction at *lt*."""
    return hashlib.sha256(f"tx-{lt}".encode()).digest()


def build_tx(
    lt: int,
    *,
    in_value: int | None = None,
    source: str = "Src1",
    in_type: MessageType = MessageType.INTERNAL,
    out: list[tuple[str, int] | tuple[str, int, MessageType] | dict[str, Any]] | None = None,
) -> Transaction:
    """Build a transaction.

    ``out`` entries are ``(destination, value)``, ``(destination, value, type)``
    or raw toncenter dicts (decoded lazily).
    """
    in_msg = None
    if in_value is not None:
        in_msg = Message(
            msg_type=in_type,
            source=source if in_type == MessageType.INTERNAL else "",
            destination=TARGET_ADDRESS,
            value=in_value,
        )
    out_msgs = None
    if out is not None:
        entries: list[Message | dict[str, Any]] = []
        for item in out:
            if isinstance(item, dict):
                entries.append(item)
                continue
            dst, value, *rest = item
            msg_type = rest[0] if rest else MessageType.INTERNAL
            entries.append(
                Message(msg_type=msg_type, source=TARGET_ADDRESS, destination=dst, value=value)
            )
        out_msgs = MessageList(entries)
    return Transaction(
        locator=TransactionLocator(lt=lt, hash=tx_hash(lt)),
        in_msg=in_msg,
        out_msgs=out_msgs,
    )


class FakeLedger:
    """In-memory ledger collaborator."""

    def __init__(
        self,
        *,
        last_lt: int = 100,
        stream: list[Transaction] | None = None,
        history: list[Transaction] | None = None,
        head_error: Exception | None = None,
        state_error: Exception | None = None,
        stream_error: Exception | None = None,
    ) -> None:
        self.head = BlockRef(workchain=-1, shard=-(2**63), seqno=4242)
        self.last_lt = last_lt
        self.stream = list(stream or [])
        self.history = list(history or [])
        self.head_error = head_error
        self.state_error = state_error
        self.stream_error = stream_error
        self.waited: list[BlockRef] = []
        self.subscribed_from: TransactionLocator | None = None
        self.list_calls: list[tuple[int, TransactionLocator]] = []

    async def get_chain_head(self) -> BlockRef:
        if self.head_error:
            raise self.head_error
        return self.head

    async def get_account_state(self, head: BlockRef, address: Address) -> AccountState:
        if self.state_error:
            raise self.state_error
        last = TransactionLocator(lt=self.last_lt, hash=tx_hash(self.last_lt)) if self.last_lt else None
        return AccountState(address=str(address), balance=10**9, last_tx=last)

    async def wait_for_block(self, head: BlockRef) -> None:
        self.waited.append(head)

    async def subscribe_transactions(
        self, address: Address, since: TransactionLocator
    ) -> AsyncIterator[Transaction]:
        self.subscribed_from = since
        for tx in self.stream:
            yield tx
        if self.stream_error:
            raise self.stream_error

    async def list_transactions(
        self, address: Address, limit: int, locator: TransactionLocator
    ) -> list[Transaction]:
        self.list_calls.append((limit, locator))
        eligible = [tx for tx in self.history if tx.lt <= locator.lt]
        newest = sorted(eligible, key=lambda tx: tx.lt, reverse=True)[:limit]
        # Keep the input order of the selected transactions: not newest-first.
        return [tx for tx in eligible if tx in newest]


class FakeTransport:
    """Records messages; raises for recipients listed in ``failing``."""

    def __init__(self, failing: tuple[int | str, ...] = ()) -> None:
        self.failing = set(failing)
        self.sent: list[tuple[int | str, str, str | None]] = []
        self.attempts: list[int | str] = []

    async def send_message(self, recipient: int | str, text: str, link_url: str | None) -> None:
        self.attempts.append(recipient)
        if recipient in self.failing:
            msg = f"chat {recipient} unreachable"
            raise TransportError(msg, recipient=recipient)
        self.sent.append((recipient, text, link_url))


@pytest.fixture
def target() -> Address:
    return Address.parse(TARGET_ADDRESS)


@pytest.fixture
def make_tx() -> Callable[..., Transaction]:
    return build_tx


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def app_config(monkeypatch: pytest.MonkeyPatch):
    """Provide a test AppConfig with safe defaults."""
    from ton_watcher.config.settings import AppConfig, TelegramConfig, WatcherConfig

    monkeypatch.chdir("/")
    return AppConfig(
        debug=True,
        telegram=TelegramConfig(token="123:abc", chat_ids=[1, 2]),
        watcher=WatcherConfig(target_address=TARGET_ADDRESS),
    )
