"""Ledger data models - Transaction, Message, locators, chain head.

Data classes representing the view of the TON chain consumed by the observer.
``from_dict`` constructors accept the toncenter v2 JSON shape.
"""

from __future__ import annotations

import base64
import binascii
import enum
from dataclasses import dataclass
from typing import Any

from ton_watcher.errors.watcher_errors import LedgerError, MessageDecodeError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def decode_hash(value: str) -> bytes:
    """Decode a transaction/block hash given as hex or base64."""
    if not value:
        return b""
    if len(value) == 64:
        try:
            return bytes.fromhex(value)
        except ValueError:
            pass
    try:
        return base64.b64decode(value.replace("-", "+").replace("_", "/"), validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = f"cannot decode hash {value!r}: {exc}"
        raise ValueError(msg) from exc


def _address_text(value: Any) -> str:
    # Newer toncenter builds wrap addresses as {"account_address": "..."}
    if isinstance(value, dict):
        return str(value.get("account_address", ""))
    return str(value or "")


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransactionLocator:
    """A ``(lt, hash)`` pair uniquely identifying a transaction of an account."""

    lt: int
    hash: bytes = b""

    @property
    def hash_hex(self) -> str:
        return self.hash.hex()

    @property
    def is_empty(self) -> bool:
        """True for the locator of an account that has no transactions yet."""
        return self.lt == 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionLocator:
        """Create from a toncenter ``internal.transactionId`` object."""
        return cls(lt=int(data.get("lt", 0)), hash=decode_hash(data.get("hash", "")))


EMPTY_LOCATOR = TransactionLocator(lt=0)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class MessageType(enum.StrEnum):
    """Kind of a transaction message."""

    INTERNAL = "internal"
    EXTERNAL_IN = "external_in"
    EXTERNAL_OUT = "external_out"


@dataclass(frozen=True)
class Message:
    """A single inbound or outbound message.

    Attributes:
        msg_type: Internal (value-bearing) or external.
        source: Source address; empty for external inbound messages.
        destination: Destination address; empty for external outbound messages.
        value: Attached value in nanotons (always 0 for external messages).
    """

    msg_type: MessageType
    source: str = ""
    destination: str = ""
    value: int = 0

    @property
    def is_internal(self) -> bool:
        return self.msg_type == MessageType.INTERNAL

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Create from a toncenter ``raw.message`` object.

        Raises:
            KeyError, ValueError, TypeError: On malformed input.
        """
        source = _address_text(data["source"])
        destination = _address_text(data["destination"])
        value = int(data.get("value") or 0)
        if value < 0:
            msg = f"negative message value {value}"
            raise ValueError(msg)
        if not source:
            msg_type = MessageType.EXTERNAL_IN
        elif not destination:
            msg_type = MessageType.EXTERNAL_OUT
        else:
            msg_type = MessageType.INTERNAL
        if msg_type != MessageType.INTERNAL:
            value = 0
        return cls(msg_type=msg_type, source=source, destination=destination, value=value)


class MessageList:
    """Lazily decoded outbound message set of a transaction.

    Holds either already decoded :class:`Message` objects or the raw entries
    returned by the ledger; decoding happens on :meth:`to_list`.
    """

    def __init__(self, entries: list[Message | dict[str, Any]] | None = None) -> None:
        self._entries = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def to_list(self) -> list[Message]:
        """Decode every entry.

        Raises:
            MessageDecodeError: If any entry is malformed.
        """
        messages: list[Message] = []
        for index, entry in enumerate(self._entries):
            if isinstance(entry, Message):
                messages.append(entry)
                continue
            try:
                messages.append(Message.from_dict(entry))
            except (KeyError, ValueError, TypeError, AttributeError) as exc:
                msg = f"out message #{index}: {exc!r}"
                raise MessageDecodeError(msg) from exc
        return messages


# ---------------------------------------------------------------------------
# Transaction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Transaction:
    """A finalized transaction of the watched account."""

    locator: TransactionLocator
    in_msg: Message | None = None
    out_msgs: MessageList | None = None
    utime: int = 0

    @property
    def lt(self) -> int:
        return self.locator.lt

    @property
    def hash(self) -> bytes:
        return self.locator.hash

    @property
    def hash_hex(self) -> str:
        return self.locator.hash_hex

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Create from a toncenter ``raw.transaction`` object.

        Outbound messages are kept raw and decoded on demand; a malformed
        inbound message or transaction id raises :class:`LedgerError`.
        """
        try:
            locator = TransactionLocator.from_dict(data["transaction_id"])
            raw_in = data.get("in_msg")
            in_msg = Message.from_dict(raw_in) if raw_in else None
        except (KeyError, ValueError, TypeError) as exc:
            msg = f"malformed transaction: {exc!r}"
            raise LedgerError(msg) from exc

        raw_out = data.get("out_msgs")
        out_msgs = MessageList(raw_out) if raw_out else None
        return cls(
            locator=locator,
            in_msg=in_msg,
            out_msgs=out_msgs,
            utime=int(data.get("utime", 0)),
        )


# ---------------------------------------------------------------------------
# Chain head / account state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockRef:
    """Reference to a masterchain block (the chain head)."""

    workchain: int
    shard: int
    seqno: int
    root_hash: str = ""
    file_hash: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BlockRef:
        """Create from a toncenter ``ton.blockIdExt`` object."""
        return cls(
            workchain=int(data.get("workchain", -1)),
            shard=int(data.get("shard", 0)),
            seqno=int(data["seqno"]),
            root_hash=data.get("root_hash", ""),
            file_hash=data.get("file_hash", ""),
        )


@dataclass(frozen=True)
class AccountState:
    """Current state of an account relevant to the observer."""

    address: str
    balance: int = 0
    last_tx: TransactionLocator | None = None

    @property
    def last_locator(self) -> TransactionLocator:
        """The last transaction locator, or the empty locator for a fresh account."""
        return self.last_tx or EMPTY_LOCATOR

    @classmethod
    def from_dict(cls, address: str, data: dict[str, Any]) -> AccountState:
        """Create from a toncenter ``raw.fullAccountState`` object."""
        raw_last = data.get("last_transaction_id") or {}
        last_tx = TransactionLocator.from_dict(raw_last) if raw_last else None
        if last_tx is not None and last_tx.is_empty:
            last_tx = None
        return cls(
            address=address,
            balance=int(data.get("balance") or 0),
            last_tx=last_tx,
        )
