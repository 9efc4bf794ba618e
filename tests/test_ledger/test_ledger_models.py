"""Tests for ledger data models."""

from __future__ import annotations

import base64

import pytest
from conftest import tx_hash

from ton_watcher.errors.watcher_errors import LedgerError, MessageDecodeError
from ton_watcher.ledger.models import (
    EMPTY_LOCATOR,
    AccountState,
    BlockRef,
    Message,
    MessageList,
    MessageType,
    Transaction,
    TransactionLocator,
    decode_hash,
)

# ---------------------------------------------------------------------------
# Hash / locator
# ---------------------------------------------------------------------------


class TestDecodeHash:
    def test_hex(self) -> None:
        assert decode_hash(tx_hash(1).hex()) == tx_hash(1)

    def test_base64(self) -> None:
        assert decode_hash(base64.b64encode(tx_hash(1)).decode()) == tx_hash(1)

    def test_base64_url_safe(self) -> None:
        assert decode_hash(base64.urlsafe_b64encode(tx_hash(2)).decode()) == tx_hash(2)

    def test_empty(self) -> None:
        assert decode_hash("") == b""

    def test_garbage(self) -> None:
        with pytest.raises(ValueError, match="cannot decode"):
            decode_hash("not a hash!")


class TestTransactionLocator:
    def test_from_dict(self) -> None:
        loc = TransactionLocator.from_dict(
            {"lt": "47000000000003", "hash": base64.b64encode(tx_hash(3)).decode()}
        )
        assert loc.lt == 47000000000003
        assert loc.hash == tx_hash(3)
        assert loc.hash_hex == tx_hash(3).hex()

    def test_empty(self) -> None:
        assert EMPTY_LOCATOR.is_empty
        assert not TransactionLocator(lt=1).is_empty

    def test_equality_includes_hash(self) -> None:
        assert TransactionLocator(lt=1, hash=b"a") != TransactionLocator(lt=1, hash=b"b")
        assert TransactionLocator(lt=1, hash=b"a") == TransactionLocator(lt=1, hash=b"a")


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class TestMessage:
    def test_internal(self) -> None:
        msg = Message.from_dict({"source": "A", "destination": "B", "value": "1500"})
        assert msg.msg_type == MessageType.INTERNAL
        assert msg.is_internal
        assert msg.value == 1500

    def test_external_in(self) -> None:
        msg = Message.from_dict({"source": "", "destination": "B", "value": "0"})
        assert msg.msg_type == MessageType.EXTERNAL_IN
        assert not msg.is_internal

    def test_external_out_has_no_value(self) -> None:
        msg = Message.from_dict({"source": "A", "destination": "", "value": "77"})
        assert msg.msg_type == MessageType.EXTERNAL_OUT
        assert msg.value == 0

    def test_wrapped_address(self) -> None:
        msg = Message.from_dict(
            {"source": {"account_address": "A"}, "destination": {"account_address": "B"}}
        )
        assert (msg.source, msg.destination, msg.value) == ("A", "B", 0)

    def test_negative_value(self) -> None:
        with pytest.raises(ValueError, match="negative"):
            Message.from_dict({"source": "A", "destination": "B", "value": "-1"})

    def test_missing_field(self) -> None:
        with pytest.raises(KeyError):
            Message.from_dict({"destination": "B"})


class TestMessageList:
    def test_mixed_entries(self) -> None:
        decoded = Message(msg_type=MessageType.INTERNAL, source="A", destination="B", value=1)
        messages = MessageList(
            [decoded, {"source": "A", "destination": "C", "value": "2"}]
        ).to_list()
        assert len(messages) == 2
        assert messages[0] is decoded
        assert messages[1].destination == "C"

    def test_decode_error_names_entry(self) -> None:
        entries = [{"source": "A", "destination": "B", "value": "1"}, {"value": "abc"}]
        with pytest.raises(MessageDecodeError, match="#1") as exc_info:
            MessageList(entries).to_list()
        assert exc_info.value.code == "message-decode-error"

    def test_len(self) -> None:
        assert len(MessageList()) == 0
        assert len(MessageList([{}, {}])) == 2


# ---------------------------------------------------------------------------
# Transaction / head / account
# ---------------------------------------------------------------------------


def _raw_tx(lt: int, **extra) -> dict:
    data = {
        "utime": 1700000000,
        "transaction_id": {"lt": str(lt), "hash": base64.b64encode(tx_hash(lt)).decode()},
        "in_msg": {"source": "Src", "destination": "Me", "value": "1000000000"},
        "out_msgs": [],
    }
    data.update(extra)
    return data


class TestTransaction:
    def test_from_dict(self) -> None:
        tx = Transaction.from_dict(_raw_tx(10))
        assert tx.lt == 10
        assert tx.hash == tx_hash(10)
        assert tx.hash_hex == tx_hash(10).hex()
        assert tx.utime == 1700000000
        assert tx.in_msg is not None and tx.in_msg.value == 10**9
        assert tx.out_msgs is None

    def test_out_messages_are_lazy(self) -> None:
        tx = Transaction.from_dict(_raw_tx(11, out_msgs=[{"bogus": True}]))
        assert tx.out_msgs is not None
        assert len(tx.out_msgs) == 1
        with pytest.raises(MessageDecodeError):
            tx.out_msgs.to_list()

    def test_missing_in_msg(self) -> None:
        tx = Transaction.from_dict(_raw_tx(12, in_msg=None))
        assert tx.in_msg is None

    def test_malformed_id(self) -> None:
        data = _raw_tx(13)
        del data["transaction_id"]
        with pytest.raises(LedgerError, match="malformed transaction"):
            Transaction.from_dict(data)


class TestBlockRef:
    def test_from_dict(self) -> None:
        ref = BlockRef.from_dict(
            {"workchain": -1, "shard": "-9223372036854775808", "seqno": 123, "root_hash": "r"}
        )
        assert ref == BlockRef(workchain=-1, shard=-(2**63), seqno=123, root_hash="r")


class TestAccountState:
    def test_from_dict(self) -> None:
        state = AccountState.from_dict(
            "addr",
            {
                "balance": "5000",
                "last_transaction_id": {"lt": "42", "hash": tx_hash(42).hex()},
            },
        )
        assert state.balance == 5000
        assert state.last_locator == TransactionLocator(lt=42, hash=tx_hash(42))

    def test_fresh_account(self) -> None:
        state = AccountState.from_dict(
            "addr", {"balance": "0", "last_transaction_id": {"lt": "0", "hash": ""}}
        )
        assert state.last_tx is None
        assert state.last_locator.is_empty
