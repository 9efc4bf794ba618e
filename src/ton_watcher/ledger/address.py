"""TON address parsing - user-friendly and raw forms.

Supported inputs:
- user-friendly: 48 base64 / base64url characters encoding
  ``tag(1) | workchain(1) | account_id(32) | crc16(2)``
- raw: ``<workchain>:<64 hex chars>``
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from ton_watcher.errors.watcher_errors import AddressError

_BOUNCEABLE_TAG = 0x11
_NON_BOUNCEABLE_TAG = 0x51
_TESTNET_FLAG = 0x80


def crc16(data: bytes) -> int:
    """CRC16/XMODEM checksum used by user-friendly addresses."""
    crc = 0
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else (crc << 1)
            crc &= 0xFFFF
    return crc


@dataclass(frozen=True)
class Address:
    """A validated TON account address.

    ``text`` keeps the form the address was given in, so it renders back
    exactly as the operator configured it.
    """

    workchain: int
    account_id: bytes
    bounceable: bool = True
    testnet: bool = False
    text: str = ""

    def __str__(self) -> str:
        return self.text or self.raw

    @property
    def raw(self) -> str:
        return f"{self.workchain}:{self.account_id.hex()}"

    def to_friendly(self, *, url_safe: bool = True) -> str:
        """Encode as a 48-character user-friendly address."""
        tag = _BOUNCEABLE_TAG if self.bounceable else _NON_BOUNCEABLE_TAG
        if self.testnet:
            tag |= _TESTNET_FLAG
        body = bytes([tag, self.workchain & 0xFF]) + self.account_id
        payload = body + crc16(body).to_bytes(2, "big")
        if url_safe:
            return base64.urlsafe_b64encode(payload).decode()
        return base64.b64encode(payload).decode()

    @classmethod
    def parse(cls, value: str) -> Address:
        """Parse and validate an address string.

        Raises:
            AddressError: If the address is malformed or its checksum is wrong.
        """
        value = value.strip()
        if ":" in value:
            return cls._parse_raw(value)
        return cls._parse_friendly(value)

    @classmethod
    def _parse_raw(cls, value: str) -> Address:
        wc_text, _, hex_part = value.partition(":")
        try:
            workchain = int(wc_text)
            account_id = bytes.fromhex(hex_part)
        except ValueError as exc:
            msg = f"invalid raw address {value!r}"
            raise AddressError(msg) from exc
        if len(account_id) != 32:
            msg = f"invalid raw address {value!r}: account id must be 32 bytes"
            raise AddressError(msg)
        return cls(workchain=workchain, account_id=account_id, text=value)

    @classmethod
    def _parse_friendly(cls, value: str) -> Address:
        if len(value) != 48:
            msg = f"invalid address {value!r}: expected 48 characters, got {len(value)}"
            raise AddressError(msg)
        try:
            payload = base64.urlsafe_b64decode(value.replace("+", "-").replace("/", "_"))
        except (binascii.Error, ValueError) as exc:
            msg = f"invalid address {value!r}: not base64"
            raise AddressError(msg) from exc
        if len(payload) != 36:
            msg = f"invalid address {value!r}: bad length"
            raise AddressError(msg)

        body, checksum = payload[:34], payload[34:]
        if crc16(body).to_bytes(2, "big") != checksum:
            msg = f"invalid address {value!r}: checksum mismatch"
            raise AddressError(msg)

        tag = body[0]
        testnet = bool(tag & _TESTNET_FLAG)
        tag &= ~_TESTNET_FLAG
        if tag not in (_BOUNCEABLE_TAG, _NON_BOUNCEABLE_TAG):
            msg = f"invalid address {value!r}: unknown tag 0x{tag:02x}"
            raise AddressError(msg)

        workchain = body[1] - 256 if body[1] > 127 else body[1]
        return cls(
            workchain=workchain,
            account_id=body[2:],
            bounceable=tag == _BOUNCEABLE_TAG,
            testnet=testnet,
            text=value,
        )
