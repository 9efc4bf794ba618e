"""WatcherError - base exception class for all ton-watcher errors."""

from __future__ import annotations


class WatcherError(Exception):
    """Base error for all watcher operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
    """

    def __init__(self, message: str, *, code: str = "watcher-error") -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class LedgerError(WatcherError):
    """Error talking to the ledger (chain head, account state, subscription)."""

    def __init__(self, message: str, *, code: str = "ledger-error") -> None:
        super().__init__(message, code=code)


class AddressError(WatcherError):
    """Malformed account address."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="invalid-address")


class MessageDecodeError(WatcherError):
    """Outbound message set of a transaction could not be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="message-decode-error")


class TransportError(WatcherError):
    """Notification delivery to a single recipient failed."""

    def __init__(self, message: str, *, recipient: int | str | None = None) -> None:
        super().__init__(message, code="transport-error")
        self.recipient = recipient


class CursorError(WatcherError):
    """Attempt to move the transaction cursor backwards."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="cursor-regression")
