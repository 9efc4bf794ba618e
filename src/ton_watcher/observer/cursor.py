"""Transaction cursor - resumable position in an account's transaction log."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ton_watcher.errors.watcher_errors import CursorError
from ton_watcher.ledger.models import TransactionLocator

if TYPE_CHECKING:
    from ton_watcher.ledger.models import Transaction


class TransactionCursor:
    """Last processed ``(lt, hash)`` of the watched account.

    Only ever moves forward. Persisting it across restarts is up to the
    embedding application (see :meth:`to_dict` / :meth:`from_dict`).
    """

    def __init__(self, locator: TransactionLocator) -> None:
        self._locator = locator

    def __repr__(self) -> str:
        return f"TransactionCursor(lt={self.lt}, hash={self.locator.hash_hex!r})"

    @classmethod
    def from_locator(cls, locator: TransactionLocator) -> TransactionCursor:
        return cls(locator)

    @property
    def locator(self) -> TransactionLocator:
        return self._locator

    @property
    def lt(self) -> int:
        return self._locator.lt

    @property
    def hash(self) -> bytes:
        return self._locator.hash

    def has_seen(self, tx: Transaction) -> bool:
        """Whether *tx* is at or before the cursor."""
        return tx.lt <= self.lt

    def advance(self, tx: Transaction) -> None:
        """Move the cursor to *tx*.

        Raises:
            CursorError: If *tx* is older than the current position.
        """
        if tx.lt < self.lt:
            msg = f"cannot move cursor back from lt {self.lt} to lt {tx.lt}"
            raise CursorError(msg)
        self._locator = tx.locator

    def to_dict(self) -> dict[str, str]:
        """Serialize to a JSON-friendly dict (lt as string, hash as hex)."""
        return {"lt": str(self.lt), "hash": self._locator.hash_hex}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionCursor:
        """Restore a cursor saved with :meth:`to_dict`."""
        return cls(TransactionLocator(lt=int(data["lt"]), hash=bytes.fromhex(data.get("hash", ""))))
