"""Notification fan-out - deliver one message to every recipient.

Each recipient is attempted independently and concurrently; a failed
delivery is logged and reported but never raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from ton_watcher.config.settings import DEFAULT_VIEWER_URL

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ton_watcher.metrics.collector import WatcherMetrics

logger = logging.getLogger(__name__)

Recipient = int | str


class MessageTransport(Protocol):
    """Outbound messaging transport."""

    async def send_message(self, recipient: Recipient, text: str, link_url: str | None) -> None:
        """Deliver *text* with an optional link button to *recipient*.

        Raises:
            Exception: Any delivery failure.
        """
        ...


@dataclass(frozen=True)
class DispatchReport:
    """Outcome of one fan-out."""

    delivered: tuple[Recipient, ...] = ()
    failed: dict[Recipient, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


class NotificationDispatcher:
    """Formats the transaction link and fans a message out to all recipients.

    Usage::

        dispatcher = NotificationDispatcher(transport, [558161625, 162332155])
        report = await dispatcher.dispatch(text, tx_hash_hex)
    """

    def __init__(
        self,
        transport: MessageTransport,
        recipients: Iterable[Recipient],
        *,
        viewer_url: str = DEFAULT_VIEWER_URL,
        metrics: WatcherMetrics | None = None,
    ) -> None:
        self._transport = transport
        # Insertion-ordered and de-duplicated; never mutated afterwards.
        self._recipients: tuple[Recipient, ...] = tuple(dict.fromkeys(recipients))
        self._viewer_url = viewer_url
        self._metrics = metrics

    @property
    def recipients(self) -> tuple[Recipient, ...]:
        return self._recipients

    def link_for(self, tx_hash_hex: str) -> str | None:
        """Explorer link for a transaction; None without a hash."""
        if not tx_hash_hex:
            return None
        return self._viewer_url + tx_hash_hex

    async def dispatch(
        self,
        text: str,
        tx_hash_hex: str,
        recipients: Iterable[Recipient] | None = None,
    ) -> DispatchReport:
        """Send *text* to every recipient, isolating per-recipient failures."""
        if not text:
            return DispatchReport()
        targets = self._recipients if recipients is None else tuple(dict.fromkeys(recipients))
        if not targets:
            return DispatchReport()

        link = self.link_for(tx_hash_hex)
        if self._metrics:
            with self._metrics.track_dispatch():
                results = await self._send_all(targets, text, link)
        else:
            results = await self._send_all(targets, text, link)

        delivered: list[Recipient] = []
        failed: dict[Recipient, str] = {}
        for recipient, result in zip(targets, results, strict=True):
            ok = not isinstance(result, BaseException)
            if ok:
                delivered.append(recipient)
            else:
                failed[recipient] = str(result) or type(result).__name__
                logger.warning("Notification to %s failed: %s", recipient, failed[recipient])
            if self._metrics:
                self._metrics.record_delivery(ok=ok)
        return DispatchReport(delivered=tuple(delivered), failed=failed)

    async def _send_all(
        self, targets: tuple[Recipient, ...], text: str, link: str | None
    ) -> list[object]:
        return await asyncio.gather(
            *(self._transport.send_message(r, text, link) for r in targets),
            return_exceptions=True,
        )
