"""Telegram Bot API transport - ``sendMessage`` with an inline link button.

- POST /bot<token>/sendMessage
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from ton_watcher.errors.watcher_errors import TransportError

if TYPE_CHECKING:
    from ton_watcher.config.settings import TelegramConfig

PARSE_MODE = "MarkdownV2"
LINK_BUTTON_TEXT = "VIEW TX"


class TelegramTransport:
    """Async :class:`~ton_watcher.notifications.dispatcher.MessageTransport` for Telegram.

    Usage::

        telegram = TelegramTransport(config)
        await telegram.connect()
        try:
            await telegram.send_message(chat_id, text, link)
        finally:
            await telegram.close()
    """

    def __init__(self, config: TelegramConfig) -> None:
        """Initialize the transport.

        Args:
            config: Telegram configuration (token, api_url, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:  # noqa: ASYNC910
        """Create the underlying HTTP client."""
        if not self._config.token:
            msg = "Telegram bot token is not configured"
            raise TransportError(msg)
        self._client = httpx.AsyncClient(
            base_url=f"{self._config.api_url.rstrip('/')}/bot{self._config.token}",
            headers={"Content-Type": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    @staticmethod
    def build_payload(chat_id: int | str, text: str, link_url: str | None) -> dict[str, Any]:
        """Build the ``sendMessage`` request body."""
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": PARSE_MODE,
            "disable_web_page_preview": True,
        }
        if link_url:
            payload["reply_markup"] = {
                "inline_keyboard": [[{"text": LINK_BUTTON_TEXT, "url": link_url}]],
            }
        return payload

    async def send_message(self, recipient: int | str, text: str, link_url: str | None) -> None:
        """Send a message to one chat.

        Raises:
            TransportError: On HTTP errors or a non-ok Bot API response.
        """
        client = self._ensure_connected()
        try:
            response = await client.post(
                "/sendMessage", json=self.build_payload(recipient, text, link_url)
            )
        except httpx.HTTPError as exc:
            # The request URL embeds the bot token; keep it out of the message.
            msg = f"sendMessage to {recipient} failed: {type(exc).__name__}"
            raise TransportError(msg, recipient=recipient) from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if response.status_code != 200 or not body.get("ok", False):
            detail = body.get("description") or response.reason_phrase
            msg = f"sendMessage to {recipient} failed ({response.status_code}): {detail}"
            raise TransportError(msg, recipient=recipient)

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "Telegram transport not connected. Call connect() first."
            raise TransportError(msg)
        return self._client
