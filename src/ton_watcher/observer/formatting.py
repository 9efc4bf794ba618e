"""Amount conversion and message formatters.

The classifier produces a :class:`ClassificationResult`; a formatter turns
it into text for a particular display transport:

- ``MarkdownV2Formatter`` - Telegram MarkdownV2 (bold labels, code spans)
- ``PlainTextFormatter`` - console output
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ton_watcher.observer.classifier import ClassificationResult

NANO_DECIMALS = 9
CURRENCY = "TON"

SELL_LABEL = "TOKEN SELL"
BUY_LABEL = "TOKEN BUY"
DECODE_ERROR_PREFIX = "OUT MESSAGES NOT PARSED DUE TO ERR: "

_MARKDOWN_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")
_CODE_SPECIAL = re.compile(r"([`\\])")


def format_nano(value: int, decimals: int = NANO_DECIMALS) -> str:
    """Convert an amount in the smallest unit into its exact decimal form.

    ``1_000_000_000`` → ``"1"``, ``750_000_000`` → ``"0.75"``. Integer
    arithmetic only, so values beyond 64 bits stay exact.
    """
    if value < 0:
        msg = f"amount must be non-negative, got {value}"
        raise ValueError(msg)
    whole, frac = divmod(value, 10**decimals)
    if not frac:
        return str(whole)
    return f"{whole}.{frac:0{decimals}d}".rstrip("0")


def escape_markdown(text: str) -> str:
    """Escape text for use outside code spans in Telegram MarkdownV2."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


class MessageFormatter(Protocol):
    """Renders classification results for one display transport."""

    def render(self, result: ClassificationResult) -> str: ...

    def render_error(self, error: str) -> str: ...


class MarkdownV2Formatter:
    """Telegram MarkdownV2 layout."""

    @staticmethod
    def _code(text: str) -> str:
        return "`" + _CODE_SPECIAL.sub(r"\\\1", text) + "`"

    def render(self, result: ClassificationResult) -> str:
        parts: list[str] = []
        if result.is_sell:
            parts.append(f"*{SELL_LABEL}*\n")
            parts.append(f"Amount: {self._code(f'{format_nano(result.sell_amount)} {CURRENCY}')}\n")
            parts.append(f"From: {self._code(result.source)}\n")
        if result.is_buy:
            parts.append(f"*{BUY_LABEL}*\n")
            parts.append(f"Amount: {self._code(f'{format_nano(result.buy_amount)} {CURRENCY}')}\n")
            parts.append("To: ")
            parts.extend(f"{self._code(dst)}\n" for dst in result.counterparties)
        return "".join(parts)

    def render_error(self, error: str) -> str:
        return "\n" + escape_markdown(DECODE_ERROR_PREFIX + error)


class PlainTextFormatter:
    """Unformatted layout for terminals and logs."""

    def render(self, result: ClassificationResult) -> str:
        lines: list[str] = []
        if result.is_sell:
            lines.append(SELL_LABEL)
            lines.append(f"Amount: {format_nano(result.sell_amount)} {CURRENCY}")
            lines.append(f"From: {result.source}")
        if result.is_buy:
            lines.append(BUY_LABEL)
            lines.append(f"Amount: {format_nano(result.buy_amount)} {CURRENCY}")
            lines.append("To:")
            lines.extend(f"  {dst}" for dst in result.counterparties)
        return "\n".join(lines) + "\n" if lines else ""

    def render_error(self, error: str) -> str:
        return "\n" + DECODE_ERROR_PREFIX + error


DEFAULT_FORMATTER: MessageFormatter = MarkdownV2Formatter()
