"""ton-watcher - TON account SELL/BUY notifications for Telegram.

Usage:

    # Follow new transactions and notify every configured chat
    ton-watcher subscribe

    # Print the last page of transactions, newest first
    ton-watcher history [--notify]

Configuration comes from ``TONWATCH_*`` environment variables, a ``.env``
file or the YAML file named by ``TONWATCH_CONFIG_PATH``; at least
``TONWATCH_WATCHER__TARGET_ADDRESS`` and, for notifications,
``TONWATCH_TELEGRAM__TOKEN`` and ``TONWATCH_TELEGRAM__CHAT_IDS`` are required.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from prometheus_client import start_http_server

from ton_watcher.config.settings import AppConfig, LogLevel
from ton_watcher.errors.watcher_errors import WatcherError
from ton_watcher.ledger.address import Address
from ton_watcher.ledger.toncenter import ToncenterClient
from ton_watcher.metrics.collector import WatcherMetrics
from ton_watcher.notifications.dispatcher import NotificationDispatcher
from ton_watcher.notifications.telegram import TelegramTransport
from ton_watcher.observer.formatting import MarkdownV2Formatter, PlainTextFormatter
from ton_watcher.observer.lister import HistoricalLister
from ton_watcher.observer.tailer import LiveTailer

logger = logging.getLogger(__name__)


def _setup_logging(config: AppConfig) -> None:
    level = LogLevel.DEBUG if config.debug else config.log_level
    logging.basicConfig(
        level=level.value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _start_metrics(config: AppConfig) -> WatcherMetrics | None:
    if not config.metrics.enabled:
        return None
    metrics = WatcherMetrics()
    start_http_server(config.metrics.port, registry=metrics.registry)
    logger.info("Metrics exposed on port %d", config.metrics.port)
    return metrics


async def _subscribe(config: AppConfig) -> None:
    """Tail the target account until the subscription ends."""
    address = Address.parse(config.watcher.target_address)
    if not config.telegram.chat_ids:
        logger.warning("No Telegram chat ids configured, notifications go nowhere")
    metrics = _start_metrics(config)

    ledger = ToncenterClient(config.ledger)
    telegram = TelegramTransport(config.telegram)
    await ledger.connect()
    try:
        await telegram.connect()
        dispatcher = NotificationDispatcher(
            telegram,
            config.telegram.chat_ids,
            viewer_url=config.watcher.viewer_url,
            metrics=metrics,
        )
        tailer = LiveTailer(ledger, dispatcher, address, echo=print, metrics=metrics)
        await tailer.run()
    finally:
        await telegram.close()
        await ledger.close()


async def _history(config: AppConfig, *, notify: bool) -> None:
    """Print one page of past transactions, optionally notifying chats."""
    address = Address.parse(config.watcher.target_address)
    ledger = ToncenterClient(config.ledger)
    telegram: TelegramTransport | None = None
    await ledger.connect()
    try:
        dispatcher = None
        if notify:
            telegram = TelegramTransport(config.telegram)
            await telegram.connect()
            dispatcher = NotificationDispatcher(
                telegram, config.telegram.chat_ids, viewer_url=config.watcher.viewer_url
            )
        lister = HistoricalLister(
            ledger,
            address,
            dispatcher=dispatcher,
            formatter=MarkdownV2Formatter() if notify else PlainTextFormatter(),
            page_size=config.watcher.page_size,
            notify=notify,
            echo=print,
        )
        print("\nTransactions:")
        page = await lister.fetch_page()
        logger.info("Listed %d transactions", len(page))
    finally:
        if telegram is not None:
            await telegram.close()
        await ledger.close()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(__doc__)
        sys.exit(1)

    cmd = args[0].lower()
    config = AppConfig()
    _setup_logging(config)

    if cmd == "subscribe":
        coro = _subscribe(config)
    elif cmd == "history":
        notify = "--notify" in args[1:] or config.watcher.notify_history
        coro = _history(config, notify=notify)
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)
        sys.exit(1)

    try:
        asyncio.run(coro)
    except WatcherError as exc:
        logger.critical("%s (%s)", exc.message, exc.code)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
