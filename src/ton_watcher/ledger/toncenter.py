"""toncenter HTTP client - chain head, account state, transactions.

Async HTTP client for the public toncenter API v2:
- GET /getMasterchainInfo - current masterchain head
- GET /lookupBlock - block readiness check
- GET /getAddressInformation - account state (last transaction id)
- GET /getTransactions - backward-paginated transaction history

Live subscription is implemented by polling the account state and paging
back from the new last transaction to the cursor. Transient failures
(transport errors, 429, 5xx) are retried inside each request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from ton_watcher.errors.watcher_errors import LedgerError
from ton_watcher.ledger.models import AccountState, BlockRef, Transaction

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ton_watcher.config.settings import LedgerConfig
    from ton_watcher.ledger.address import Address
    from ton_watcher.ledger.models import TransactionLocator

logger = logging.getLogger(__name__)


class ToncenterClient:
    """Async :class:`~ton_watcher.ledger.base.LedgerClient` backed by toncenter.

    Usage::

        ledger = ToncenterClient(config)
        await ledger.connect()
        try:
            head = await ledger.get_chain_head()
            state = await ledger.get_account_state(head, address)
        finally:
            await ledger.close()
    """

    def __init__(self, config: LedgerConfig) -> None:
        """Initialize the toncenter client.

        Args:
            config: Ledger configuration (url, api_key, polling settings).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:  # noqa: ASYNC910
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._config.api_key:
            headers["X-API-Key"] = self._config.api_key

        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers=headers,
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

    # ------------------------------------------------------------------
    # LedgerClient API
    # ------------------------------------------------------------------

    async def get_chain_head(self) -> BlockRef:
        """Return the last finalized masterchain block.

        Raises:
            LedgerError: On HTTP or API errors.
        """
        result = await self._call("getMasterchainInfo")
        try:
            return BlockRef.from_dict(result["last"])
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"malformed masterchain info: {exc!r}"
            raise LedgerError(msg) from exc

    async def wait_for_block(self, head: BlockRef) -> None:
        """Poll ``lookupBlock`` until *head* is known to the node.

        Raises:
            LedgerError: If the block is still unavailable after
                ``ready_attempts`` tries.
        """
        params = {"workchain": head.workchain, "shard": head.shard, "seqno": head.seqno}
        last_error: LedgerError | None = None
        for attempt in range(self._config.ready_attempts):
            try:
                await self._call("lookupBlock", params)
                return
            except LedgerError as exc:
                last_error = exc
                logger.debug(
                    "Block %d not ready (attempt %d/%d): %s",
                    head.seqno,
                    attempt + 1,
                    self._config.ready_attempts,
                    exc,
                )
            await asyncio.sleep(self._config.ready_delay)
        msg = f"block {head.seqno} not ready: {last_error}"
        raise LedgerError(msg, code="block-not-ready")

    async def get_account_state(self, head: BlockRef, address: Address) -> AccountState:
        """Return the account state of *address* at *head*.

        Raises:
            LedgerError: On HTTP or API errors.
        """
        result = await self._call(
            "getAddressInformation",
            {"address": str(address), "seqno": head.seqno},
        )
        try:
            return AccountState.from_dict(str(address), result)
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"malformed account state for {address}: {exc!r}"
            raise LedgerError(msg) from exc

    async def list_transactions(
        self, address: Address, limit: int, locator: TransactionLocator
    ) -> list[Transaction]:
        """Return up to *limit* transactions ending at *locator* (inclusive).

        Raises:
            LedgerError: On HTTP or API errors.
        """
        if locator.is_empty:
            return []
        return await self._get_transactions(address, limit, locator)

    async def subscribe_transactions(
        self, address: Address, since: TransactionLocator
    ) -> AsyncIterator[Transaction]:
        """Yield transactions newer than *since*, oldest first, forever.

        The account is polled every ``poll_interval`` seconds; each poll pages
        backward from the current last transaction down to the last yielded one.
        """
        known = since
        while True:
            head = await self.get_chain_head()
            state = await self.get_account_state(head, address)
            latest = state.last_locator
            if latest.lt > known.lt:
                fresh = await self._collect_since(address, latest, known)
                for tx in fresh:
                    yield tx
                    known = tx.locator
            await asyncio.sleep(self._config.poll_interval)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _collect_since(
        self,
        address: Address,
        latest: TransactionLocator,
        since: TransactionLocator,
    ) -> list[Transaction]:
        """Page backward from *latest* and return transactions after *since*, oldest first."""
        limit = self._config.page_limit
        collected: list[Transaction] = []
        cursor = latest
        while True:
            batch = await self._get_transactions(address, limit, cursor, to_lt=since.lt)
            upper = collected[-1].lt if collected else latest.lt + 1
            fresh = sorted(
                (tx for tx in batch if since.lt < tx.lt < upper),
                key=lambda tx: tx.lt,
                reverse=True,
            )
            collected.extend(fresh)
            if len(batch) < limit or not fresh:
                break
            cursor = collected[-1].locator
        collected.reverse()
        return collected

    async def _get_transactions(
        self,
        address: Address,
        limit: int,
        locator: TransactionLocator,
        *,
        to_lt: int = 0,
    ) -> list[Transaction]:
        params: dict[str, Any] = {
            "address": str(address),
            "limit": limit,
            "lt": locator.lt,
            "hash": locator.hash_hex,
            "archival": "true",
        }
        if to_lt:
            params["to_lt"] = to_lt
        result = await self._call("getTransactions", params)
        if not isinstance(result, list):
            msg = f"getTransactions returned {type(result).__name__}, expected list"
            raise LedgerError(msg)
        return [Transaction.from_dict(item) for item in result]

    async def _call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``/<method>`` and unwrap the ``{"ok": ..., "result": ...}`` envelope.

        Transport errors, rate limiting (429) and 5xx answers are retried up to
        ``max_retries`` times, ``retry_delay`` seconds apart.

        Raises:
            LedgerError: On a non-retryable error or once retries run out.
        """
        client = self._ensure_connected()
        max_retries = self._config.max_retries
        last_error = LedgerError(f"toncenter {method} failed")
        for attempt in range(max_retries + 1):
            try:
                response = await client.get(f"/{method}", params=params)
            except httpx.HTTPError as exc:
                last_error = LedgerError(f"toncenter {method} failed: {exc}")
                last_error.__cause__ = exc
            else:
                body = _json_body(response)
                if response.status_code == 200 and body.get("ok", False):
                    return body.get("result")
                detail = body.get("error") or response.text
                msg = f"toncenter {method} failed ({response.status_code}): {detail}"
                last_error = LedgerError(msg)
                if not _is_retryable(response.status_code):
                    raise last_error

            if attempt < max_retries:
                logger.warning(
                    "%s (attempt %d/%d)", last_error.message, attempt + 1, max_retries + 1
                )
                await asyncio.sleep(self._config.retry_delay)
        raise last_error

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            msg = "toncenter client not connected. Call connect() first."
            raise LedgerError(msg)
        return self._client


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _is_retryable(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500
