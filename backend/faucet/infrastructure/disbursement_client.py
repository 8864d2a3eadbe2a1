"""Resilient Disbursement Client — posts token transfers to the external relay.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection): bounded retries with exponential backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - Every attempt for one claim carries the same Idempotency-Key header
    - Every httpx failure is mapped to DisbursementError (core/errors.py);
      nothing from httpx escapes disburse()

Design Decisions:
    - httpx.AsyncClient owned by the client and closed on shutdown (lifespan)
    - Retries are safe only because the relay dedupes on Idempotency-Key
    - Per-request timeout here; the engine additionally bounds the whole call
      (retries included) so a claim never hangs
"""

import asyncio
import logging
import random
from decimal import Decimal

import httpx

from faucet.core.domain_types import WalletAddress
from faucet.core.errors import DisbursementError, ErrorContext
from faucet.core.repository_protocols import DisbursementReceipt

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {500, 502, 503, 504}


class HttpDisbursementClient:
    """Wraps httpx with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        chain_id: int,
        max_retries: int = 2,
        base_delay_ms: int = 250,
        max_delay_ms: int = 5_000,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Authorization": f"Bearer {api_key}"},
            transport=transport,
        )
        self.chain_id = chain_id
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def disburse(
        self, address: WalletAddress, amount: Decimal, idempotency_key: str,
    ) -> DisbursementReceipt:
        """Request a transfer of `amount` to `address`, retrying transient failures."""
        context = ErrorContext(address=address)
        payload = {
            "address": address,
            "amount": format(amount, "f"),
            "chainId": self.chain_id,
        }
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(
                    "/transfers",
                    json=payload,
                    headers={"Idempotency-Key": idempotency_key},
                )
            except httpx.TimeoutException:
                raise DisbursementError(
                    "Relay timeout", "timeout", context=context,
                )
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, context)
                continue
            except httpx.HTTPError as e:
                # Undecodable body, redirect loop: the relay answered, not retried here
                raise DisbursementError(
                    f"Unusable relay response ({type(e).__name__})",
                    "bad_response", context=context,
                )

            if response.status_code == 429:
                await self._handle_rate_limit(response, attempt, context)
                continue
            if response.status_code in _RETRYABLE_STATUS:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt, context,
                )
                continue
            if response.is_error:
                raise DisbursementError(
                    f"Relay rejected transfer (HTTP {response.status_code})",
                    "client_error", context=context,
                )
            return self._parse_receipt(response, attempt, context)

        raise DisbursementError(
            "Retries exhausted", "connection_error", context=context,
        )

    async def close(self) -> None:
        await self.client.aclose()

    def _parse_receipt(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> DisbursementReceipt:
        try:
            body = response.json()
        except ValueError:
            raise DisbursementError(
                "Relay returned non-JSON body", "bad_response", context=context,
            )
        if not isinstance(body, dict) or body.get("status", "success") != "success":
            raise DisbursementError(
                "Relay reported transfer failure", "transfer_failed",
                context=context,
            )
        tx_hash = body.get("txHash")
        logger.info(
            "Disbursement accepted",
            extra={
                "address": context.address, "tx_hash": tx_hash,
                "attempt": attempt + 1,
            },
        )
        return DisbursementReceipt(tx_hash=tx_hash)

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext,
    ) -> None:
        """Handle rate limit with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise DisbursementError(
                "Relay rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Relay rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise DisbursementError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient relay error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None
