"""Payment Provider Client — creates hosted payment sessions over HTTP with httpx.

Invariants:
    - Only server-computed amounts are sent; the caller passes a PaymentRequest built
      from a ValidatedCart
    - Transient failures (connection errors, 5xx): bounded retries with exponential backoff
    - Client errors (4xx): immediate failure, no retry
    - Every request carries Idempotency-Key = order reference, so retries never double-charge
    - All failures mapped to PaymentProviderError (core/errors.py)

Design Decisions:
    - Wrapper over raw httpx: isolates retry and error mapping from the checkout flow
    - ±25% jitter on backoff: prevents synchronized retries across instances
"""

import asyncio
import logging
import random

import httpx

from checkout_guard.core.domain_types import PaymentRequest, PaymentSession
from checkout_guard.core.errors import PaymentProviderError

logger = logging.getLogger(__name__)


class HttpPaymentGateway:
    """PaymentGateway backed by the provider's REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        base_delay_ms: int = 250,
        client: httpx.AsyncClient | None = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers={"Authorization": f"Bearer {api_key}"},
        )
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms

    async def create_session(self, request: PaymentRequest) -> PaymentSession:
        payload = {
            "reference": request.reference,
            "amount": {"value": request.amount_minor, "currency": "NOK"},
            "description": request.description,
            "customer": {
                "email": request.customer_email,
                "phone": request.customer_phone,
            },
            "return_url": request.return_url,
            "locale": request.locale,
        }
        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.post(
                    "/payments",
                    json=payload,
                    headers={"Idempotency-Key": request.reference},
                )
            except httpx.TimeoutException as e:
                raise PaymentProviderError(f"timeout: {e}")
            except httpx.TransportError as e:
                await self._handle_transient(f"connection error: {e}", attempt)
                continue

            if response.status_code >= 500:
                await self._handle_transient(
                    f"status {response.status_code}", attempt,
                )
                continue
            if response.status_code >= 400:
                raise PaymentProviderError(
                    f"status {response.status_code}: {response.text[:200]}",
                )
            return self._parse_session(response)

        raise PaymentProviderError("retries exhausted")

    def _parse_session(self, response: httpx.Response) -> PaymentSession:
        try:
            data = response.json()
            session = PaymentSession(
                session_id=str(data["id"]),
                redirect_url=str(data["redirect_url"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise PaymentProviderError(f"malformed response: {e}")
        if not session.redirect_url:
            raise PaymentProviderError("response without redirect_url")
        return session

    async def _handle_transient(self, detail: str, attempt: int) -> None:
        if attempt >= self.max_retries:
            raise PaymentProviderError(
                f"transient failure after {self.max_retries} retries: {detail}",
            )
        delay = self._backoff(attempt)
        logger.warning(f"Payment provider {detail}, retry after {delay}ms")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = (2 ** attempt) * self.base_delay_ms
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    async def close(self) -> None:
        await self._client.aclose()
