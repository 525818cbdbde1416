"""Stripe billing client over the REST API."""

import hashlib
import hmac
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class BillingProviderError(Exception):
    """Raised when the billing provider answers with an error or is unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class WebhookSignatureError(ValueError):
    """Raised when a webhook payload does not carry a valid signature."""


class StripeClient:
    """Minimal Stripe subscriptions client.

    Created once per process (see ``stockroom.main.lifespan``) and closed on
    shutdown. ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    STRIPE_API_BASE = "https://api.stripe.com/v1"
    API_VERSION = "2023-10-16"
    WEBHOOK_TOLERANCE_SECONDS = 300

    def __init__(
        self,
        secret_key: str,
        webhook_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.STRIPE_API_BASE,
                auth=(self.secret_key, ""),
                headers={
                    "Stripe-Version": self.API_VERSION,
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Stripe request {path} failed: {e}")
            raise BillingProviderError(str(e)) from e

        if response.status_code != 200:
            error = {}
            try:
                error = response.json().get("error", {})
            except ValueError:
                pass
            raise BillingProviderError(
                error.get("message", f"HTTP {response.status_code}"),
                status_code=response.status_code,
                code=error.get("code"),
            )
        return response.json()

    async def list_subscriptions(self, customer_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """All subscriptions of a customer, any status."""
        result = await self._get(
            "/subscriptions",
            params={"customer": customer_id, "status": "all", "limit": str(limit)},
        )
        return result.get("data", [])

    async def retrieve_subscription(self, subscription_id: str) -> Dict[str, Any]:
        return await self._get(f"/subscriptions/{subscription_id}")

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify a ``Stripe-Signature`` header against the raw body."""
        if not self.webhook_secret:
            logger.warning("Webhook secret not configured, rejecting webhook")
            return False

        sig_parts: Dict[str, List[str]] = {}
        for part in signature.split(","):
            key, sep, value = part.strip().partition("=")
            if sep:
                sig_parts.setdefault(key, []).append(value)

        timestamps = sig_parts.get("t") or []
        expected_sigs = sig_parts.get("v1") or []
        if not timestamps or not expected_sigs:
            return False

        try:
            timestamp = int(timestamps[0])
        except ValueError:
            return False

        # Allow 5 min tolerance
        if abs(time.time() - timestamp) > self.WEBHOOK_TOLERANCE_SECONDS:
            logger.warning("Webhook timestamp too old")
            return False

        signed_payload = f"{timestamp}.".encode("utf-8") + payload
        computed_sig = hmac.new(
            self.webhook_secret.encode("utf-8"),
            signed_payload,
            hashlib.sha256,
        ).hexdigest()

        return any(hmac.compare_digest(computed_sig, sig) for sig in expected_sigs)

    async def close(self):
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
