"""HTTP adapters for the hosted payment functions.

Each gateway family is fronted by a serverless function that takes an
internal order id and talks to the provider. These adapters only make that
one request/response call. Transport problems come back as failed results
and are never raised.

Configuration comes from constructor arguments or the environment:
``STOREFRONT_FUNCTIONS_URL``, ``STOREFRONT_FUNCTIONS_KEY`` and
``STOREFRONT_CALLBACK_SECRET``.
"""

import hashlib
import hmac
import os

import requests
import structlog

from payments.gateway.port import CaptureResult, InitiationResult, PaymentCapturer, PaymentInitiator

logger = structlog.get_logger(__name__)

# Function name per gateway kind, and the response field carrying the
# redirect URL or handle.
INITIATION_ENDPOINTS = {
    "sslcommerz": ("sslcommerz-init", "gateway_url"),
    "bkash": ("bkash-init", "gateway_url"),
    "nagad": ("nagad-init", "gateway_url"),
    "stripe": ("stripe-create-checkout", "gateway_url"),
    "paypal": ("paypal-create-order", "paypal_order_id"),
}

CAPTURE_ENDPOINTS = {
    "paypal": "paypal-capture-order",
}

DEFAULT_TIMEOUT = 15


def sign_callback(payload: str, secret: str) -> str:
    """Hex HMAC-SHA256 of the raw callback body, as sent in ``X-Gateway-Signature``."""
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


class _FunctionClient:
    def __init__(self, base_url: str | None = None, api_key: str | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = (base_url or os.environ.get("STOREFRONT_FUNCTIONS_URL", "")).rstrip("/")
        self.api_key = api_key or os.environ.get("STOREFRONT_FUNCTIONS_KEY", "")
        self.timeout = timeout

    def post(self, function_name: str, payload: dict) -> tuple[bool, dict]:
        """POST to a function. Returns (ok, body); body is {} when unreadable."""
        response = requests.post(
            f"{self.base_url}/functions/v1/{function_name}",
            json=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "apikey": self.api_key,
            },
            timeout=self.timeout,
        )
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return response.ok, body


class FunctionInitiator(PaymentInitiator):
    """Initiates payments through the hosted ``<kind>-init`` style functions."""

    def __init__(
        self,
        kind: str,
        base_url: str | None = None,
        api_key: str | None = None,
        callback_secret: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if kind not in INITIATION_ENDPOINTS:
            raise ValueError(f"No initiation function for gateway kind: {kind}")
        self.kind = kind
        self.client = _FunctionClient(base_url, api_key, timeout)
        self.callback_secret = callback_secret or os.environ.get("STOREFRONT_CALLBACK_SECRET", "")

    def initiate(self, order_id: str) -> InitiationResult:
        function_name, result_field = INITIATION_ENDPOINTS[self.kind]
        try:
            ok, body = self.client.post(function_name, {"order_id": order_id})
        except requests.RequestException as exc:
            logger.warning("Gateway initiation request failed", kind=self.kind, order_id=order_id, error=str(exc))
            return InitiationResult(success=False, error="Could not reach payment gateway", details=str(exc))

        target = body.get(result_field)
        if not ok or not target:
            return InitiationResult(
                success=False,
                error=body.get("error") or "Payment initiation failed",
                details=body.get("details"),
            )

        if result_field == "gateway_url":
            return InitiationResult(success=True, redirect_url=target)
        return InitiationResult(success=True, handle=target)

    def verify_callback_signature(self, payload: str, signature: str) -> bool:
        if not self.callback_secret or not signature:
            return False
        expected = sign_callback(payload, self.callback_secret)
        return hmac.compare_digest(signature.strip().lower().encode(), expected.encode())


class FunctionCapturer(PaymentCapturer):
    """Captures SDK payments through the hosted ``<kind>-capture-order`` function."""

    def __init__(
        self,
        kind: str = "paypal",
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if kind not in CAPTURE_ENDPOINTS:
            raise ValueError(f"No capture function for gateway kind: {kind}")
        self.kind = kind
        self.client = _FunctionClient(base_url, api_key, timeout)

    def capture(self, handle: str, order_id: str) -> CaptureResult:
        try:
            ok, body = self.client.post(
                CAPTURE_ENDPOINTS[self.kind],
                {f"{self.kind}_order_id": handle, "order_id": order_id},
            )
        except requests.RequestException as exc:
            logger.warning("Gateway capture request failed", kind=self.kind, order_id=order_id, error=str(exc))
            return CaptureResult(success=False, error=str(exc))

        if ok and body.get("success"):
            return CaptureResult(success=True, transaction_id=body.get("transaction_id") or handle)
        return CaptureResult(success=False, error=body.get("error") or "Payment capture failed")
