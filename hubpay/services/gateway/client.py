"""Stripe REST client for the three calls checkout needs.

Each call is one blocking request with a form-encoded body, authenticated with
the configured secret key. Every request carries the order number in its
metadata so calls can be traced back to the order on the Stripe side. There
are no retries; a timeout is reported like any other gateway failure.
"""

from dataclasses import dataclass

import httpx
from pydantic import BaseModel, Field

from hubpay.common.config import CommonSettings
from hubpay.common.logging import logger
from hubpay.common.metrics import gateway_request_duration_seconds, gateway_requests_total


class GatewayError(Exception):
    """An upstream call failed; `message` is the provider's own error text."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class GatewayConfig(BaseModel):
    """Explicit client configuration; nothing is read from global state."""

    secret_key: str = Field(min_length=1)
    api_base: str = "https://api.stripe.com"
    currency: str = Field(default="AUD", min_length=3, max_length=3)
    timeout_seconds: float = Field(default=10.0, gt=0)

    @classmethod
    def from_settings(cls, settings: CommonSettings) -> "GatewayConfig":
        return cls(
            secret_key=settings.stripe_secret_key,
            api_base=settings.stripe_api_base,
            currency=settings.currency,
            timeout_seconds=settings.stripe_timeout_seconds,
        )


@dataclass(frozen=True)
class CustomerResult:
    customer_id: str


@dataclass(frozen=True)
class AttachedPaymentMethod:
    payment_method_id: str
    customer_id: str | None


@dataclass(frozen=True)
class PaymentIntentResult:
    intent_id: str
    amount_charged: int
    status: str | None = None


class StripeGatewayClient:
    """Blocking Stripe client returning normalized results."""

    def __init__(self, config: GatewayConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self._http = httpx.Client(
            base_url=config.api_base,
            auth=(config.secret_key, ""),
            timeout=config.timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _post(self, operation: str, path: str, data: dict[str, str]) -> dict:
        """Send one request and return the decoded body or raise `GatewayError`."""

        outcome = "error"
        try:
            with gateway_request_duration_seconds.labels(operation=operation).time():
                try:
                    resp = self._http.post(path, data=data)
                except httpx.TimeoutException as exc:
                    logger.warning("gateway timeout operation=%s error=%s", operation, exc)
                    raise GatewayError(f"Payment gateway timed out ({operation})") from exc
                except httpx.HTTPError as exc:
                    logger.warning("gateway transport error operation=%s error=%s", operation, exc)
                    raise GatewayError(f"Payment gateway unavailable ({operation})") from exc

            try:
                body = resp.json()
            except ValueError:
                body = {}
            if resp.status_code >= 400:
                message = _error_message(body) or f"Payment gateway returned HTTP {resp.status_code}"
                logger.info(
                    "gateway rejected operation=%s status=%s message=%s",
                    operation,
                    resp.status_code,
                    message,
                )
                raise GatewayError(message, status_code=resp.status_code)
            outcome = "success"
            return body
        finally:
            gateway_requests_total.labels(operation=operation, outcome=outcome).inc()

    def create_customer(self, email: str, order_number: str) -> CustomerResult:
        body = self._post(
            "create_customer",
            "/v1/customers",
            {"email": email, "metadata[order_number]": order_number},
        )
        return CustomerResult(customer_id=_require(body, "id", "create_customer"))

    def attach_payment_method(
        self, token: str, customer_id: str, order_number: str
    ) -> AttachedPaymentMethod:
        body = self._post(
            "attach_payment_method",
            f"/v1/payment_methods/{token}/attach",
            {"customer": customer_id, "metadata[order_number]": order_number},
        )
        return AttachedPaymentMethod(
            payment_method_id=_require(body, "id", "attach_payment_method"),
            customer_id=body.get("customer") or customer_id,
        )

    def create_payment_intent(
        self,
        amount_cents: int,
        payment_method_id: str,
        customer_id: str | None,
        order_number: str,
        currency: str | None = None,
    ) -> PaymentIntentResult:
        """Create and confirm a payment intent for the order total.

        `currency` is the order's own currency; the configured one is the fallback.
        """

        data = {
            "amount": str(amount_cents),
            "currency": (currency or self.config.currency).lower(),
        }
        if customer_id:
            data["customer"] = customer_id
        data["payment_method"] = payment_method_id
        data["confirm"] = "true"
        data["description"] = f"Order {order_number}"
        data["metadata[order_number]"] = order_number

        body = self._post("create_payment_intent", "/v1/payment_intents", data)
        charges = (body.get("charges") or {}).get("data") or []
        if charges and charges[0].get("amount") is not None:
            amount_charged = int(charges[0]["amount"])
        else:
            amount_charged = int(body.get("amount") or 0)
        return PaymentIntentResult(
            intent_id=body.get("id") or (charges[0].get("id") if charges else ""),
            amount_charged=amount_charged,
            status=body.get("status"),
        )


def _error_message(body) -> str | None:
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message")
    return None


def _require(body: dict, key: str, operation: str) -> str:
    value = body.get(key) if isinstance(body, dict) else None
    if not value:
        raise GatewayError(f"Payment gateway response missing {key} ({operation})")
    return value
