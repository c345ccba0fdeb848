"""HTTP surface for order checkout and stored cards."""

import threading
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from hubpay.common.config import settings
from hubpay.common.db import Base, SessionLocal, engine
from hubpay.common.logging import configure_logging, logger, order_number_ctx, trace_id_ctx
from hubpay.common.metrics import checkout_latency_seconds, checkout_requests_total, metrics_response
from hubpay.common.startup import log_startup_config
from hubpay.common.tracing import instrument_app, setup_tracing
from hubpay.services.checkout.errors import CheckoutError
from hubpay.services.checkout.models import CreditCard, Order
from hubpay.services.checkout.schemas import (
    CardResponse,
    CheckoutResponse,
    CheckoutSubmission,
    OrderResponse,
    PaymentResponse,
)
from hubpay.services.checkout.service import CheckoutService
from hubpay.services.gateway.client import GatewayConfig, StripeGatewayClient

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    ["SERVICE_NAME", "DATABASE_URL", "STRIPE_SECRET_KEY", "STRIPE_API_BASE", "CURRENCY"],
)

_service: CheckoutService | None = None
_service_lock = threading.Lock()


def get_checkout_service() -> CheckoutService:
    """Build the process-wide checkout service on first use."""

    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                gateway = StripeGatewayClient(GatewayConfig.from_settings(settings))
                _service = CheckoutService(
                    SessionLocal, gateway, settings.gateway_error_flash, settings.service_name
                )
    return _service


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Create tables for local runs; production schemas come from migrations."""

    Base.metadata.create_all(bind=engine)
    yield
    if _service is not None:
        _service.orchestrator.gateway.close()


app = FastAPI(title="Hubpay Checkout", lifespan=lifespan)
instrument_app(app)


@app.exception_handler(CheckoutError)
async def checkout_error_handler(_: Request, exc: CheckoutError):
    """Render input errors the same way as gateway failures."""

    return flash_error(exc.status_code, exc.message)


def flash_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"flash": {"error": message}})


def card_response(card: CreditCard) -> CardResponse:
    return CardResponse(
        id=card.id,
        cc_type=card.cc_type,
        last_digits=card.last_digits,
        month=card.month,
        year=card.year,
        first_name=card.first_name,
        last_name=card.last_name,
        gateway_payment_profile_id=card.gateway_payment_profile_id,
        gateway_customer_profile_id=card.gateway_customer_profile_id,
    )


def order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        number=order.number,
        state=order.state,
        payment_state=order.payment_state,
        total_cents=order.total_cents,
        included_tax_cents=order.included_tax_cents,
        currency=order.currency,
        shipping_method_id=order.shipping_method_id,
        completed_payments=len(order.completed_payments()),
        payments=[
            PaymentResponse(
                id=payment.id,
                state=payment.state,
                amount_cents=payment.amount_cents,
                amount_charged_cents=payment.amount_charged_cents,
                response_code=payment.response_code,
                failure_message=payment.failure_message,
                source=card_response(payment.source),
            )
            for payment in order.payments
        ],
    )


@app.put("/orders/{number}/checkout", response_model=CheckoutResponse)
def update_checkout(
    number: str,
    submission: CheckoutSubmission,
    service: CheckoutService = Depends(get_checkout_service),
    x_user_id: int | None = Header(default=None),
    x_correlation_id: str | None = Header(default=None),
):
    """Submit payment for an order.

    Returns the order path on success, or a 400 with the gateway's message in
    `flash.error` when payment could not be taken.
    """

    trace_id_ctx.set(x_correlation_id or str(uuid4()))
    order_number_ctx.set(number)
    checkout_requests_total.labels(service=settings.service_name).inc()
    with checkout_latency_seconds.labels(service=settings.service_name).time():
        result = service.submit(number, submission.order, user_id=x_user_id)

    if not result.succeeded:
        logger.info("checkout rejected order=%s error=%s", number, result.error)
        return flash_error(400, result.error)
    return CheckoutResponse(path=f"/orders/{number}", order=order_response(result.order))


@app.get("/orders/{number}", response_model=OrderResponse)
def get_order(number: str, service: CheckoutService = Depends(get_checkout_service)):
    """Fetch the order with its payments."""

    return order_response(service.get_order(number))


@app.get("/cards", response_model=list[CardResponse])
def list_cards(
    x_user_id: int = Header(),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Cards the user saved for reuse."""

    return [card_response(card) for card in service.list_saved_cards(x_user_id)]


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
