"""Shared fixtures: in-memory database, stubbed Stripe API, API client."""

import base64
import json
from urllib.parse import parse_qs

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hubpay.common.db import Base
from hubpay.services.checkout import models  # noqa: F401
from hubpay.services.checkout.main import app, get_checkout_service
from hubpay.services.checkout.models import CreditCard, Order
from hubpay.services.checkout.service import CheckoutService
from hubpay.services.gateway.client import GatewayConfig, StripeGatewayClient

SECRET_KEY = "sk_test_12345"
FLASH = "There was a problem with your payment information: {error}"


class StripeStub:
    """Answers Stripe REST calls from canned responses and records every request."""

    def __init__(self) -> None:
        self.responses: dict[tuple[str, str], tuple[int, dict]] = {}
        self.requests: list[dict] = []

    def on(self, method: str, path: str, status: int, body: dict) -> None:
        self.responses[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = {key: values[0] for key, values in parse_qs(request.content.decode()).items()}
        self.requests.append(
            {
                "method": request.method,
                "path": request.url.path,
                "form": form,
                "authorization": request.headers.get("authorization"),
            }
        )
        key = (request.method, request.url.path)
        if key not in self.responses:
            return httpx.Response(404, json={"error": {"message": f"no stub for {key}"}})
        status, body = self.responses[key]
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})

    def paths(self) -> list[str]:
        return [req["path"] for req in self.requests]

    def calls_to(self, path: str) -> list[dict]:
        return [req for req in self.requests if req["path"] == path]


def basic_auth(key: str) -> str:
    return "Basic " + base64.b64encode(f"{key}:".encode()).decode()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def stripe_stub():
    return StripeStub()


@pytest.fixture
def gateway(stripe_stub):
    client = StripeGatewayClient(
        GatewayConfig(secret_key=SECRET_KEY, currency="AUD"),
        transport=httpx.MockTransport(stripe_stub.handler),
    )
    yield client
    client.close()


@pytest.fixture
def checkout_service(session_factory, gateway):
    return CheckoutService(session_factory, gateway, FLASH)


@pytest.fixture
def api(checkout_service):
    app.dependency_overrides[get_checkout_service] = lambda: checkout_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def order(session_factory):
    with session_factory() as db:
        order = Order(
            number="R123456789",
            email="jill@example.com",
            user_id=7,
            total_cents=1234,
            currency="AUD",
            distributor_id=3,
            order_cycle_id=5,
            state="cart",
            payment_state="balance_due",
        )
        db.add(order)
        db.commit()
        return order


@pytest.fixture
def stored_card(session_factory, order):
    with session_factory() as db:
        card = CreditCard(
            user_id=order.user_id,
            gateway_payment_profile_id="pm_123",
            gateway_customer_profile_id="cus_A123",
            last_digits="4321",
            cc_type="master",
            first_name="Sammy",
            last_name="Signpost",
            month=11,
            year=2026,
        )
        db.add(card)
        db.commit()
        return card
