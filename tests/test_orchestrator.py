"""Unit tests for call sequencing and short-circuiting in the orchestrator."""

import pytest

from hubpay.services.checkout.orchestrator import CheckoutStep, PaymentOrchestrator
from hubpay.services.checkout.resolver import CardDetails, CardSourcePlan, PlanKind
from hubpay.services.gateway.client import (
    AttachedPaymentMethod,
    CustomerResult,
    GatewayError,
    PaymentIntentResult,
)

FLASH = "There was a problem with your payment information: {error}"


class RecordingGateway:
    """Fake gateway recording calls; `fail_on` names the operation to reject."""

    def __init__(self, fail_on: str | None = None, message: str = "declined") -> None:
        self.fail_on = fail_on
        self.message = message
        self.calls: list[tuple] = []

    def _maybe_fail(self, operation: str) -> None:
        if operation == self.fail_on:
            raise GatewayError(self.message, status_code=402)

    def create_customer(self, email, order_number):
        self.calls.append(("create_customer", email, order_number))
        self._maybe_fail("create_customer")
        return CustomerResult(customer_id="cus_A123")

    def attach_payment_method(self, token, customer_id, order_number):
        self.calls.append(("attach_payment_method", token, customer_id, order_number))
        self._maybe_fail("attach_payment_method")
        return AttachedPaymentMethod(payment_method_id="new_pm_123", customer_id=customer_id)

    def create_payment_intent(self, amount_cents, payment_method_id, customer_id, order_number, currency=None):
        self.currency = currency
        self.calls.append(("create_payment_intent", amount_cents, payment_method_id, customer_id, order_number))
        self._maybe_fail("create_payment_intent")
        return PaymentIntentResult(intent_id="pi_1", amount_charged=2000, status="succeeded")

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


CARD = CardDetails(cc_type="visa", last_digits="4242", month=10, year=2025, first_name="Jill", last_name="Jeffreys")

USE_ONCE = CardSourcePlan(kind=PlanKind.USE_ONCE, payment_method_id="pm_123", card=CARD)
SAVE_NEW = CardSourcePlan(kind=PlanKind.SAVE_NEW, payment_method_id="pm_123", card=CARD, email="jill@example.com")
USE_EXISTING = CardSourcePlan(
    kind=PlanKind.USE_EXISTING,
    payment_method_id="pm_123",
    customer_id="cus_A123",
    card=CARD,
    existing_card_id=1,
)


def run(plan, gateway):
    return PaymentOrchestrator(gateway, FLASH).run(plan, amount_cents=1234, order_number="R1")


def test_use_once_only_creates_intent():
    gateway = RecordingGateway()

    outcome = run(USE_ONCE, gateway)

    assert outcome.succeeded
    assert gateway.calls == [("create_payment_intent", 1234, "pm_123", None, "R1")]
    assert outcome.payment_method_id == "pm_123"
    assert outcome.customer_id is None
    assert outcome.history == [CheckoutStep.START, CheckoutStep.CREATE_INTENT, CheckoutStep.COMPLETED]


def test_save_new_runs_all_three_steps_in_order():
    gateway = RecordingGateway()

    outcome = run(SAVE_NEW, gateway)

    assert outcome.succeeded
    assert gateway.calls == [
        ("create_customer", "jill@example.com", "R1"),
        ("attach_payment_method", "pm_123", "cus_A123", "R1"),
        ("create_payment_intent", 1234, "new_pm_123", "cus_A123", "R1"),
    ]
    assert outcome.payment_method_id == "new_pm_123"
    assert outcome.customer_id == "cus_A123"
    assert outcome.intent_id == "pi_1"
    assert outcome.amount_charged == 2000


def test_use_existing_charges_stored_ids():
    gateway = RecordingGateway()

    outcome = run(USE_EXISTING, gateway)

    assert outcome.succeeded
    assert gateway.calls == [("create_payment_intent", 1234, "pm_123", "cus_A123", "R1")]
    assert outcome.customer_id == "cus_A123"


@pytest.mark.parametrize(
    "fail_on, expected_operations",
    [
        ("create_customer", ["create_customer"]),
        ("attach_payment_method", ["create_customer", "attach_payment_method"]),
        ("create_payment_intent", ["create_customer", "attach_payment_method", "create_payment_intent"]),
    ],
)
def test_save_new_stops_at_first_failure(fail_on, expected_operations):
    gateway = RecordingGateway(fail_on=fail_on)

    outcome = run(SAVE_NEW, gateway)

    assert not outcome.succeeded
    assert outcome.step is CheckoutStep.FAILED
    assert gateway.operations() == expected_operations


def test_customer_failure_message_gets_flash_prefix():
    outcome = run(SAVE_NEW, RecordingGateway(fail_on="create_customer", message="customer-store-failure"))

    assert outcome.error == "There was a problem with your payment information: customer-store-failure"
    assert outcome.failed_step is CheckoutStep.CREATE_CUSTOMER


def test_later_failures_pass_message_through():
    attach = run(SAVE_NEW, RecordingGateway(fail_on="attach_payment_method", message="payment-method-failure"))
    intent = run(USE_ONCE, RecordingGateway(fail_on="create_payment_intent", message="payment-intent-failure"))

    assert attach.error == "payment-method-failure"
    assert intent.error == "payment-intent-failure"
    assert intent.failed_step is CheckoutStep.CREATE_INTENT


def test_illegal_step_transition_is_rejected():
    outcome = run(USE_ONCE, RecordingGateway())

    with pytest.raises(ValueError):
        outcome.advance(CheckoutStep.CREATE_CUSTOMER)


def test_order_currency_reaches_the_intent():
    gateway = RecordingGateway()

    PaymentOrchestrator(gateway, FLASH).run(USE_ONCE, amount_cents=1234, order_number="R1", currency="NZD")

    assert gateway.currency == "NZD"
