"""Payment orchestrator for one checkout submission.

Drives the gateway calls a card source plan needs, strictly in order:

    USE_EXISTING  START -> CREATE_INTENT -> COMPLETED | FAILED
    USE_ONCE      START -> CREATE_INTENT -> COMPLETED | FAILED
    SAVE_NEW      START -> CREATE_CUSTOMER -> ATTACH_PAYMENT_METHOD
                        -> CREATE_INTENT -> COMPLETED | FAILED

The first failing call ends the run and later calls are never made. Customers
or payment methods already created on the gateway are left in place.
"""

from dataclasses import dataclass, field
from enum import Enum

from hubpay.common.logging import logger
from hubpay.common.state_machine import CHECKOUT_STEP_TRANSITIONS, validate_transition
from hubpay.common.tracing import tracer
from hubpay.services.checkout.resolver import CardSourcePlan, PlanKind
from hubpay.services.gateway.client import GatewayError


class CheckoutStep(str, Enum):
    START = "START"
    CREATE_CUSTOMER = "CREATE_CUSTOMER"
    ATTACH_PAYMENT_METHOD = "ATTACH_PAYMENT_METHOD"
    CREATE_INTENT = "CREATE_INTENT"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


PLAN_STEPS: dict[PlanKind, tuple[CheckoutStep, ...]] = {
    PlanKind.USE_EXISTING: (CheckoutStep.CREATE_INTENT,),
    PlanKind.USE_ONCE: (CheckoutStep.CREATE_INTENT,),
    PlanKind.SAVE_NEW: (
        CheckoutStep.CREATE_CUSTOMER,
        CheckoutStep.ATTACH_PAYMENT_METHOD,
        CheckoutStep.CREATE_INTENT,
    ),
}


@dataclass
class CheckoutOutcome:
    """Terminal result of one orchestration run."""

    plan: CardSourcePlan
    step: CheckoutStep = CheckoutStep.START
    history: list[CheckoutStep] = field(default_factory=lambda: [CheckoutStep.START])
    payment_method_id: str | None = None
    customer_id: str | None = None
    intent_id: str | None = None
    amount_charged: int | None = None
    error: str | None = None
    failed_step: CheckoutStep | None = None

    @property
    def succeeded(self) -> bool:
        return self.step is CheckoutStep.COMPLETED

    def advance(self, new_step: CheckoutStep) -> None:
        validate_transition(self.step.value, new_step.value, CHECKOUT_STEP_TRANSITIONS)
        self.step = new_step
        self.history.append(new_step)


class PaymentOrchestrator:
    """Sequences gateway calls for a resolved plan."""

    def __init__(self, gateway, customer_error_flash: str) -> None:
        self.gateway = gateway
        self.customer_error_flash = customer_error_flash

    def run(
        self, plan: CardSourcePlan, *, amount_cents: int, order_number: str, currency: str | None = None
    ) -> CheckoutOutcome:
        outcome = CheckoutOutcome(plan=plan, payment_method_id=plan.payment_method_id)
        if plan.kind is PlanKind.USE_EXISTING:
            outcome.customer_id = plan.customer_id

        for step in PLAN_STEPS[plan.kind]:
            outcome.advance(step)
            with tracer.start_as_current_span(f"checkout.{step.value.lower()}"):
                try:
                    self._perform(
                        step, outcome, amount_cents=amount_cents, order_number=order_number, currency=currency
                    )
                except GatewayError as exc:
                    self._fail(outcome, step, exc)
                    return outcome

        outcome.advance(CheckoutStep.COMPLETED)
        logger.info(
            "checkout completed plan=%s intent_id=%s amount_charged=%s",
            plan.kind.value,
            outcome.intent_id,
            outcome.amount_charged,
        )
        return outcome

    def _perform(
        self,
        step: CheckoutStep,
        outcome: CheckoutOutcome,
        *,
        amount_cents: int,
        order_number: str,
        currency: str | None,
    ) -> None:
        plan = outcome.plan
        if step is CheckoutStep.CREATE_CUSTOMER:
            customer = self.gateway.create_customer(plan.email, order_number)
            outcome.customer_id = customer.customer_id
        elif step is CheckoutStep.ATTACH_PAYMENT_METHOD:
            attached = self.gateway.attach_payment_method(
                plan.payment_method_id, outcome.customer_id, order_number
            )
            outcome.payment_method_id = attached.payment_method_id
            outcome.customer_id = attached.customer_id or outcome.customer_id
        elif step is CheckoutStep.CREATE_INTENT:
            intent = self.gateway.create_payment_intent(
                amount_cents,
                outcome.payment_method_id,
                outcome.customer_id,
                order_number,
                currency=currency,
            )
            outcome.intent_id = intent.intent_id
            outcome.amount_charged = intent.amount_charged
        else:
            raise ValueError(f"{step.value} is not a gateway step")

    def _fail(self, outcome: CheckoutOutcome, step: CheckoutStep, exc: GatewayError) -> None:
        # Only customer creation failures carry the flash prefix.
        if step is CheckoutStep.CREATE_CUSTOMER:
            outcome.error = self.customer_error_flash.format(error=exc.message)
        else:
            outcome.error = exc.message
        outcome.failed_step = step
        outcome.advance(CheckoutStep.FAILED)
        logger.warning(
            "checkout failed plan=%s step=%s error=%s",
            outcome.plan.kind.value,
            step.value,
            exc.message,
        )
