"""Checkout service.

Applies a checkout submission to an order: records shipping and addresses,
resolves the card source, runs the payment orchestrator and writes the
resulting payment and card rows.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from hubpay.common.logging import logger
from hubpay.common.metrics import checkout_failure_total, checkout_success_total
from hubpay.common.state_machine import validate_transition
from hubpay.services.checkout.errors import InvalidRequest, OrderNotFound
from hubpay.services.checkout.models import Address, CreditCard, Order, Payment
from hubpay.services.checkout.orchestrator import CheckoutOutcome, PaymentOrchestrator
from hubpay.services.checkout.resolver import CardSourcePlan, PlanKind, resolve
from hubpay.services.checkout.schemas import AddressAttributes, CheckoutRequest


@dataclass(frozen=True)
class CheckoutResult:
    order: Order
    payment: Payment
    outcome: CheckoutOutcome

    @property
    def succeeded(self) -> bool:
        return self.outcome.succeeded

    @property
    def error(self) -> str | None:
        return self.outcome.error


class CheckoutService:
    """Owns order/payment writes for checkout submissions."""

    def __init__(self, session_factory, gateway, customer_error_flash: str, service_name: str = "checkout") -> None:
        self.session_factory = session_factory
        self.orchestrator = PaymentOrchestrator(gateway, customer_error_flash)
        self.service_name = service_name

    def _load_order(self, db, number: str) -> Order:
        order = db.execute(
            select(Order)
            .where(Order.number == number)
            .options(
                selectinload(Order.payments).selectinload(Payment.source),
                selectinload(Order.bill_address),
                selectinload(Order.ship_address),
            )
        ).scalar_one_or_none()
        if order is None:
            raise OrderNotFound(number)
        return order

    def get_order(self, number: str) -> Order:
        with self.session_factory() as db:
            return self._load_order(db, number)

    def list_saved_cards(self, user_id: int) -> list[CreditCard]:
        """Cards saved against a gateway customer for `user_id`."""

        with self.session_factory() as db:
            return list(
                db.execute(
                    select(CreditCard)
                    .where(
                        CreditCard.user_id == user_id,
                        CreditCard.gateway_customer_profile_id.is_not(None),
                    )
                    .order_by(CreditCard.id)
                ).scalars()
            )

    def _stored_card(self, db, card_id: int, user_id: int | None) -> CreditCard | None:
        card = db.get(CreditCard, card_id)
        if card is None or user_id is None or card.user_id != user_id:
            return None
        return card

    @staticmethod
    def _apply_address(current: Address | None, attrs: AddressAttributes | None) -> Address | None:
        if attrs is None:
            return current
        address = current or Address()
        for key, value in attrs.model_dump().items():
            setattr(address, key, value)
        return address

    def _source_for(self, db, plan: CardSourcePlan, outcome: CheckoutOutcome, user_id: int | None) -> CreditCard:
        if plan.kind is PlanKind.USE_EXISTING:
            return db.get(CreditCard, plan.existing_card_id)

        # A card is saved for reuse only once the whole SAVE_NEW sequence succeeded.
        saved = plan.kind is PlanKind.SAVE_NEW and outcome.succeeded
        card = CreditCard(
            user_id=user_id,
            gateway_payment_profile_id=outcome.payment_method_id if saved else plan.payment_method_id,
            gateway_customer_profile_id=outcome.customer_id if saved else None,
            cc_type=plan.card.cc_type,
            last_digits=plan.card.last_digits,
            month=plan.card.month,
            year=plan.card.year,
            first_name=plan.card.first_name,
            last_name=plan.card.last_name,
        )
        db.add(card)
        return card

    def submit(self, number: str, request: CheckoutRequest, user_id: int | None = None) -> CheckoutResult:
        """Run one checkout submission against order `number`.

        Raises `CheckoutError` subclasses for input problems; gateway failures
        are returned as a failed result with the payment recorded as `failed`.
        """

        with self.session_factory() as db:
            order = self._load_order(db, number)
            if order.state == "complete" or order.completed_payments():
                checkout_failure_total.labels(service=self.service_name, reason="already_complete").inc()
                raise InvalidRequest(f"Order {number} has already been paid")

            stored_card = None
            if request.existing_card_id is not None:
                stored_card = self._stored_card(db, request.existing_card_id, user_id)
            try:
                plan = resolve(request, email=order.email, stored_card=stored_card)
            except InvalidRequest:
                checkout_failure_total.labels(service=self.service_name, reason="invalid_request").inc()
                raise

            if request.shipping_method_id is not None:
                order.shipping_method_id = request.shipping_method_id
            order.bill_address = self._apply_address(order.bill_address, request.bill_address_attributes)
            order.ship_address = self._apply_address(order.ship_address, request.ship_address_attributes)
            order.state = "payment"

            outcome = self.orchestrator.run(
                plan, amount_cents=order.total_cents, order_number=order.number, currency=order.currency
            )

            source = self._source_for(db, plan, outcome, user_id if user_id is not None else order.user_id)
            payment = Payment(
                order=order,
                source=source,
                payment_method_id=request.payment_method_id(),
                amount_cents=order.total_cents,
                state="pending",
            )
            db.add(payment)

            if outcome.succeeded:
                validate_transition(payment.state, "completed")
                payment.state = "completed"
                payment.response_code = outcome.intent_id
                payment.amount_charged_cents = outcome.amount_charged
                order.state = "complete"
                order.payment_state = "paid"
                checkout_success_total.labels(service=self.service_name, plan=plan.kind.value).inc()
            else:
                validate_transition(payment.state, "failed")
                payment.state = "failed"
                payment.failure_message = outcome.error
                order.payment_state = "failed"
                checkout_failure_total.labels(service=self.service_name, reason="gateway_error").inc()

            db.commit()
            logger.info(
                "checkout recorded order=%s payment_id=%s state=%s",
                order.number,
                payment.id,
                payment.state,
            )
            return CheckoutResult(order=order, payment=payment, outcome=outcome)
