"""Classify a checkout submission by where its card comes from.

A submission either references a stored card, supplies a new card to be saved
against a gateway customer, or supplies a new card for this order only. The
classification is pure: lookups of stored cards happen in the caller.
"""

from dataclasses import dataclass
from enum import Enum

from hubpay.services.checkout.card_brands import parse_brand
from hubpay.services.checkout.errors import InvalidRequest
from hubpay.services.checkout.schemas import CheckoutRequest


class PlanKind(str, Enum):
    USE_EXISTING = "use_existing"
    SAVE_NEW = "save_new"
    USE_ONCE = "use_once"


@dataclass(frozen=True)
class CardDetails:
    """Cardholder metadata recorded on the payment source as submitted."""

    cc_type: str | None = None
    last_digits: str | None = None
    month: int | None = None
    year: int | None = None
    first_name: str | None = None
    last_name: str | None = None


@dataclass(frozen=True)
class CardSourcePlan:
    kind: PlanKind
    payment_method_id: str
    card: CardDetails
    customer_id: str | None = None
    email: str | None = None
    existing_card_id: int | None = None


def _card_details(source) -> CardDetails:
    return CardDetails(
        cc_type=parse_brand(source.cc_type).value if source.cc_type else None,
        last_digits=source.last_digits,
        month=source.month,
        year=source.year,
        first_name=source.first_name,
        last_name=source.last_name,
    )


def resolve(request: CheckoutRequest, *, email: str | None, stored_card=None) -> CardSourcePlan:
    """Build the card source plan for `request`.

    `stored_card` is the card referenced by `existing_card_id`, already loaded
    and ownership-checked by the caller. Its profile ids and metadata are used
    unchanged; any card attributes resubmitted alongside it are ignored.
    """

    if request.existing_card_id is not None:
        if stored_card is None:
            raise InvalidRequest(f"Card {request.existing_card_id} could not be found")
        if not stored_card.gateway_payment_profile_id:
            raise InvalidRequest(f"Card {request.existing_card_id} has no gateway payment method")
        # Only cards saved against a gateway customer can be charged again.
        if not stored_card.gateway_customer_profile_id:
            raise InvalidRequest(f"Card {request.existing_card_id} was not saved for reuse")
        return CardSourcePlan(
            kind=PlanKind.USE_EXISTING,
            payment_method_id=stored_card.gateway_payment_profile_id,
            customer_id=stored_card.gateway_customer_profile_id,
            card=_card_details(stored_card),
            existing_card_id=stored_card.id,
        )

    source = request.source_attributes()
    if source is None or not source.gateway_payment_profile_id:
        raise InvalidRequest("Payment details are missing")

    if source.save_requested_by_customer:
        if not email:
            raise InvalidRequest("An email address is required to save a card")
        return CardSourcePlan(
            kind=PlanKind.SAVE_NEW,
            payment_method_id=source.gateway_payment_profile_id,
            card=_card_details(source),
            email=email,
        )

    return CardSourcePlan(
        kind=PlanKind.USE_ONCE,
        payment_method_id=source.gateway_payment_profile_id,
        card=_card_details(source),
    )
