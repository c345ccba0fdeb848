"""Unit tests for card source classification."""

from types import SimpleNamespace

import pytest

from hubpay.services.checkout.errors import InvalidRequest, UnknownCardBrand
from hubpay.services.checkout.resolver import PlanKind, resolve
from hubpay.services.checkout.schemas import CheckoutRequest


def request(save=False, existing_card_id=None, token="pm_123", cc_type="visa"):
    source = {
        "gateway_payment_profile_id": token,
        "cc_type": cc_type,
        "last_digits": "4242",
        "first_name": "Jill",
        "last_name": "Jeffreys",
        "save_requested_by_customer": save,
    }
    return CheckoutRequest(
        payments_attributes=[{"payment_method_id": 1, "source_attributes": source}],
        existing_card_id=existing_card_id,
    )


STORED = SimpleNamespace(
    id=9,
    gateway_payment_profile_id="pm_stored",
    gateway_customer_profile_id="cus_A123",
    cc_type="master",
    last_digits="4321",
    month=11,
    year=2026,
    first_name="Sammy",
    last_name="Signpost",
)


def test_use_once_by_default():
    plan = resolve(request(), email="jill@example.com")

    assert plan.kind is PlanKind.USE_ONCE
    assert plan.payment_method_id == "pm_123"
    assert plan.customer_id is None
    assert plan.email is None
    assert plan.card.last_digits == "4242"


def test_save_new_carries_email():
    plan = resolve(request(save=True), email="jill@example.com")

    assert plan.kind is PlanKind.SAVE_NEW
    assert plan.email == "jill@example.com"
    assert plan.payment_method_id == "pm_123"


def test_existing_card_wins_over_resubmitted_attributes():
    plan = resolve(request(save=True, existing_card_id=9), email="jill@example.com", stored_card=STORED)

    assert plan.kind is PlanKind.USE_EXISTING
    assert plan.payment_method_id == "pm_stored"
    assert plan.customer_id == "cus_A123"
    assert plan.existing_card_id == 9
    assert plan.card.cc_type == "master"
    assert plan.card.first_name == "Sammy"


def test_existing_card_must_be_found():
    with pytest.raises(InvalidRequest):
        resolve(request(existing_card_id=9), email="jill@example.com", stored_card=None)


def test_existing_card_must_have_been_saved_for_reuse():
    one_time = SimpleNamespace(**{**vars(STORED), "gateway_customer_profile_id": None})

    with pytest.raises(InvalidRequest, match="not saved for reuse"):
        resolve(request(existing_card_id=9), email="jill@example.com", stored_card=one_time)


def test_missing_token_is_invalid():
    with pytest.raises(InvalidRequest):
        resolve(request(token=None), email="jill@example.com")
    with pytest.raises(InvalidRequest):
        resolve(CheckoutRequest(), email="jill@example.com")


def test_saving_needs_an_email():
    with pytest.raises(InvalidRequest):
        resolve(request(save=True), email=None)


def test_brand_aliases_are_normalized():
    assert resolve(request(cc_type="Mastercard"), email=None).card.cc_type == "master"


def test_unknown_brand_is_rejected():
    with pytest.raises(UnknownCardBrand) as excinfo:
        resolve(request(cc_type="bankcard"), email=None)

    assert excinfo.value.brand == "bankcard"
