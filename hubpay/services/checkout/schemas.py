"""API request/response schemas for checkout endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class AddressAttributes(BaseModel):
    """Address fields accepted from the checkout form; anything else is dropped."""

    model_config = ConfigDict(extra="ignore")

    firstname: str | None = None
    lastname: str | None = None
    address1: str | None = None
    address2: str | None = None
    phone: str | None = None
    city: str | None = None
    zipcode: str | None = None
    state_id: int | None = None
    country_id: int | None = None


class SourceAttributes(BaseModel):
    """Card details produced by the Stripe.js form, plus the save flag."""

    model_config = ConfigDict(extra="ignore")

    gateway_payment_profile_id: str | None = None
    cc_type: str | None = None
    last_digits: str | None = Field(default=None, max_length=4)
    month: int | None = Field(default=None, ge=1, le=12)
    year: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    save_requested_by_customer: bool = False


class PaymentAttributes(BaseModel):
    payment_method_id: int | None = None
    source_attributes: SourceAttributes | None = None


class CheckoutRequest(BaseModel):
    """One checkout submission for an order."""

    shipping_method_id: int | None = None
    payments_attributes: list[PaymentAttributes] = Field(default_factory=list)
    bill_address_attributes: AddressAttributes | None = None
    ship_address_attributes: AddressAttributes | None = None
    existing_card_id: int | None = None

    def source_attributes(self) -> SourceAttributes | None:
        if not self.payments_attributes:
            return None
        return self.payments_attributes[0].source_attributes

    def payment_method_id(self) -> int | None:
        if not self.payments_attributes:
            return None
        return self.payments_attributes[0].payment_method_id


class CheckoutSubmission(BaseModel):
    """Payload accepted by `PUT /orders/{number}/checkout`."""

    order: CheckoutRequest


class CardResponse(BaseModel):
    id: int
    cc_type: str | None
    last_digits: str | None
    month: int | None
    year: int | None
    first_name: str | None
    last_name: str | None
    gateway_payment_profile_id: str
    gateway_customer_profile_id: str | None


class PaymentResponse(BaseModel):
    id: int
    state: str
    amount_cents: int
    amount_charged_cents: int | None
    response_code: str | None
    failure_message: str | None
    source: CardResponse


class OrderResponse(BaseModel):
    number: str
    state: str
    payment_state: str
    total_cents: int
    included_tax_cents: int
    currency: str
    shipping_method_id: int | None
    completed_payments: int
    payments: list[PaymentResponse]


class CheckoutResponse(BaseModel):
    path: str
    order: OrderResponse
