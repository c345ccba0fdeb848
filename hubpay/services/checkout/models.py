"""Checkout database models.

Orders, their addresses, payments and the cards those payments are taken from.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hubpay.common.db import Base


class Address(Base):
    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firstname: Mapped[str | None] = mapped_column(String, nullable=True)
    lastname: Mapped[str | None] = mapped_column(String, nullable=True)
    address1: Mapped[str | None] = mapped_column(String, nullable=True)
    address2: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    zipcode: Mapped[str | None] = mapped_column(String, nullable=True)
    state_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    country_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Order(Base):
    """Order aggregate; the unit a checkout submission pays for."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    number: Mapped[str] = mapped_column(String, unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    total_cents: Mapped[int] = mapped_column(Integer, default=0)
    included_tax_cents: Mapped[int] = mapped_column(Integer, default=0)
    currency: Mapped[str] = mapped_column(String(3), default="AUD")
    distributor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_cycle_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    shipping_method_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bill_address_id: Mapped[int | None] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    ship_address_id: Mapped[int | None] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    state: Mapped[str] = mapped_column(String, default="cart")
    payment_state: Mapped[str] = mapped_column(String, default="balance_due")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    bill_address: Mapped[Address | None] = relationship(foreign_keys=[bill_address_id])
    ship_address: Mapped[Address | None] = relationship(foreign_keys=[ship_address_id])
    payments: Mapped[list["Payment"]] = relationship(back_populates="order", order_by="Payment.id")

    def completed_payments(self) -> list["Payment"]:
        return [payment for payment in self.payments if payment.state == "completed"]


class CreditCard(Base):
    """Payment source; `gateway_customer_profile_id` is set only for saved cards."""

    __tablename__ = "credit_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    gateway_payment_profile_id: Mapped[str] = mapped_column(String)
    gateway_customer_profile_id: Mapped[str | None] = mapped_column(String, nullable=True)
    cc_type: Mapped[str | None] = mapped_column(String, nullable=True)
    last_digits: Mapped[str | None] = mapped_column(String(4), nullable=True)
    month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Payment(Base):
    """One capture attempt against an order."""

    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    source_id: Mapped[int] = mapped_column(ForeignKey("credit_cards.id"))
    payment_method_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    amount_cents: Mapped[int] = mapped_column(Integer)
    amount_charged_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    state: Mapped[str] = mapped_column(String, default="pending", index=True)
    response_code: Mapped[str | None] = mapped_column(String, nullable=True)
    failure_message: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    order: Mapped[Order] = relationship(back_populates="payments")
    source: Mapped[CreditCard] = relationship()
