"""Checkout error taxonomy surfaced to callers as flash messages."""


class CheckoutError(Exception):
    """Base error for a checkout submission that cannot proceed."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(CheckoutError):
    """Malformed or incomplete checkout input, raised before any gateway call."""


class UnknownCardBrand(InvalidRequest):
    def __init__(self, brand: str) -> None:
        super().__init__(f"Unknown card brand: {brand}")
        self.brand = brand


class OrderNotFound(CheckoutError):
    status_code = 404

    def __init__(self, number: str) -> None:
        super().__init__(f"Order {number} not found")
        self.number = number
