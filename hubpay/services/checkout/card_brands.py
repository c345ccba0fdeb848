"""Card brand enumeration and the brand strings accepted for each."""

from enum import Enum

from hubpay.services.checkout.errors import UnknownCardBrand


class CardBrand(str, Enum):
    VISA = "visa"
    MASTER = "master"
    AMERICAN_EXPRESS = "american_express"
    DISCOVER = "discover"
    JCB = "jcb"
    DINERS_CLUB = "diners_club"
    UNIONPAY = "unionpay"


# Stored brand names plus the brand strings Stripe.js reports on a card.
BRAND_ALIASES: dict[str, CardBrand] = {
    "visa": CardBrand.VISA,
    "master": CardBrand.MASTER,
    "mastercard": CardBrand.MASTER,
    "american_express": CardBrand.AMERICAN_EXPRESS,
    "amex": CardBrand.AMERICAN_EXPRESS,
    "discover": CardBrand.DISCOVER,
    "jcb": CardBrand.JCB,
    "diners_club": CardBrand.DINERS_CLUB,
    "diners": CardBrand.DINERS_CLUB,
    "unionpay": CardBrand.UNIONPAY,
}


def parse_brand(value: str) -> CardBrand:
    """Map a submitted brand string onto `CardBrand`, case-insensitively."""

    key = value.strip().lower().replace(" ", "_")
    try:
        return BRAND_ALIASES[key]
    except KeyError:
        raise UnknownCardBrand(value) from None
