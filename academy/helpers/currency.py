from decimal import Decimal, ROUND_HALF_UP
from flask import current_app


def D(x):
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))


def to_subunits(amount):
    """Major units (rupees) to the gateway's smallest unit (paise), rounded half-up."""
    return int((D(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def payment_currency():
    return current_app.config.get("PAYMENT_CURRENCY", "INR")
