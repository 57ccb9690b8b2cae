"""
Order pricing.

``compute_price`` picks the base amount for an item from the plan and
payment method, then applies an optional coupon. The coupon use is claimed
before its expiry and minimum-order terms are checked; a rejected coupon
keeps its claimed use unless ``COUPON_REFUND_ON_REJECT`` is enabled.
"""

from collections import namedtuple
from flask import current_app

from academy.errors import CouponError, InstallmentNotEnabledError, ValidationError
from academy.models.types import PAYMENT_FULL, PAYMENT_INSTALLMENT, PAYMENT_METHODS
from academy.services.coupons import check_coupon_terms, claim_coupon, release_coupon

PriceQuote = namedtuple("PriceQuote", ["base_amount", "discount", "amount", "coupon"])


def base_amount(item, plan, payment_method):
    if item.supported_plans:
        if plan not in item.supported_plans:
            raise ValidationError("Invalid Plan Type")
    elif plan:
        raise ValidationError("Invalid Plan Type")

    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Invalid Payment Type")

    if payment_method == PAYMENT_INSTALLMENT:
        if not getattr(item, "installment_enabled", False):
            raise InstallmentNotEnabledError()
        amount = item.installment_part1
    else:
        amount = item.full_price(plan)

    if not amount or amount <= 0:
        raise ValidationError("Invalid Amount")
    return amount


def compute_price(item, plan=None, payment_method=PAYMENT_FULL, coupon_code=None, now=None):
    base = base_amount(item, plan, payment_method or PAYMENT_FULL)

    coupon = None
    discount = 0
    if coupon_code:
        coupon = claim_coupon(coupon_code)
        try:
            check_coupon_terms(coupon, base, now)
        except CouponError:
            if current_app.config.get("COUPON_REFUND_ON_REJECT"):
                release_coupon(coupon.code)
            raise
        discount = coupon.discount_for(base)

    return PriceQuote(base, discount, max(0, base - discount), coupon)
