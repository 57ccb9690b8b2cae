import uuid
from flask import current_app

from academy.extensions import db
from academy.errors import ConflictError, ValidationError
from academy.helpers.currency import payment_currency, to_subunits
from academy.models import ItemKind, Order
from academy.models.types import PAYMENT_FULL, PAYMENT_INSTALLMENT
from academy.services.catalog import get_item
from academy.services.pricing import compute_price
from academy.utils.razorpay_client import create_charge_intent


def _receipt(item_kind, user):
    prefix = "mc_rcpt" if item_kind == ItemKind.MASTERCLASS else "rcpt"
    return f"{prefix}_{uuid.uuid4().hex[:16]}_{str(user.id)[-4:]}"


def _description(item_kind, payment_method):
    if item_kind == ItemKind.MASTERCLASS:
        return "Live Masterclass Seat"
    return "Part Payment 1" if payment_method == PAYMENT_INSTALLMENT else "Full Access"


def create_order(user, item_kind, item_id, plan=None, payment_method=PAYMENT_FULL, coupon_code=None):
    """
    Price the item, open a gateway order for it and persist a pending Order.

    A coupon use claimed during pricing stays consumed even when the
    gateway call fails afterwards; nothing is persisted in that case.
    """
    try:
        item_kind = ItemKind(item_kind)
    except ValueError:
        raise ValidationError("Invalid item type")
    payment_method = payment_method or PAYMENT_FULL
    coupon_code = (coupon_code or "").strip().upper() or None

    item = get_item(item_kind, item_id)

    existing = user.enrollment_for(item_kind, item.id)
    if existing and existing.is_fully_paid:
        raise ConflictError("You have already purchased this item")

    quote = compute_price(item, plan, payment_method, coupon_code)

    if item_kind == ItemKind.MASTERCLASS:
        notes = {"type": "masterclass_booking", "masterclass_title": item.title}
    else:
        notes = {"plan_type": plan, "payment_type": payment_method, "course_title": item.title}

    gateway_order_id = create_charge_intent(
        to_subunits(quote.amount),
        payment_currency(),
        _receipt(item_kind, user),
        notes,
    )

    order = Order(
        user_id=user.id,
        item_kind=item_kind,
        item_id=item.id,
        amount=quote.amount,
        plan=plan if item_kind == ItemKind.COURSE else None,
        payment_method=payment_method,
        gateway_order_id=gateway_order_id,
        coupon_code=quote.coupon.code if quote.coupon else None,
    )
    db.session.add(order)
    db.session.commit()

    current_app.logger.info(
        f"Order {gateway_order_id} created for user {user.id}: {item_kind.value} {item.id}, amount {quote.amount}"
    )

    return {
        "success": True,
        "key_id": current_app.config.get("RAZORPAY_KEY_ID"),
        "order_id": gateway_order_id,
        "amount": quote.amount,
        "base_amount": quote.base_amount,
        "discount": quote.discount,
        "currency": payment_currency(),
        "item_name": item.title,
        "description": _description(item_kind, payment_method),
    }
