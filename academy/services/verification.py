"""
Payment verification.

The order is moved to paid and committed before the buyer's enrollment is
touched, so a crash in between leaves a paid order that can be reconciled
later rather than an enrollment without a paid order. Verifying an order
that is already paid changes nothing.
"""

from collections import namedtuple
from flask import current_app

from academy.extensions import db
from academy.errors import InvalidSignatureError, NotFoundError, ValidationError
from academy.models import Order, User
from academy.models.types import ORDER_PAID
from academy.services.enrollments import apply_payment
from academy.utils.razorpay_client import signature_matches

VerificationResult = namedtuple(
    "VerificationResult", ["order", "enrollment", "enrollment_updated", "already_processed"]
)


def verify_payment(gateway_order_id, gateway_payment_id, signature):
    if not all([gateway_order_id, gateway_payment_id, signature]):
        raise ValidationError("Missing payment details")

    if not signature_matches(gateway_order_id, gateway_payment_id, signature):
        current_app.logger.warning(f"Invalid signature for order {gateway_order_id}")
        raise InvalidSignatureError()

    order = Order.query.filter_by(gateway_order_id=gateway_order_id).first()
    if not order:
        raise NotFoundError("Order not found")

    user = db.session.get(User, order.user_id)

    if order.status == ORDER_PAID:
        current_app.logger.info(f"Order {gateway_order_id} already verified")
        enrollment = user.enrollment_for(order.item_kind, order.item_id) if user else None
        return VerificationResult(order, enrollment, False, True)

    order.mark_paid(gateway_payment_id, signature)
    db.session.commit()

    if user is None:
        current_app.logger.warning(
            f"Order {gateway_order_id} paid but user {order.user_id} not found; enrollment not updated"
        )
        return VerificationResult(order, None, False, False)

    enrollment, changed = apply_payment(user, order)
    db.session.commit()

    current_app.logger.info(
        f"Order {gateway_order_id} verified for user {user.id}: enrollment {enrollment.payment_status}"
    )
    return VerificationResult(order, enrollment, changed, False)
