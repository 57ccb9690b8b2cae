import math
from datetime import datetime, timezone
from sqlalchemy import or_, update

from academy.extensions import db
from academy.errors import (
    ConflictError, CouponError, CouponExpiredError, CouponMinimumOrderError,
    CouponUnusableError, NotFoundError, ValidationError,
)
from academy.models import Coupon
from academy.models.coupon import FLAT, PERCENTAGE


def _normalize_code(code):
    return (code or "").strip().upper()


def claim_coupon(code):
    """
    Reserve one use of ``code`` in a single conditional UPDATE.

    The usage-limit check and the increment happen in the same statement,
    so concurrent claims can never push used_count past usage_limit. A
    claim that matches no row changes nothing and raises
    CouponUnusableError. A successful claim is committed immediately.
    """
    code = _normalize_code(code)
    result = db.session.execute(
        update(Coupon)
        .where(
            Coupon.code == code,
            Coupon.is_active.is_(True),
            or_(Coupon.usage_limit.is_(None), Coupon.used_count < Coupon.usage_limit),
        )
        .values(used_count=Coupon.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise CouponUnusableError()
    db.session.commit()
    return Coupon.query.filter_by(code=code).first()


def release_coupon(code):
    """Give back one claimed use. Returns False if there was nothing to give back."""
    result = db.session.execute(
        update(Coupon)
        .where(Coupon.code == _normalize_code(code), Coupon.used_count > 0)
        .values(used_count=Coupon.used_count - 1)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    return result.rowcount == 1


def check_coupon_terms(coupon, order_amount, now=None):
    """Expiry and minimum-order checks that follow a claim."""
    now = now or datetime.utcnow()
    if coupon.is_expired_at(now):
        raise CouponExpiredError()
    if order_amount < (coupon.min_order_value or 0):
        raise CouponMinimumOrderError(f"Min order value is ₹{coupon.min_order_value:g}")


def preview_coupon(code, order_amount, now=None):
    """Cart-page check. Never consumes a use."""
    coupon = Coupon.query.filter_by(code=_normalize_code(code), is_active=True).first()
    if not coupon:
        raise NotFoundError("Invalid Coupon")

    check_coupon_terms(coupon, order_amount, now)
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        raise CouponError("Usage limit reached")

    return {
        "discount": math.floor(coupon.discount_for(order_amount)),
        "code": coupon.code,
    }


def _parse_datetime(value, field):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid datetime format for {field}")
    # stored naive in UTC, compared against utcnow
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _apply_fields(coupon, data):
    if "discount_type" in data:
        if data["discount_type"] not in (FLAT, PERCENTAGE):
            raise ValidationError("discount_type must be 'flat' or 'percentage'")
        coupon.discount_type = data["discount_type"]
    if "discount_value" in data:
        try:
            value = float(data["discount_value"])
        except (TypeError, ValueError):
            raise ValidationError("discount_value must be numeric")
        if value <= 0:
            raise ValidationError("discount_value must be > 0")
        coupon.discount_value = value
    if "min_order_value" in data:
        try:
            minimum = float(data["min_order_value"] or 0)
        except (TypeError, ValueError):
            raise ValidationError("min_order_value must be numeric")
        if minimum < 0:
            raise ValidationError("min_order_value must be >= 0")
        coupon.min_order_value = minimum
    if "usage_limit" in data:
        limit = data["usage_limit"]
        if limit in (None, ""):
            coupon.usage_limit = None
        else:
            try:
                limit = int(limit)
            except (TypeError, ValueError):
                raise ValidationError("usage_limit must be a whole number")
            if limit < 0:
                raise ValidationError("usage_limit must be >= 0")
            coupon.usage_limit = limit
    if "is_active" in data:
        coupon.is_active = bool(data["is_active"])
    if "valid_until" in data:
        coupon.valid_until = _parse_datetime(data["valid_until"], "valid_until")


def create_coupon(data):
    code = _normalize_code(data.get("code"))
    if not code or not data.get("discount_type") or data.get("discount_value") is None:
        raise ValidationError("Missing required fields")

    if Coupon.query.filter_by(code=code).first():
        raise ConflictError("Code already exists")

    coupon = Coupon(code=code, used_count=0)
    _apply_fields(coupon, data)
    db.session.add(coupon)
    db.session.commit()
    return coupon


def update_coupon(coupon_id, data):
    coupon = db.session.get(Coupon, coupon_id)
    if not coupon:
        raise NotFoundError("Coupon not found")
    _apply_fields(coupon, data)
    db.session.commit()
    return coupon


def delete_coupon(coupon_id):
    coupon = db.session.get(Coupon, coupon_id)
    if not coupon:
        raise NotFoundError("Coupon not found")
    db.session.delete(coupon)
    db.session.commit()
