from sqlalchemy.orm import validates
from academy.extensions import db
from datetime import datetime

FLAT = "flat"
PERCENTAGE = "percentage"


class Coupon(db.Model):
    __tablename__ = "coupon"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    discount_type = db.Column(db.Enum(FLAT, PERCENTAGE, name="discount_type"), nullable=False)
    discount_value = db.Column(db.Float, nullable=False)
    min_order_value = db.Column(db.Float, nullable=False, default=0.0)
    valid_until = db.Column(db.DateTime, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    usage_limit = db.Column(db.Integer, nullable=True)  # None = unlimited
    used_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @validates("code")
    def _uppercase_code(self, key, code):
        return code.strip().upper()

    def is_expired_at(self, now):
        return bool(self.valid_until and now > self.valid_until)

    def discount_for(self, amount):
        """Discount on ``amount``, never more than the amount itself."""
        if self.discount_type == PERCENTAGE:
            discount = (amount * self.discount_value) / 100
        else:
            discount = self.discount_value
        return min(discount, amount)

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "min_order_value": self.min_order_value,
            "valid_until": self.valid_until.isoformat() if self.valid_until else None,
            "is_active": self.is_active,
            "usage_limit": self.usage_limit,
            "used_count": self.used_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Coupon {self.code}>"
