from academy.extensions import db
from academy.errors import InvalidTransitionError
from academy.models.types import (
    ItemKind, ORDER_PENDING, ORDER_PAID, ORDER_FAILED, PAYMENT_FULL, PAYMENT_INSTALLMENT,
)
from datetime import datetime

# No request path moves an order to "failed" yet; the edge is declared so a
# gateway failure callback has somewhere to land.
ORDER_TRANSITIONS = {
    ORDER_PENDING: {ORDER_PAID, ORDER_FAILED},
    ORDER_PAID: set(),
    ORDER_FAILED: set(),
}


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    item_kind = db.Column(db.Enum(ItemKind, name="item_kind"), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    amount = db.Column(db.Float, nullable=False)
    plan = db.Column(db.Enum("recorded", "live", name="order_plan"), nullable=True)
    payment_method = db.Column(
        db.Enum(PAYMENT_FULL, PAYMENT_INSTALLMENT, name="payment_method"),
        nullable=False,
        default=PAYMENT_FULL,
    )
    gateway_order_id = db.Column(db.String(100), unique=True, nullable=False, index=True)
    gateway_payment_id = db.Column(db.String(100), nullable=True)
    gateway_signature = db.Column(db.String(255), nullable=True)
    status = db.Column(
        db.Enum(ORDER_PENDING, ORDER_PAID, ORDER_FAILED, name="order_status"),
        nullable=False,
        default=ORDER_PENDING,
    )
    coupon_code = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="orders")

    def transition_to(self, status):
        if status not in ORDER_TRANSITIONS.get(self.status, set()):
            raise InvalidTransitionError(f"Order {self.gateway_order_id} cannot move from {self.status} to {status}")
        self.status = status

    def mark_paid(self, payment_id, signature):
        self.transition_to(ORDER_PAID)
        self.gateway_payment_id = payment_id
        self.gateway_signature = signature

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "item_kind": self.item_kind.value,
            "item_id": self.item_id,
            "amount": self.amount,
            "plan": self.plan,
            "payment_method": self.payment_method,
            "gateway_order_id": self.gateway_order_id,
            "gateway_payment_id": self.gateway_payment_id,
            "status": self.status,
            "coupon_code": self.coupon_code,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
