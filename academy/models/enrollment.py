from sqlalchemy.ext.mutable import MutableList
from academy.extensions import db
from academy.models.types import ItemKind, STATUS_FULL, STATUS_PARTIAL
from datetime import datetime


class Enrollment(db.Model):
    __tablename__ = "enrollment"
    # at most one entry per purchased item
    __table_args__ = (
        db.UniqueConstraint("user_id", "item_kind", "item_id", name="uq_enrollment_user_item"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False)
    item_kind = db.Column(db.Enum(ItemKind, name="item_kind"), nullable=False)
    item_id = db.Column(db.Integer, nullable=False)
    plan = db.Column(db.Enum("recorded", "live", "masterclass", name="enrollment_plan"), default="recorded")

    payment_status = db.Column(
        db.Enum(STATUS_PARTIAL, STATUS_FULL, name="enrollment_payment_status"),
        nullable=False,
        default=STATUS_FULL,
    )
    amount_paid = db.Column(db.Float, nullable=False, default=0.0)

    purchased_at = db.Column(db.DateTime, default=datetime.utcnow)
    progress = db.Column(db.Float, default=0.0)  # percentage
    completed_lessons = db.Column(MutableList.as_mutable(db.JSON), default=list)
    certificate_url = db.Column(db.String(255), nullable=True)

    student = db.relationship("User", back_populates="enrollments")

    @property
    def is_fully_paid(self):
        return self.payment_status == STATUS_FULL

    def to_dict(self):
        return {
            "id": self.id,
            "item_kind": self.item_kind.value,
            "item_id": self.item_id,
            "plan": self.plan,
            "payment_status": self.payment_status,
            "amount_paid": self.amount_paid,
            "purchased_at": self.purchased_at.isoformat() if self.purchased_at else None,
            "progress": self.progress,
            "completed_lessons": list(self.completed_lessons or []),
            "certificate_url": self.certificate_url,
        }
