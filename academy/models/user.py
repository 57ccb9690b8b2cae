from academy.extensions import db
from datetime import datetime


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(20), unique=True, nullable=False)
    email = db.Column(db.String(120), nullable=True)
    age = db.Column(db.Integer, nullable=True)
    gender = db.Column(db.String(20), nullable=True)
    referred_by = db.Column(db.String(120), nullable=True)
    role = db.Column(
        db.Enum("student", "admin", "instructor", name="user_role"),
        nullable=False,
        default="student",
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    enrollments = db.relationship(
        "Enrollment",
        back_populates="student",
        cascade="all, delete-orphan",
        order_by="Enrollment.purchased_at",
    )
    orders = db.relationship("Order", back_populates="user")

    def enrollment_for(self, item_kind, item_id):
        for enrollment in self.enrollments:
            if enrollment.item_kind == item_kind and enrollment.item_id == item_id:
                return enrollment
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "age": self.age,
            "gender": self.gender,
            "referred_by": self.referred_by,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.phone}>"
