from sqlalchemy.orm import validates
from sqlalchemy.ext.mutable import MutableList
from academy.extensions import db
from academy.helpers.slug import unique_slug
from datetime import datetime, time


class Masterclass(db.Model):
    __tablename__ = "masterclass"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)

    # Hero section
    tagline = db.Column(db.String(255))
    banner_image = db.Column(db.String(255), nullable=False)

    # Expert details
    expert_name = db.Column(db.String(120), nullable=False)
    expert_designation = db.Column(db.String(120))
    expert_image = db.Column(db.String(255))
    expert_bio = db.Column(db.Text)

    # Timing
    start_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.String(20), nullable=False)
    end_time = db.Column(db.String(20), nullable=False)

    # Pricing
    price_original = db.Column(db.Float, nullable=False)
    price_discounted = db.Column(db.Float, nullable=False)

    what_you_will_learn = db.Column(MutableList.as_mutable(db.JSON), default=list)
    who_is_this_for = db.Column(MutableList.as_mutable(db.JSON), default=list)
    faqs = db.Column(MutableList.as_mutable(db.JSON), default=list)
    reviews = db.Column(MutableList.as_mutable(db.JSON), default=list)

    meeting_link = db.Column(db.String(255))
    total_seats = db.Column(db.Integer, default=50)
    enrolled_count = db.Column(db.Integer, default=0, nullable=False)

    # Hides a class before its date, e.g. when cancelled
    manual_status = db.Column(
        db.Enum("published", "cancelled", "draft", name="masterclass_status"),
        nullable=False,
        default="published",
    )
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supported_plans = ()

    @validates("title")
    def _refresh_slug(self, key, title):
        if title != self.title or not self.slug:
            self.slug = unique_slug(title, fallback_prefix="masterclass")
        return title

    def full_price(self, plan=None):
        return self.price_discounted

    def is_expired_at(self, now):
        # a class stays open until the end of its scheduled day
        return now > datetime.combine(self.start_date, time.max)

    @property
    def is_expired(self):
        return self.is_expired_at(datetime.now())

    def to_dict(self, include_meeting_link=False):
        data = {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "tagline": self.tagline,
            "banner_image": self.banner_image,
            "expert": {
                "name": self.expert_name,
                "designation": self.expert_designation,
                "image": self.expert_image,
                "bio": self.expert_bio,
            },
            "schedule": {
                "start_date": self.start_date.isoformat() if self.start_date else None,
                "start_time": self.start_time,
                "end_time": self.end_time,
            },
            "price": {
                "original": self.price_original,
                "discounted": self.price_discounted,
            },
            "what_you_will_learn": list(self.what_you_will_learn or []),
            "who_is_this_for": list(self.who_is_this_for or []),
            "faqs": list(self.faqs or []),
            "reviews": list(self.reviews or []),
            "total_seats": self.total_seats,
            "enrolled_count": self.enrolled_count,
            "manual_status": self.manual_status,
            "is_expired": self.is_expired,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_meeting_link:
            data["meeting_link"] = self.meeting_link
        return data
