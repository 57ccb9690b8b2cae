from sqlalchemy.orm import validates
from sqlalchemy.ext.mutable import MutableList
from academy.extensions import db
from academy.helpers.slug import unique_slug
from academy.models.types import COURSE_PLANS, PLAN_LIVE
from datetime import datetime


class Course(db.Model):
    __tablename__ = "course"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    category = db.Column(db.Enum("bitsize", "cohort", "comprehensive", name="course_category"), nullable=False)

    # Pricing
    price_recorded = db.Column(db.Float, nullable=False)  # full one-time price
    price_original = db.Column(db.Float, nullable=True)   # crossed out price
    price_live = db.Column(db.Float, nullable=True)

    # 2-part installment schedule
    installment_enabled = db.Column(db.Boolean, default=False)
    installment_part1 = db.Column(db.Float, default=0.0)
    installment_part2 = db.Column(db.Float, default=0.0)
    installment_total_parts = db.Column(db.Integer, default=2)

    thumbnail = db.Column(db.String(255), nullable=False)
    demo_video_url = db.Column(db.String(255))
    description = db.Column(db.Text)
    tags = db.Column(MutableList.as_mutable(db.JSON), default=list)
    level = db.Column(db.Enum("Beginner", "Intermediate", "Advanced", name="course_level"), default="Beginner")
    language = db.Column(db.String(50), default="English")
    live_start_date = db.Column(db.DateTime, nullable=True)
    enrolled_count = db.Column(db.Integer, default=0, nullable=False)
    is_published = db.Column(db.Boolean, default=False)
    average_rating = db.Column(db.Float, default=0.0)
    reviews = db.Column(MutableList.as_mutable(db.JSON), default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    chapters = db.relationship(
        "Chapter",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Chapter.position",
    )

    supported_plans = COURSE_PLANS

    @validates("title")
    def _refresh_slug(self, key, title):
        if title != self.title or not self.slug:
            self.slug = unique_slug(title)
        return title

    @property
    def total_lessons(self):
        return sum(len(chapter.lessons) for chapter in self.chapters)

    def full_price(self, plan):
        return self.price_live if plan == PLAN_LIVE else self.price_recorded

    @property
    def pricing(self):
        return {
            "recorded": self.price_recorded,
            "original": self.price_original,
            "live": self.price_live,
            "installment": {
                "enabled": bool(self.installment_enabled),
                "price_part1": self.installment_part1,
                "price_part2": self.installment_part2,
                "total_parts": self.installment_total_parts,
            },
        }

    def to_dict(self, include_content=False, show_video_ids=False):
        data = {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "category": self.category,
            "pricing": self.pricing,
            "thumbnail": self.thumbnail,
            "demo_video_url": self.demo_video_url,
            "description": self.description,
            "tags": list(self.tags or []),
            "level": self.level,
            "language": self.language,
            "live_start_date": self.live_start_date.isoformat() if self.live_start_date else None,
            "enrolled_count": self.enrolled_count,
            "is_published": self.is_published,
            "average_rating": self.average_rating,
            "reviews": list(self.reviews or []),
            "total_lessons": self.total_lessons,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_content:
            data["content"] = [c.to_dict(show_video_ids) for c in self.chapters]
        return data


class Chapter(db.Model):
    __tablename__ = "chapter"

    id = db.Column(db.Integer, primary_key=True)
    chapter_title = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, default=0)
    course_id = db.Column(db.Integer, db.ForeignKey("course.id"), nullable=False)

    course = db.relationship("Course", back_populates="chapters")
    lessons = db.relationship(
        "Lesson",
        back_populates="chapter",
        cascade="all, delete-orphan",
        order_by="Lesson.position",
    )

    def to_dict(self, show_video_ids=False):
        return {
            "id": self.id,
            "chapter_title": self.chapter_title,
            "lessons": [l.to_dict(show_video_ids) for l in self.lessons],
        }


class Lesson(db.Model):
    __tablename__ = "lesson"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    video_id = db.Column(db.String(255), nullable=True)
    duration = db.Column(db.String(20), nullable=True)
    is_free_preview = db.Column(db.Boolean, default=False)
    resources = db.Column(MutableList.as_mutable(db.JSON), default=list)
    position = db.Column(db.Integer, default=0)
    chapter_id = db.Column(db.Integer, db.ForeignKey("chapter.id"), nullable=False)

    chapter = db.relationship("Chapter", back_populates="lessons")

    def to_dict(self, show_video_id=False):
        visible = show_video_id or self.is_free_preview
        return {
            "id": self.id,
            "title": self.title,
            "duration": self.duration,
            "is_free_preview": self.is_free_preview,
            "video_id": self.video_id if visible else None,
            "resources": list(self.resources or []) if visible else [],
        }
