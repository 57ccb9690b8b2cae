from datetime import date, datetime, timezone
from sqlalchemy import update

from academy.extensions import db
from academy.errors import NotFoundError, ValidationError
from academy.models import Chapter, Course, ItemKind, Lesson, Masterclass, item_model


def get_item(item_kind, item_id):
    try:
        model = item_model(item_kind)
    except ValueError:
        raise ValidationError("Invalid item type")
    try:
        item_id = int(item_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid item id")
    item = db.session.get(model, item_id)
    if not item:
        raise NotFoundError(f"{model.__name__} not found")
    return item


def increment_enrolled_count(item_kind, item_id):
    model = item_model(item_kind)
    db.session.execute(
        update(model)
        .where(model.id == item_id)
        .values(enrolled_count=model.enrolled_count + 1)
        .execution_options(synchronize_session=False)
    )


def list_published_courses():
    return Course.query.filter_by(is_published=True).order_by(Course.created_at.desc()).all()


def list_upcoming_masterclasses(today=None):
    today = today or date.today()
    return (
        Masterclass.query.filter(
            Masterclass.start_date >= today,
            Masterclass.manual_status == "published",
        )
        .order_by(Masterclass.start_date.asc())
        .all()
    )


def get_by_slug(model, slug):
    item = model.query.filter_by(slug=slug).first()
    if not item:
        raise NotFoundError(f"{model.__name__} Not Found")
    return item


def _parse_date(value, field, as_date=False):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid date format for {field}")
    # a calendar date keeps the day as written
    if as_date:
        return parsed.date()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# ---------------- COURSES ----------------

COURSE_FIELDS = [
    "title", "category", "thumbnail", "demo_video_url", "description", "tags",
    "level", "language", "is_published", "average_rating", "reviews",
]


def _apply_course_content(course, content):
    course.chapters = []
    for c_pos, chapter_data in enumerate(content or []):
        chapter = Chapter(chapter_title=chapter_data.get("chapter_title", ""), position=c_pos)
        for l_pos, lesson_data in enumerate(chapter_data.get("lessons", [])):
            chapter.lessons.append(Lesson(
                title=lesson_data.get("title", ""),
                video_id=lesson_data.get("video_id"),
                duration=lesson_data.get("duration"),
                is_free_preview=bool(lesson_data.get("is_free_preview", False)),
                resources=lesson_data.get("resources", []),
                position=l_pos,
            ))
        course.chapters.append(chapter)


def apply_course_payload(course, data):
    for field in COURSE_FIELDS:
        if field in data:
            setattr(course, field, data[field])

    pricing = data.get("pricing") or {}
    if "recorded" in pricing:
        course.price_recorded = pricing["recorded"]
    if "original" in pricing:
        course.price_original = pricing["original"]
    if "live" in pricing:
        course.price_live = pricing["live"]

    installment = pricing.get("installment") or {}
    if "enabled" in installment:
        course.installment_enabled = bool(installment["enabled"])
    if "price_part1" in installment:
        course.installment_part1 = installment["price_part1"]
    if "price_part2" in installment:
        course.installment_part2 = installment["price_part2"]

    if "live_start_date" in data:
        course.live_start_date = _parse_date(data["live_start_date"], "live_start_date")
    if "content" in data:
        _apply_course_content(course, data["content"])
    return course


def create_course(data):
    if not all([data.get("title"), data.get("category"), data.get("thumbnail")]):
        raise ValidationError("Missing required fields")
    if (data.get("pricing") or {}).get("recorded") is None:
        raise ValidationError("Recorded price is required")

    course = apply_course_payload(Course(enrolled_count=0), data)
    db.session.add(course)
    db.session.commit()
    return course


def update_course(course_id, data):
    course = get_item(ItemKind.COURSE, course_id)
    apply_course_payload(course, data)
    db.session.commit()
    return course


# ---------------- MASTERCLASSES ----------------

MASTERCLASS_FIELDS = [
    "title", "tagline", "banner_image", "what_you_will_learn", "who_is_this_for",
    "faqs", "reviews", "meeting_link", "total_seats", "manual_status",
]


def apply_masterclass_payload(masterclass, data):
    for field in MASTERCLASS_FIELDS:
        if field in data:
            setattr(masterclass, field, data[field])

    expert = data.get("expert") or {}
    for key in ("name", "designation", "image", "bio"):
        if key in expert:
            setattr(masterclass, f"expert_{key}", expert[key])

    schedule = data.get("schedule") or {}
    if "start_date" in schedule:
        masterclass.start_date = _parse_date(schedule["start_date"], "start_date", as_date=True)
    if "start_time" in schedule:
        masterclass.start_time = schedule["start_time"]
    if "end_time" in schedule:
        masterclass.end_time = schedule["end_time"]

    price = data.get("price") or {}
    if "original" in price:
        masterclass.price_original = price["original"]
    if "discounted" in price:
        masterclass.price_discounted = price["discounted"]
    return masterclass


def create_masterclass(data):
    schedule = data.get("schedule") or {}
    price = data.get("price") or {}
    required = [
        data.get("title"), data.get("banner_image"), (data.get("expert") or {}).get("name"),
        schedule.get("start_date"), schedule.get("start_time"), schedule.get("end_time"),
    ]
    if not all(required) or price.get("original") is None or price.get("discounted") is None:
        raise ValidationError("Missing required fields")

    masterclass = apply_masterclass_payload(Masterclass(enrolled_count=0), data)
    db.session.add(masterclass)
    db.session.commit()
    return masterclass


def update_masterclass(masterclass_id, data):
    masterclass = get_item(ItemKind.MASTERCLASS, masterclass_id)
    apply_masterclass_payload(masterclass, data)
    db.session.commit()
    return masterclass


def delete_item(item_kind, item_id):
    item = get_item(item_kind, item_id)
    db.session.delete(item)
    db.session.commit()
