from datetime import datetime

from academy.extensions import db
from academy.errors import NotEnrolledError, NotFoundError
from academy.models import Enrollment, ItemKind, Lesson
from academy.models.types import (
    PAYMENT_INSTALLMENT, PLAN_MASTERCLASS, PLAN_RECORDED, STATUS_FULL, STATUS_PARTIAL,
)
from academy.services.catalog import increment_enrolled_count


def apply_payment(user, order):
    """
    Record a verified payment against the buyer's enrollment for the item.

    Returns ``(enrollment, changed)``:
    - first payment creates the entry (partial for an installment, else
      full) and bumps the item's enrolled count
    - a payment on a partial entry completes it and adds the amount
    - a payment on a full entry changes nothing
    """
    enrollment = user.enrollment_for(order.item_kind, order.item_id)

    if enrollment is None:
        if order.item_kind == ItemKind.MASTERCLASS:
            plan = PLAN_MASTERCLASS
        else:
            plan = order.plan or PLAN_RECORDED
        enrollment = Enrollment(
            item_kind=order.item_kind,
            item_id=order.item_id,
            plan=plan,
            payment_status=STATUS_PARTIAL if order.payment_method == PAYMENT_INSTALLMENT else STATUS_FULL,
            amount_paid=order.amount,
            purchased_at=datetime.utcnow(),
            progress=0.0,
            completed_lessons=[],
        )
        user.enrollments.append(enrollment)
        increment_enrolled_count(order.item_kind, order.item_id)
        return enrollment, True

    if enrollment.payment_status == STATUS_PARTIAL:
        enrollment.payment_status = STATUS_FULL
        enrollment.amount_paid = (enrollment.amount_paid or 0) + order.amount
        return enrollment, True

    return enrollment, False


def require_enrollment(user, item_kind, item_id):
    enrollment = user.enrollment_for(item_kind, item_id) if user else None
    if not enrollment:
        raise NotEnrolledError()
    return enrollment


def mark_lesson_complete(user, course, lesson_id):
    enrollment = require_enrollment(user, ItemKind.COURSE, course.id)

    lesson = db.session.get(Lesson, lesson_id)
    if not lesson or lesson.chapter.course_id != course.id:
        raise NotFoundError("Lesson not found in this course")

    key = str(lesson.id)
    if key not in enrollment.completed_lessons:
        enrollment.completed_lessons.append(key)

    total = course.total_lessons
    enrollment.progress = round(len(enrollment.completed_lessons) / total * 100, 2) if total else 0.0
    db.session.commit()
    return enrollment
