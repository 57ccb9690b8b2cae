from academy.models.types import ItemKind
from academy.models.user import User
from academy.models.enrollment import Enrollment
from academy.models.course import Course, Chapter, Lesson
from academy.models.masterclass import Masterclass
from academy.models.coupon import Coupon
from academy.models.order import Order

# (kind, id) references on orders and enrollments resolve through this table
ITEM_MODELS = {
    ItemKind.COURSE: Course,
    ItemKind.MASTERCLASS: Masterclass,
}


def item_model(kind):
    return ITEM_MODELS[ItemKind(kind)]


__all__ = [
    "ItemKind",
    "ITEM_MODELS",
    "item_model",
    "User",
    "Enrollment",
    "Course",
    "Chapter",
    "Lesson",
    "Masterclass",
    "Coupon",
    "Order",
]
