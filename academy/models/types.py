from enum import Enum


class ItemKind(str, Enum):
    COURSE = "course"
    MASTERCLASS = "masterclass"


PLAN_RECORDED = "recorded"
PLAN_LIVE = "live"
PLAN_MASTERCLASS = "masterclass"
COURSE_PLANS = (PLAN_RECORDED, PLAN_LIVE)

PAYMENT_FULL = "full"
PAYMENT_INSTALLMENT = "installment"
PAYMENT_METHODS = (PAYMENT_FULL, PAYMENT_INSTALLMENT)

# Enrollment payment completion
STATUS_PARTIAL = "partial"
STATUS_FULL = "full"

ORDER_PENDING = "pending"
ORDER_PAID = "paid"
ORDER_FAILED = "failed"
