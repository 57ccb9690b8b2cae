import os
import shutil
import tempfile
import threading
from datetime import datetime
from sqlalchemy import update

from academy.config import TestConfig
from academy.extensions import db
from academy.errors import (
    ConflictError, CouponError, CouponExpiredError, CouponUnusableError, NotFoundError, ValidationError,
)
from academy.models import Coupon
from academy.services.coupons import claim_coupon, create_coupon, preview_coupon, release_coupon
from academy.services.pricing import compute_price

from tests.base import AcademyTestCase


class ClaimCouponTests(AcademyTestCase):
    def test_claim_increments_used_count(self):
        coupon = self.make_coupon("SAVE10", usage_limit=3)
        claimed = claim_coupon("save10")
        self.assertEqual(claimed.used_count, 1)
        self.assertEqual(self.reload(coupon).used_count, 1)

    def test_at_most_limit_claims_succeed(self):
        coupon = self.make_coupon("LIMITED", usage_limit=3)
        successes = 0
        for _ in range(10):
            try:
                claim_coupon("LIMITED")
                successes += 1
            except CouponUnusableError:
                pass
        self.assertEqual(successes, 3)
        self.assertEqual(self.reload(coupon).used_count, 3)

    def test_exhausted_coupon_always_fails(self):
        coupon = self.make_coupon("ONCE", usage_limit=1, used_count=1)
        for _ in range(3):
            with self.assertRaises(CouponUnusableError):
                claim_coupon("ONCE")
        self.assertEqual(self.reload(coupon).used_count, 1)

    def test_inactive_or_unknown_coupon_fails(self):
        self.make_coupon("OFF", active=False)
        with self.assertRaises(CouponUnusableError):
            claim_coupon("OFF")
        with self.assertRaises(CouponUnusableError):
            claim_coupon("MISSING")

    def test_unlimited_coupon_keeps_counting(self):
        coupon = self.make_coupon("OPEN", usage_limit=None)
        for _ in range(5):
            claim_coupon("OPEN")
        self.assertEqual(self.reload(coupon).used_count, 5)

    def test_claim_checks_stored_count_not_loaded_copy(self):
        coupon = self.make_coupon("RACE", usage_limit=1)
        self.assertEqual(coupon.used_count, 0)

        # another request takes the last use behind this session's back
        db.session.execute(
            update(Coupon).where(Coupon.code == "RACE").values(used_count=1)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()

        with self.assertRaises(CouponUnusableError):
            claim_coupon("RACE")
        self.assertEqual(self.reload(coupon).used_count, 1)

    def test_release_gives_back_one_use(self):
        coupon = self.make_coupon("BACK", usage_limit=1, used_count=1)
        self.assertTrue(release_coupon("BACK"))
        self.assertEqual(self.reload(coupon).used_count, 0)
        self.assertFalse(release_coupon("BACK"))
        self.assertEqual(self.reload(coupon).used_count, 0)


class PreviewCouponTests(AcademyTestCase):
    def test_preview_floors_discount_and_consumes_nothing(self):
        coupon = self.make_coupon("SAVE15", "percentage", 15, usage_limit=1)
        result = preview_coupon("save15", 999)
        self.assertEqual(result, {"discount": 149, "code": "SAVE15"})
        self.assertEqual(self.reload(coupon).used_count, 0)

    def test_preview_caps_flat_discount(self):
        self.make_coupon("FLAT500", "flat", 500)
        self.assertEqual(preview_coupon("FLAT500", 300)["discount"], 300)

    def test_preview_rejections(self):
        self.make_coupon("OLD", valid_until=datetime(2000, 1, 1))
        self.make_coupon("USED", usage_limit=2, used_count=2)
        self.make_coupon("FLAT50", "flat", 50, min_order=200)

        with self.assertRaises(NotFoundError):
            preview_coupon("NOPE", 1000)
        with self.assertRaises(CouponExpiredError):
            preview_coupon("OLD", 1000)
        with self.assertRaises(CouponError):
            preview_coupon("USED", 1000)
        with self.assertRaises(CouponError):
            preview_coupon("FLAT50", 100)


class CreateCouponTests(AcademyTestCase):
    def test_code_is_uppercased_and_unique(self):
        coupon = create_coupon({"code": "welcome", "discount_type": "flat", "discount_value": 100})
        self.assertEqual(coupon.code, "WELCOME")
        self.assertEqual(coupon.used_count, 0)
        self.assertIsNone(coupon.usage_limit)

        with self.assertRaises(ConflictError):
            create_coupon({"code": "Welcome", "discount_type": "flat", "discount_value": 50})

    def test_offset_expiry_is_stored_in_utc(self):
        course = self.make_course(recorded=1000)
        coupon = create_coupon({
            "code": "IST", "discount_type": "flat", "discount_value": 50,
            "valid_until": "2030-01-01T23:59:00+05:30",
        })
        self.assertEqual(self.reload(coupon).valid_until, datetime(2030, 1, 1, 18, 29))

        quote = compute_price(course, "recorded", "full", "IST", now=datetime(2030, 1, 1, 18, 0))
        self.assertEqual(quote.amount, 950)
        with self.assertRaises(CouponExpiredError):
            compute_price(course, "recorded", "full", "IST", now=datetime(2030, 1, 1, 20, 0))

    def test_non_numeric_fields_are_rejected(self):
        base = {"code": "BAD", "discount_type": "flat", "discount_value": 100}
        for field, value in [("usage_limit", "ten"), ("usage_limit", -1),
                             ("min_order_value", "lots"), ("min_order_value", -5)]:
            with self.assertRaises(ValidationError):
                create_coupon({**base, field: value})
        self.assertEqual(Coupon.query.count(), 0)

    def test_blank_usage_limit_means_unlimited(self):
        coupon = create_coupon({"code": "FREE", "discount_type": "flat", "discount_value": 10, "usage_limit": ""})
        self.assertIsNone(coupon.usage_limit)


class ConcurrentClaimTests(AcademyTestCase):
    """Claims race from separate threads against a file-backed database."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        path = os.path.join(self.tmpdir, "claims.db")

        class FileDatabaseConfig(TestConfig):
            SQLALCHEMY_DATABASE_URI = f"sqlite:///{path}"
            SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 30}}

        self.config_class = FileDatabaseConfig
        super().setUp()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
        self.ctx.pop()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_concurrent_claims_never_exceed_limit(self):
        coupon = self.make_coupon("RUSH", usage_limit=5)
        workers = 30
        barrier = threading.Barrier(workers, timeout=10)
        outcomes = []

        def attempt():
            with self.app.app_context():
                barrier.wait()
                try:
                    claim_coupon("RUSH")
                    outcomes.append("claimed")
                except CouponUnusableError:
                    outcomes.append("rejected")

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        self.assertEqual(len(outcomes), workers)
        self.assertEqual(outcomes.count("claimed"), 5)
        self.assertEqual(self.reload(coupon).used_count, 5)
