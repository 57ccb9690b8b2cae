from academy.extensions import db
from academy.errors import InvalidSignatureError, InvalidTransitionError, NotFoundError
from academy.models import Enrollment, ItemKind, Order, User
from academy.services.verification import verify_payment
from academy.utils.razorpay_client import expected_signature, signature_matches

from tests.base import AcademyTestCase

SECRET = "rzp_test_secret"


class SignatureTests(AcademyTestCase):
    def test_correct_signature_verifies(self):
        signature = expected_signature("order_ABC", "pay_XYZ", SECRET)
        self.assertTrue(signature_matches("order_ABC", "pay_XYZ", signature, SECRET))
        self.assertTrue(signature_matches("order_ABC", "pay_XYZ", signature))

    def test_any_single_character_change_fails(self):
        order_id, payment_id = "order_ABC123", "pay_XYZ789"
        signature = expected_signature(order_id, payment_id, SECRET)

        def mutate(text, i):
            return text[:i] + ("a" if text[i] != "a" else "b") + text[i + 1:]

        for i in range(len(order_id)):
            self.assertFalse(signature_matches(mutate(order_id, i), payment_id, signature, SECRET))
        for i in range(len(payment_id)):
            self.assertFalse(signature_matches(order_id, mutate(payment_id, i), signature, SECRET))
        for i in range(len(SECRET)):
            self.assertFalse(signature_matches(order_id, payment_id, signature, mutate(SECRET, i)))

    def test_signature_covers_pipe_joined_ids(self):
        import hashlib
        import hmac
        manual = hmac.new(SECRET.encode(), b"order_1|pay_2", hashlib.sha256).hexdigest()
        self.assertEqual(expected_signature("order_1", "pay_2", SECRET), manual)


class VerifyPaymentTests(AcademyTestCase):
    def make_order(self, user, item, kind=ItemKind.COURSE, amount=1000, method="full",
                   plan="recorded", gateway_order_id="order_1"):
        order = Order(
            user_id=user.id if user else 9999,
            item_kind=kind,
            item_id=item.id,
            amount=amount,
            plan=plan if kind == ItemKind.COURSE else None,
            payment_method=method,
            gateway_order_id=gateway_order_id,
        )
        db.session.add(order)
        db.session.commit()
        return order

    def verify(self, order_id="order_1", payment_id="pay_1"):
        return verify_payment(order_id, payment_id, self.sign(order_id, payment_id))

    def test_full_payment_creates_full_enrollment(self):
        user = self.make_user()
        course = self.make_course()
        order = self.make_order(user, course, amount=1000)

        result = self.verify()

        self.assertTrue(result.enrollment_updated)
        order = self.reload(order)
        self.assertEqual(order.status, "paid")
        self.assertEqual(order.gateway_payment_id, "pay_1")
        self.assertEqual(order.gateway_signature, self.sign("order_1", "pay_1"))

        enrollment = Enrollment.query.one()
        self.assertEqual(enrollment.payment_status, "full")
        self.assertEqual(enrollment.amount_paid, 1000)
        self.assertEqual(enrollment.plan, "recorded")
        self.assertEqual(self.reload(course).enrolled_count, 1)

    def test_invalid_signature_mutates_nothing(self):
        user = self.make_user()
        course = self.make_course()
        order = self.make_order(user, course)

        with self.assertRaises(InvalidSignatureError):
            verify_payment("order_1", "pay_1", "deadbeef")

        self.assertEqual(self.reload(order).status, "pending")
        self.assertEqual(Enrollment.query.count(), 0)
        self.assertEqual(self.reload(course).enrolled_count, 0)

    def test_unknown_order(self):
        with self.assertRaises(NotFoundError):
            self.verify(order_id="order_missing")

    def test_verifying_twice_is_idempotent(self):
        user = self.make_user()
        course = self.make_course(installment=True)
        self.make_order(user, course, amount=500, method="installment", plan="live")

        self.verify()
        second = self.verify()

        self.assertTrue(second.already_processed)
        self.assertFalse(second.enrollment_updated)
        enrollment = Enrollment.query.one()
        self.assertEqual(enrollment.payment_status, "partial")
        self.assertEqual(enrollment.amount_paid, 500)
        self.assertEqual(self.reload(course).enrolled_count, 1)

    def test_installment_then_second_payment_completes(self):
        user = self.make_user()
        course = self.make_course(live=1200, installment=True, part1=500, part2=700)
        self.make_order(user, course, amount=500, method="installment", plan="live")

        self.verify()
        enrollment = Enrollment.query.one()
        self.assertEqual(enrollment.payment_status, "partial")
        self.assertEqual(enrollment.amount_paid, 500)
        self.assertEqual(enrollment.plan, "live")

        self.make_order(user, course, amount=700, method="full", plan="live", gateway_order_id="order_2")
        result = self.verify(order_id="order_2", payment_id="pay_2")

        self.assertTrue(result.enrollment_updated)
        enrollment = Enrollment.query.one()
        self.assertEqual(enrollment.payment_status, "full")
        self.assertEqual(enrollment.amount_paid, 1200)
        self.assertEqual(self.reload(course).enrolled_count, 1)

    def test_payment_on_full_enrollment_is_noop(self):
        user = self.make_user()
        course = self.make_course()
        self.make_order(user, course, amount=1000)
        self.verify()

        self.make_order(user, course, amount=1000, gateway_order_id="order_2")
        result = self.verify(order_id="order_2", payment_id="pay_2")

        self.assertFalse(result.enrollment_updated)
        self.assertEqual(Enrollment.query.count(), 1)
        self.assertEqual(Enrollment.query.one().amount_paid, 1000)
        self.assertEqual(self.reload(course).enrolled_count, 1)

    def test_masterclass_enrollment(self):
        user = self.make_user()
        masterclass = self.make_masterclass(discounted=499)
        self.make_order(user, masterclass, kind=ItemKind.MASTERCLASS, amount=499)

        self.verify()
        self.verify()

        enrollment = Enrollment.query.one()
        self.assertEqual(enrollment.item_kind, ItemKind.MASTERCLASS)
        self.assertEqual(enrollment.plan, "masterclass")
        self.assertEqual(enrollment.payment_status, "full")
        self.assertEqual(self.reload(masterclass).enrolled_count, 1)

    def test_same_id_different_kinds_are_separate_enrollments(self):
        user = self.make_user()
        course = self.make_course()
        masterclass = self.make_masterclass()
        self.assertEqual(course.id, masterclass.id)

        self.make_order(user, course, amount=1000)
        self.make_order(user, masterclass, kind=ItemKind.MASTERCLASS, amount=499, gateway_order_id="order_2")
        self.verify()
        self.verify(order_id="order_2", payment_id="pay_2")

        self.assertEqual(Enrollment.query.count(), 2)

    def test_missing_buyer_still_marks_order_paid(self):
        course = self.make_course()
        order = self.make_order(None, course, amount=1000)

        result = self.verify()

        self.assertFalse(result.enrollment_updated)
        self.assertIsNone(result.enrollment)
        self.assertEqual(self.reload(order).status, "paid")
        self.assertEqual(self.reload(course).enrolled_count, 0)

    def test_missing_buyer_on_masterclass_uses_same_branch(self):
        masterclass = self.make_masterclass()
        self.make_order(None, masterclass, kind=ItemKind.MASTERCLASS, amount=499)

        result = self.verify()

        self.assertFalse(result.enrollment_updated)
        self.assertEqual(User.query.count(), 0)


class OrderTransitionTests(AcademyTestCase):
    def test_transition_table(self):
        user = self.make_user()
        order = Order(user_id=user.id, item_kind=ItemKind.COURSE, item_id=1, amount=10,
                      payment_method="full", gateway_order_id="order_t", status="pending")

        order.mark_paid("pay_t", "sig")
        self.assertEqual(order.status, "paid")
        with self.assertRaises(InvalidTransitionError):
            order.transition_to("failed")
        with self.assertRaises(InvalidTransitionError):
            order.transition_to("pending")

    def test_failed_is_terminal(self):
        order = Order(status="pending")
        order.transition_to("failed")
        with self.assertRaises(InvalidTransitionError):
            order.mark_paid("pay", "sig")
