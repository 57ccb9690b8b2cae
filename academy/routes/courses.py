from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from academy.models import Course, ItemKind
from academy.services import catalog, orders
from academy.services.enrollments import mark_lesson_complete, require_enrollment
from academy.routes.payment import verify_from_request
from academy.utils.auth import current_user, login_required, optional_user, role_required

bp = Blueprint("courses", __name__)


# ---------------- PUBLIC ----------------

@bp.route("/", methods=["GET"])
def list_courses():
    courses = catalog.list_published_courses()
    return jsonify([c.to_dict() for c in courses]), 200


@bp.route("/find/<int:course_id>", methods=["GET"])
def find_course(course_id):
    course = catalog.get_item(ItemKind.COURSE, course_id)
    return jsonify(course.to_dict()), 200


@bp.route("/<slug>", methods=["GET"])
@jwt_required(optional=True)
def get_course(slug):
    course = catalog.get_by_slug(Course, slug)
    user = optional_user()
    enrolled = bool(user and user.enrollment_for(ItemKind.COURSE, course.id))
    return jsonify({
        "course_data": course.to_dict(include_content=True, show_video_ids=enrolled),
        "is_enrolled": enrolled,
    }), 200


# ---------------- LMS ----------------

@bp.route("/<int:course_id>/content", methods=["GET"])
@login_required
def course_content(course_id):
    course = catalog.get_item(ItemKind.COURSE, course_id)
    enrollment = require_enrollment(current_user(), ItemKind.COURSE, course.id)
    return jsonify({
        "course_id": course.id,
        "title": course.title,
        "content": [c.to_dict(show_video_ids=True) for c in course.chapters],
        "enrollment": enrollment.to_dict(),
    }), 200


@bp.route("/<int:course_id>/progress", methods=["POST"])
@login_required
def update_progress(course_id):
    data = request.get_json() or {}
    lesson_id = data.get("lesson_id")
    if not lesson_id:
        return jsonify({"error": "lesson_id is required"}), 400

    course = catalog.get_item(ItemKind.COURSE, course_id)
    enrollment = mark_lesson_complete(current_user(), course, lesson_id)
    return jsonify({
        "message": "Progress updated",
        "progress": enrollment.progress,
        "completed_lessons": list(enrollment.completed_lessons),
    }), 200


# ---------------- PAYMENT ----------------

@bp.route("/create-order", methods=["POST"])
@login_required
def create_order():
    data = request.get_json() or {}
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404

    if not data.get("item_id"):
        return jsonify({"error": "item_id is required"}), 400

    intent = orders.create_order(
        user,
        ItemKind.COURSE,
        data.get("item_id"),
        plan=data.get("plan_type"),
        payment_method=data.get("payment_type"),
        coupon_code=data.get("coupon_code"),
    )
    return jsonify(intent), 200


@bp.route("/verify-payment", methods=["POST"])
def verify_payment():
    return verify_from_request("Payment verified and Access updated")


# ---------------- ADMIN ----------------

@bp.route("/admin/all", methods=["GET"])
@role_required("admin")
def list_courses_all():
    courses = Course.query.order_by(Course.created_at.desc()).all()
    return jsonify([c.to_dict() for c in courses]), 200


@bp.route("/admin/create", methods=["POST"])
@role_required("admin")
def create_course():
    course = catalog.create_course(request.get_json() or {})
    return jsonify({"message": "Created", "course": course.to_dict(include_content=True, show_video_ids=True)}), 201


@bp.route("/admin/update/<int:course_id>", methods=["PUT"])
@role_required("admin")
def update_course(course_id):
    course = catalog.update_course(course_id, request.get_json() or {})
    return jsonify({"message": "Updated", "course": course.to_dict(include_content=True, show_video_ids=True)}), 200


@bp.route("/admin/delete/<int:course_id>", methods=["DELETE"])
@role_required("admin")
def delete_course(course_id):
    catalog.delete_item(ItemKind.COURSE, course_id)
    return jsonify({"message": "Deleted successfully"}), 200
