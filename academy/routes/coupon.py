from flask import Blueprint, request, jsonify

from academy.models import Coupon
from academy.services import coupons
from academy.utils.auth import role_required

bp = Blueprint("coupon", __name__)


# ---------------- VERIFY (cart page) ----------------
@bp.route("/verify", methods=["POST"])
def verify_coupon():
    data = request.get_json() or {}
    try:
        order_amount = float(data.get("order_amount") or 0)
    except (TypeError, ValueError):
        return jsonify({"error": "order_amount must be numeric"}), 400

    if not data.get("code"):
        return jsonify({"error": "code is required"}), 400

    result = coupons.preview_coupon(data["code"], order_amount)
    return jsonify({"success": True, "message": "Applied!", **result}), 200


# ---------------- ADMIN ----------------
@bp.route("/admin/all", methods=["GET"])
@role_required("admin")
def list_coupons():
    all_coupons = Coupon.query.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
    return jsonify([c.to_dict() for c in all_coupons]), 200


@bp.route("/admin/create", methods=["POST"])
@role_required("admin")
def create_coupon():
    coupon = coupons.create_coupon(request.get_json() or {})
    return jsonify({"message": "Created", "coupon": coupon.to_dict()}), 201


@bp.route("/admin/update/<int:coupon_id>", methods=["PATCH"])
@role_required("admin")
def update_coupon(coupon_id):
    coupon = coupons.update_coupon(coupon_id, request.get_json() or {})
    return jsonify({"message": "Coupon updated successfully", "coupon": coupon.to_dict()}), 200


@bp.route("/admin/delete/<int:coupon_id>", methods=["DELETE"])
@role_required("admin")
def delete_coupon(coupon_id):
    coupons.delete_coupon(coupon_id)
    return jsonify({"message": "Deleted"}), 200
