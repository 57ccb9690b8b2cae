from flask import Blueprint, request, jsonify

from academy.models import ItemKind, Masterclass
from academy.services import catalog, orders
from academy.routes.payment import verify_from_request
from academy.utils.auth import current_user, login_required, role_required

bp = Blueprint("masterclasses", __name__)


# Website listing: hides expired classes and drafts
@bp.route("/", methods=["GET"])
def list_upcoming():
    masterclasses = catalog.list_upcoming_masterclasses()
    return jsonify([m.to_dict() for m in masterclasses]), 200


@bp.route("/admin/all", methods=["GET"])
@role_required("admin")
def list_all():
    masterclasses = Masterclass.query.order_by(Masterclass.created_at.desc()).all()
    return jsonify([m.to_dict(include_meeting_link=True) for m in masterclasses]), 200


@bp.route("/<slug>", methods=["GET"])
def get_masterclass(slug):
    masterclass = catalog.get_by_slug(Masterclass, slug)
    return jsonify({"masterclass_data": masterclass.to_dict()}), 200


@bp.route("/create-order", methods=["POST"])
@login_required
def create_order():
    data = request.get_json() or {}
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404

    if not data.get("masterclass_id"):
        return jsonify({"error": "masterclass_id is required"}), 400

    intent = orders.create_order(
        user,
        ItemKind.MASTERCLASS,
        data.get("masterclass_id"),
        coupon_code=data.get("coupon_code"),
    )
    return jsonify(intent), 200


@bp.route("/verify-payment", methods=["POST"])
def verify_payment():
    return verify_from_request("Masterclass Booked Successfully!")


@bp.route("/admin/create", methods=["POST"])
@role_required("admin")
def create_masterclass():
    masterclass = catalog.create_masterclass(request.get_json() or {})
    return jsonify({"message": "Created", "masterclass": masterclass.to_dict(include_meeting_link=True)}), 201


@bp.route("/admin/update/<int:masterclass_id>", methods=["PUT"])
@role_required("admin")
def update_masterclass(masterclass_id):
    masterclass = catalog.update_masterclass(masterclass_id, request.get_json() or {})
    return jsonify({"message": "Updated", "masterclass": masterclass.to_dict(include_meeting_link=True)}), 200


@bp.route("/admin/delete/<int:masterclass_id>", methods=["DELETE"])
@role_required("admin")
def delete_masterclass(masterclass_id):
    catalog.delete_item(ItemKind.MASTERCLASS, masterclass_id)
    return jsonify({"message": "Deleted"}), 200
