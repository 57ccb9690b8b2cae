from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity, create_access_token

from academy.extensions import db
from academy.models import ItemKind, User, item_model
from academy.services import identity
from academy.utils.auth import REGISTRATION_SCOPE, current_user, login_required

bp = Blueprint("auth", __name__)


@bp.route("/send-otp", methods=["POST"])
def send_otp():
    data = request.get_json() or {}
    identity.send_otp(data.get("phone"))
    return jsonify({"success": True, "message": "OTP Sent Successfully"}), 200


@bp.route("/verify-otp", methods=["POST"])
def verify_otp():
    data = request.get_json() or {}
    result = identity.verify_otp(data.get("phone"), data.get("otp"))
    return jsonify(result), 200


@bp.route("/complete-profile", methods=["POST"])
@jwt_required()
def complete_profile():
    # only the registration token from verify-otp proves the phone was verified
    if get_jwt().get("scope") != REGISTRATION_SCOPE:
        return jsonify({"error": "Registration token required"}), 401

    data = request.get_json() or {}
    user = identity.complete_profile(get_jwt_identity(), data)
    return jsonify({"message": "Profile Created", "user": user.to_dict(), **identity.issue_tokens(user)}), 201


@bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    user = db.session.get(User, int(get_jwt_identity()))
    if not user:
        return jsonify({"error": "User not found"}), 404

    new_access_token = create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role}
    )
    return jsonify({"access_token": new_access_token}), 200


def _enrollment_summary(enrollment):
    data = enrollment.to_dict()
    item = db.session.get(item_model(enrollment.item_kind), enrollment.item_id)
    if item is None:
        data["item"] = None
    elif enrollment.item_kind == ItemKind.MASTERCLASS:
        data["item"] = {
            "title": item.title,
            "slug": item.slug,
            "banner_image": item.banner_image,
            "schedule": item.to_dict()["schedule"],
            "meeting_link": item.meeting_link,
        }
    else:
        data["item"] = {
            "title": item.title,
            "slug": item.slug,
            "thumbnail": item.thumbnail,
            "live_start_date": item.live_start_date.isoformat() if item.live_start_date else None,
            "pricing": item.pricing,
        }
    return data


@bp.route("/users/me", methods=["GET"])
@login_required
def me():
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = user.to_dict()
    data["enrolled_courses"] = [_enrollment_summary(e) for e in user.enrollments]
    return jsonify(data), 200
