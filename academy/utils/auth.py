from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from academy.extensions import db
from academy.models import User

REGISTRATION_SCOPE = "register"


def current_user():
    """The user behind the access token, or None if the account is gone."""
    verify_jwt_in_request()
    try:
        uid = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    return db.session.get(User, uid)


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if get_jwt().get("scope") == REGISTRATION_SCOPE:
                return jsonify({"error": "Unauthorized"}), 401
            user = current_user()
            if not user:
                return jsonify({"error": "Unauthorized: User not found."}), 401
            if user.role not in roles:
                return jsonify({"error": "Forbidden: Admins only."}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def login_required(fn):
    """Accepts full access tokens only; registration tokens are rejected."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if get_jwt().get("scope") == REGISTRATION_SCOPE:
            return jsonify({"error": "Complete your profile first"}), 401
        return fn(*args, **kwargs)
    return wrapper


def optional_user():
    """User for an optional access token; call under @jwt_required(optional=True)."""
    identity = get_jwt_identity()
    if not identity or get_jwt().get("scope") == REGISTRATION_SCOPE:
        return None
    try:
        return db.session.get(User, int(identity))
    except (TypeError, ValueError):
        return None
