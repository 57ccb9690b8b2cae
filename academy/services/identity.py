from datetime import timedelta
from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token

from academy.extensions import db
from academy.errors import ConflictError, ValidationError
from academy.helpers.phone import normalize_phone
from academy.models import User
from academy.utils import twilio_verify
from academy.utils.auth import REGISTRATION_SCOPE


def issue_tokens(user):
    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={"role": user.role},
    )
    refresh_token = create_refresh_token(identity=str(user.id))
    return {"access_token": access_token, "refresh_token": refresh_token}


def send_otp(phone):
    if not phone:
        raise ValidationError("Phone number required")
    clean_phone = normalize_phone(phone)
    twilio_verify.send_code(clean_phone)
    return clean_phone


def verify_otp(phone, code):
    """
    Check the code with the OTP provider. Known phones get a session; new
    phones get a short-lived registration token for complete-profile.
    """
    if not phone or not code:
        raise ValidationError("Phone and OTP required")

    clean_phone = normalize_phone(phone)
    if not twilio_verify.check_code(clean_phone, code):
        raise ValidationError("Invalid or Expired OTP")

    user = User.query.filter_by(phone=clean_phone).first()
    if user:
        return {"message": "Login Success", "is_new_user": False, "user": user.to_dict(), **issue_tokens(user)}

    registration_token = create_access_token(
        identity=clean_phone,
        additional_claims={"scope": REGISTRATION_SCOPE},
        expires_delta=timedelta(minutes=current_app.config.get("REGISTRATION_TOKEN_MINUTES", 15)),
    )
    return {"message": "OTP Verified", "is_new_user": True, "registration_token": registration_token}


def complete_profile(phone, data):
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Name is required")

    clean_phone = normalize_phone(phone)
    if User.query.filter_by(phone=clean_phone).first():
        raise ConflictError("User already exists")

    age = data.get("age")
    if age in (None, ""):
        age = None
    else:
        try:
            age = int(age)
        except (TypeError, ValueError):
            raise ValidationError("Age must be a number")

    user = User(
        name=name,
        phone=clean_phone,
        email=(data.get("email") or "").strip().lower() or None,
        age=age,
        gender=data.get("gender"),
        referred_by=data.get("referred_by"),
        role="student",
    )
    db.session.add(user)
    db.session.commit()
    return user
