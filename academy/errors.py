"""
Academy error types and their JSON rendering.

Every error raised from a service carries the HTTP status it maps to and a
human-readable message. Routes let these propagate; the handlers registered
by ``register_error_handlers`` turn them into ``{"error": message}`` bodies.
"""

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from academy.extensions import db


class AcademyError(Exception):
    """
    Base class for all business-rule failures.

    Attributes:
        message (str): Human-readable error message
        status_code (int): HTTP status returned to the caller
        details (dict): Extra context included in the response body
    """

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AcademyError):
    status_code = 400
    default_message = "Invalid request"


class InvalidSignatureError(ValidationError):
    default_message = "Invalid payment signature"


class CouponError(ValidationError):
    """Raised when a coupon cannot be applied to an order."""

    default_message = "Invalid coupon"


class CouponUnusableError(CouponError):
    """The atomic claim matched no coupon: unknown, inactive or exhausted."""

    default_message = "Invalid coupon or usage limit reached"


class CouponExpiredError(CouponError):
    default_message = "Coupon expired"


class CouponMinimumOrderError(CouponError):
    default_message = "Minimum order value not met"


class InstallmentNotEnabledError(ValidationError):
    default_message = "Installments not enabled"


class InvalidTransitionError(ValidationError):
    default_message = "Invalid order status transition"


class NotFoundError(AcademyError):
    status_code = 404
    default_message = "Not found"


class ForbiddenError(AcademyError):
    status_code = 403
    default_message = "Forbidden"


class NotEnrolledError(ForbiddenError):
    default_message = "You are not enrolled in this course"


class ConflictError(AcademyError):
    status_code = 409
    default_message = "Already exists"


class ExternalServiceError(AcademyError):
    """A payment gateway or OTP provider call failed."""

    status_code = 502
    default_message = "External service error"


class InternalError(AcademyError):
    status_code = 500
    default_message = "Internal server error"


def register_error_handlers(app):
    @app.errorhandler(AcademyError)
    def handle_academy_error(e):
        if e.status_code >= 500:
            current_app.logger.error(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(e):
        db.session.rollback()
        current_app.logger.warning(f"Integrity error: {e.orig}")
        return jsonify({"error": "Duplicate value for a unique field"}), 409

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        current_app.logger.exception("Unexpected database error")
        return jsonify({"error": InternalError.default_message}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        # routing errors such as 404 and 405 keep their own responses
        if isinstance(e, HTTPException):
            return e
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": InternalError.default_message}), 500


def register_jwt_handlers(jwt):
    """Token failures use the same ``{"error": message}`` body as everything else."""

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({"error": reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({"error": reason}), 422

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({"error": "Token has expired"}), 401
