import requests
from flask import current_app

from academy.errors import ExternalServiceError, ValidationError

INVALID_PARAMETER = 60200


def _service_url(path):
    sid = current_app.config.get("TWILIO_VERIFY_SERVICE_SID")
    account_sid = current_app.config.get("TWILIO_ACCOUNT_SID")
    token = current_app.config.get("TWILIO_AUTH_TOKEN")
    if not all([sid, account_sid, token]):
        raise ExternalServiceError("OTP service not configured on server")
    base = current_app.config["TWILIO_VERIFY_BASE_URL"]
    return f"{base}/Services/{sid}/{path}", (account_sid, token)


def _post(path, data):
    url, auth = _service_url(path)
    try:
        return requests.post(
            url,
            data=data,
            auth=auth,
            timeout=current_app.config.get("HTTP_TIMEOUT", 10),
        )
    except requests.RequestException as e:
        current_app.logger.error(f"Twilio request failed: {e}")
        raise ExternalServiceError("OTP service unavailable")


def _error_body(r):
    try:
        return r.json()
    except ValueError:
        return {"message": r.text}


def send_code(phone):
    """Send an SMS code to an E.164 phone number."""
    current_app.logger.info(f"[Twilio] Sending OTP to: {phone}")
    r = _post("Verifications", {"To": phone, "Channel": "sms"})
    if r.status_code in (200, 201):
        return True

    err = _error_body(r)
    current_app.logger.error(f"Twilio send error: {err.get('message')}")
    if err.get("code") == INVALID_PARAMETER:
        raise ValidationError("Invalid phone number format. Use +91xxxxxxxxxx")
    raise ExternalServiceError("Failed to send OTP")


def check_code(phone, code):
    """True when Twilio approves ``code`` for ``phone``."""
    r = _post("VerificationCheck", {"To": phone, "Code": code})
    if r.status_code == 404:
        # no pending verification: expired or already used
        return False
    if r.status_code not in (200, 201):
        err = _error_body(r)
        current_app.logger.error(f"Twilio verify error: {err.get('message')}")
        raise ExternalServiceError("Verification process failed")
    return r.json().get("status") == "approved"
