import hashlib
import hmac
import requests
from flask import current_app

from academy.errors import ExternalServiceError


def _credentials():
    key_id = current_app.config.get("RAZORPAY_KEY_ID")
    key_secret = current_app.config.get("RAZORPAY_KEY_SECRET")
    if not key_id or not key_secret:
        raise ExternalServiceError("Razorpay not configured on server")
    return key_id, key_secret


def create_charge_intent(amount_subunits, currency, receipt, notes=None):
    """
    Create a Razorpay order and return its id.

    ``amount_subunits`` is already in paise. Nothing is retried; any
    transport or API failure is raised as ExternalServiceError.
    """
    key_id, key_secret = _credentials()
    url = f"{current_app.config['RAZORPAY_BASE_URL']}/orders"
    payload = {
        "amount": amount_subunits,
        "currency": currency,
        "receipt": receipt,
        "notes": notes or {},
    }

    try:
        r = requests.post(
            url,
            json=payload,
            auth=(key_id, key_secret),
            timeout=current_app.config.get("HTTP_TIMEOUT", 10),
        )
    except requests.Timeout:
        current_app.logger.error(f"Razorpay timeout creating order {receipt}")
        raise ExternalServiceError("Payment gateway timeout")
    except requests.RequestException as e:
        current_app.logger.error(f"Razorpay error creating order {receipt}: {e}")
        raise ExternalServiceError("Could not reach payment gateway")

    if r.status_code not in (200, 201):
        try:
            err = r.json()
        except ValueError:
            err = {"message": r.text}
        current_app.logger.error(f"Razorpay rejected order {receipt}: {err}")
        raise ExternalServiceError("Failed to create payment order", details=err)

    data = r.json()
    return data["id"]


def expected_signature(order_id, payment_id, secret):
    body = f"{order_id}|{payment_id}"
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


def signature_matches(order_id, payment_id, signature, secret=None):
    if secret is None:
        _, secret = _credentials()
    expected = expected_signature(order_id, payment_id, secret)
    return hmac.compare_digest(expected, signature or "")
