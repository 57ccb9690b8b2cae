import re
from flask import current_app, has_app_context


def normalize_phone(phone, country_code=None):
    """
    Normalize a phone number to E.164 before it reaches the OTP provider
    or a user lookup. Send and check must go through the same function.

    - spaces and hyphens are removed
    - a 10 digit local number gets "+<country code>"
    - a number already carrying the bare country code gets a "+"
    """
    if country_code is None:
        country_code = current_app.config.get("PHONE_COUNTRY_CODE", "91") if has_app_context() else "91"

    clean = re.sub(r"[\s-]", "", phone or "")
    if len(clean) == 10 and not clean.startswith("+"):
        return f"+{country_code}{clean}"
    if len(clean) == 10 + len(country_code) and clean.startswith(country_code):
        return f"+{clean}"
    return clean
