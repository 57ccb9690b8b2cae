import re
import secrets
import time


def slugify(text):
    text = (text or "").lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")


def unique_slug(title, fallback_prefix=None):
    """Slug from the title with a millisecond timestamp and a short random suffix."""
    suffix = f"{int(time.time() * 1000)}-{secrets.token_hex(3)}"
    base = slugify(title)
    if not base:
        return f"{fallback_prefix or 'item'}-{suffix}"
    return f"{base}-{suffix}"
