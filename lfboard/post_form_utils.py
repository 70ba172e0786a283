import re
from urllib.parse import urlsplit


POST_TYPES = ("lost", "found")
MAX_IMAGES = 5

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^[\d\s+()-]+$")

# Order in which field errors are reported.
FIELD_ORDER = ("type", "title", "description", "imageUrls", "contactEmail", "contactPhone", "secret")


def normalize_optional(value):
    """Trim a submitted string; blank means the field was not given."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def read_post_fields_from_form(request_obj):
    return {
        "type": (request_obj.form.get("type") or "").strip(),
        "title": (request_obj.form.get("title") or "").strip(),
        "description": normalize_optional(request_obj.form.get("description")),
        "contactEmail": normalize_optional(request_obj.form.get("contactEmail")),
        "contactPhone": normalize_optional(request_obj.form.get("contactPhone")),
        # The secret is compared verbatim later, so only blankness is checked here.
        "secret": request_obj.form.get("secret") if normalize_optional(request_obj.form.get("secret")) else None,
        "imageUrls": [],
    }


def is_valid_url(value) -> bool:
    if not isinstance(value, str):
        return False
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def validate_post_fields(fields: dict):
    errors = {}

    if fields.get("type") not in POST_TYPES:
        errors["type"] = "Type must be either lost or found"

    title = fields.get("title") or ""
    if len(title) < 3:
        errors["title"] = "Title must be at least 3 characters"
    elif len(title) > 100:
        errors["title"] = "Title must be less than 100 characters"

    description = fields.get("description")
    if description is not None and len(description) > 500:
        errors["description"] = "Description must be less than 500 characters"

    image_urls = fields.get("imageUrls") or []
    if len(image_urls) > MAX_IMAGES:
        errors["imageUrls"] = f"Maximum {MAX_IMAGES} images allowed"
    elif not all(is_valid_url(u) for u in image_urls):
        errors["imageUrls"] = "Invalid image URL"

    email = fields.get("contactEmail")
    if email is not None and not EMAIL_RE.match(email):
        errors["contactEmail"] = "Invalid email address"

    phone = fields.get("contactPhone")
    if phone is not None:
        if len(phone) < 10:
            errors["contactPhone"] = "Phone number must be at least 10 digits"
        elif len(phone) > 15:
            errors["contactPhone"] = "Phone number is too long"
        elif not PHONE_RE.match(phone):
            errors["contactPhone"] = "Phone number can only contain digits, spaces, +, -, and ()"

    secret = fields.get("secret")
    if secret is None or not secret.strip():
        errors["secret"] = "Secret password is required"
    elif len(secret) < 4:
        errors["secret"] = "Secret must be at least 4 characters"
    elif len(secret) > 50:
        errors["secret"] = "Secret must be less than 50 characters"

    return len(errors) == 0, errors


def first_error_message(errors: dict) -> str:
    for key in FIELD_ORDER:
        if key in errors:
            return errors[key]
    return next(iter(errors.values()), "Invalid request")


def validate_resolution_payload(payload):
    if not isinstance(payload, dict):
        return False, {"body": "Request body must be a JSON object"}

    errors = {}
    post_id = payload.get("id")
    # JSON numbers like 3.0 still name post 3; bool is an int subclass.
    if isinstance(post_id, float) and post_id.is_integer():
        post_id = int(post_id)
    if isinstance(post_id, bool) or not isinstance(post_id, int):
        errors["id"] = "Post id must be a number"

    secret = payload.get("secret")
    if not isinstance(secret, str) or len(secret) < 1:
        errors["secret"] = "Secret is required"

    if errors:
        return False, errors
    return True, {"id": post_id, "secret": secret}
