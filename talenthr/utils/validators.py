import re

from talenthr.utils.responses import fail

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_fields(data: dict, fields: list, message=None):
    missing = [f for f in fields if f not in data or data.get(f) in (None, "", [])]
    if missing:
        return fail(message or f"{', '.join(missing)} required", 400, errors={"missing_fields": missing})
    return None


def normalize_email(email):
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def is_valid_email(email):
    return bool(email) and EMAIL_RE.match(email) is not None


def check_email(email):
    if not is_valid_email(email):
        return fail("Invalid email address", 400)
    return None


def check_string(value, field):
    if value is not None and not isinstance(value, str):
        return fail(f"{field} must be a string", 400)
    return None


def check_choice(value, choices, field):
    if value is not None and value not in choices:
        return fail(f"Invalid {field}. Must be one of: {', '.join(choices)}", 400)
    return None


def check_min_length(value, length, field):
    if value is None or len(str(value).strip()) < length:
        return fail(f"{field} must be at least {length} characters", 400)
    return None


def check_range(value, low, high, field):
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fail(f"{field} must be a number", 400)
    if number < low or number > high:
        return fail(f"{field} must be between {low} and {high}", 400)
    return None


def first_error(*checks):
    for err in checks:
        if err is not None:
            return err
    return None
