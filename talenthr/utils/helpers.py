import re
from datetime import datetime, date, timezone


def utcnow():
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value):
    return value.isoformat() if value else None


def slugify(name: str) -> str:
    slug = (name or "").lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def parse_date(value):
    """
    Accepts:
      - YYYY-MM-DD
      - full ISO timestamps (date part is used)
    Returns None when empty, raises ValueError when malformed.
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    value = str(value).strip()
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date format: {value}")


def parse_datetime(value):
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value

    value = str(value).strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid datetime format: {value}")
    # wall-clock fields are stored as naive server-local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def to_int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
