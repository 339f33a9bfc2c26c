from datetime import date, datetime, time

from services.errors import ValidationError


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat((value or "").strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError("Invalid date. Use YYYY-MM-DD")


def parse_time_of_day(value, field="time") -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        if 0 <= value <= 23:
            return time(value, 0)
        raise ValidationError(f"{field} hour must be between 0 and 23")
    try:
        return time.fromisoformat((value or "").strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {field}. Use HH:MM")


def parse_hour(value, field) -> int:
    """Whole hour from an int, ``time`` or ``"HH:00"`` string."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole hour")
    hour_time = parse_time_of_day(value, field)
    if hour_time.minute or hour_time.second:
        raise ValidationError(f"{field} must be on the hour")
    return hour_time.hour


def parse_id(value, field="id") -> int:
    if isinstance(value, bool) or value in (None, ""):
        raise ValidationError(f"{field} required")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if parsed <= 0:
        raise ValidationError(f"{field} must be positive")
    return parsed


def parse_ids(values, field="slot_ids"):
    """Non-empty list of ids, de-duplicated, request order kept."""
    if isinstance(values, (str, bytes)) or not values:
        raise ValidationError(f"{field} must be a non-empty list")
    try:
        items = list(values)
    except TypeError:
        raise ValidationError(f"{field} must be a non-empty list")
    out = []
    for v in items:
        parsed = parse_id(v, field)
        if parsed not in out:
            out.append(parsed)
    return out


def parse_amount(value, field) -> int:
    if isinstance(value, (bool, float)):
        raise ValidationError(f"{field} must be a whole amount")
    try:
        amount = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole amount")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    return amount
