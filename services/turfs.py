from datetime import timedelta
from decimal import Decimal, InvalidOperation

from flask import current_app

from models import db
from models.turf import Turf, TurfStatus
from security.rbac import has_role, require_roles, require_turf_manager
from services.errors import ValidationError
from services.slots import create_slots, get_turf, regenerate_for_new_hours, validate_hours
from services.validation import parse_amount, parse_hour, parse_id, parse_time_of_day
from utils.roles import ADMIN, SUPER_ADMIN


def _horizon(days=None) -> int:
    if days is None:
        days = current_app.config.get("SLOT_HORIZON_DAYS", 7)
    days = int(days)
    if days < 1:
        raise ValidationError("horizon must be at least one day")
    return days


def _multiplier(value) -> Decimal:
    try:
        multiplier = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("peak_hour_multiplier must be a number")
    if multiplier <= 0:
        raise ValidationError("peak_hour_multiplier must be positive")
    return multiplier


def seed_slots(turf, today, days=None):
    open_hour, close_hour = turf.opening_time.hour, turf.closing_time.hour
    created = []
    for offset in range(_horizon(days)):
        created.extend(create_slots(turf.id, today + timedelta(days=offset), open_hour, close_hour))
    return created


def register_turf(actor, today, *, open_hour, close_hour, base_price,
                  weekday_price=None, weekend_price=None, peak_hour_multiplier=1,
                  peak_start=None, peak_end=None, name=None, admin_id=None):
    require_roles(actor, ADMIN)

    open_hour = parse_hour(open_hour, "opening_time")
    close_hour = parse_hour(close_hour, "closing_time")
    validate_hours(open_hour, close_hour)

    peak_start_time = parse_time_of_day(peak_start, "peak_start") if peak_start is not None else None
    peak_end_time = parse_time_of_day(peak_end, "peak_end") if peak_end is not None else None
    if (peak_start_time is None) != (peak_end_time is None):
        raise ValidationError("peak_start and peak_end must be set together")
    if peak_start_time is not None and peak_start_time >= peak_end_time:
        raise ValidationError("peak_start must be before peak_end")

    owner_id = actor.user_id
    if admin_id is not None and has_role(actor, SUPER_ADMIN):
        owner_id = parse_id(admin_id, "admin_id")

    turf = Turf(
        admin_id=owner_id,
        name=(name or "").strip() or None,
        base_price=parse_amount(base_price, "base_price"),
        weekday_price=parse_amount(weekday_price, "weekday_price") if weekday_price is not None else None,
        weekend_price=parse_amount(weekend_price, "weekend_price") if weekend_price is not None else None,
        peak_hour_multiplier=_multiplier(peak_hour_multiplier),
        peak_start_time=peak_start_time,
        peak_end_time=peak_end_time,
        opening_time=parse_time_of_day(open_hour),
        closing_time=parse_time_of_day(close_hour),
        is_approved=False,
        status=TurfStatus.ACTIVE,
    )
    db.session.add(turf)
    db.session.flush()

    created = seed_slots(turf, today)
    db.session.commit()
    return turf, created


def update_turf_hours(actor, turf_id, open_hour, close_hour, today, horizon_days=None):
    turf = get_turf(parse_id(turf_id, "turf_id"))
    require_turf_manager(actor, turf)

    open_hour = parse_hour(open_hour, "opening_time")
    close_hour = parse_hour(close_hour, "closing_time")
    validate_hours(open_hour, close_hour)

    turf.opening_time = parse_time_of_day(open_hour)
    turf.closing_time = parse_time_of_day(close_hour)
    result = regenerate_for_new_hours(turf.id, open_hour, close_hour, _horizon(horizon_days), today)
    db.session.commit()
    return turf, result


def set_turf_status(actor, turf_id, status):
    turf = get_turf(parse_id(turf_id, "turf_id"))
    require_turf_manager(actor, turf)
    try:
        new_status = TurfStatus(str(status or "").strip().upper())
    except ValueError:
        raise ValidationError("Invalid status. Must be ACTIVE, MAINTENANCE, or CLOSED")

    turf.status = new_status
    db.session.commit()
    return turf


def approve_turf(actor, turf_id, approved=True):
    require_roles(actor, SUPER_ADMIN)
    turf = get_turf(parse_id(turf_id, "turf_id"))
    turf.is_approved = bool(approved)
    db.session.commit()
    return turf


def extend_horizon(today, days=None):
    """Create missing slots for every approved turf over the rolling horizon."""
    created = 0
    for turf in Turf.query.filter_by(is_approved=True).order_by(Turf.id.asc()).all():
        created += len(seed_slots(turf, today, days))
    db.session.commit()
    return created
