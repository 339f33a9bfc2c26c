from datetime import date, time, timedelta

from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, ACTIVE_STATUSES
from models.slot import Slot
from models.turf import Turf
from services.errors import DuplicateSlot, NotFound, SlotBooked, ValidationError
from services.pricing import calculate_price

MAX_HOUR = 23


def validate_hours(open_hour, close_hour):
    if not isinstance(open_hour, int) or not isinstance(close_hour, int):
        raise ValidationError("open/close hours must be whole hours")
    if not (0 <= open_hour < close_hour <= MAX_HOUR):
        raise ValidationError(f"Hours must satisfy 0 <= open < close <= {MAX_HOUR}")


def hour_windows(open_hour: int, close_hour: int):
    validate_hours(open_hour, close_hour)
    return [(time(h, 0), time(h + 1, 0)) for h in range(open_hour, close_hour)]


def turf_hours(turf):
    return turf.opening_time.hour, turf.closing_time.hour


def get_turf(turf_id) -> Turf:
    if not turf_id:
        raise ValidationError("turf_id required")
    turf = db.session.get(Turf, turf_id)
    if not turf:
        raise NotFound("Turf not found")
    return turf


def list_slots(turf_id, day: date):
    return (
        Slot.query
        .filter_by(turf_id=turf_id, date=day)
        .order_by(Slot.start_time.asc())
        .all()
    )


def booked_slot_ids(slot_ids):
    """Ids among ``slot_ids`` that carry an active booking."""
    slot_ids = list(slot_ids)
    if not slot_ids:
        return set()
    rows = (
        db.session.query(Booking.slot_id)
        .filter(Booking.slot_id.in_(slot_ids), Booking.status.in_(ACTIVE_STATUSES))
        .all()
    )
    return {r.slot_id for r in rows}


def create_slot(turf, day: date, start: time, end: time, today: date = None) -> Slot:
    """
    Add one window to the grid. It must be one of the turf's own hour
    windows, so it can never overlap a generated slot.
    """
    if end <= start:
        raise ValidationError("end_time must be after start_time")
    if (start.minute, start.second, end.minute, end.second) != (0, 0, 0, 0):
        raise ValidationError("Slots must start and end on the hour")
    if end.hour - start.hour != 1:
        raise ValidationError("Slots are exactly one hour long")
    if (start, end) not in hour_windows(*turf_hours(turf)):
        raise ValidationError("Slot must be within the turf's opening hours")
    if today is not None and day < today:
        raise ValidationError("Cannot create a slot in the past")

    exists = Slot.query.filter_by(turf_id=turf.id, date=day, start_time=start, end_time=end).first()
    if exists:
        raise DuplicateSlot()

    slot = Slot(turf_id=turf.id, date=day, start_time=start, end_time=end)
    db.session.add(slot)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateSlot()
    return slot


def create_slots(turf_id, day: date, open_hour: int, close_hour: int):
    """Add the missing hour windows for ``day``; returns only the new slots. Caller commits."""
    windows = hour_windows(open_hour, close_hour)
    existing = {
        (s.start_time, s.end_time)
        for s in Slot.query.filter_by(turf_id=turf_id, date=day).all()
    }

    created = []
    for start, end in windows:
        if (start, end) in existing:
            continue
        slot = Slot(turf_id=turf_id, date=day, start_time=start, end_time=end)
        db.session.add(slot)
        created.append(slot)
    db.session.flush()
    return created


def remove_slot(slot_id) -> Slot:
    """Delete a slot with no active booking. Historic bookings keep their window snapshot."""
    slot = db.session.get(Slot, slot_id) if slot_id else None
    if not slot:
        raise NotFound("Slot not found")

    if booked_slot_ids([slot.id]):
        raise SlotBooked("Cannot delete a slot with an active booking")

    db.session.delete(slot)
    db.session.flush()
    return slot


def regenerate_for_new_hours(turf_id, new_open: int, new_close: int, horizon_days: int, today: date):
    """
    Re-shape the slot grid for [today, today + horizon_days) to new hours.

    Free slots outside the new hours are removed, missing windows inside
    them are created, and any slot with an active booking is left exactly
    as it is. Running it again with the same hours changes nothing.
    """
    wanted = set(hour_windows(new_open, new_close))
    removed = 0
    created = 0

    for offset in range(horizon_days):
        day = today + timedelta(days=offset)
        slots = (
            Slot.query
            .filter_by(turf_id=turf_id, date=day)
            .with_for_update()
            .all()
        )
        booked = booked_slot_ids([s.id for s in slots])
        for slot in slots:
            if slot.id in booked:
                continue
            if (slot.start_time, slot.end_time) not in wanted:
                db.session.delete(slot)
                removed += 1
        db.session.flush()

        created += len(create_slots(turf_id, day, new_open, new_close))

    return {"removed": removed, "created": created}


def ensure_slots(turf, day: date, today: date):
    """Fill in missing windows for ``day`` inside the turf's current hours (today or later only)."""
    if day < today:
        return []
    open_hour, close_hour = turf_hours(turf)
    return create_slots(turf.id, day, open_hour, close_hour)


def describe_slots(turf, slots, now=None):
    booked = booked_slot_ids([s.id for s in slots])
    out = []
    for s in slots:
        quote = calculate_price(turf, s.date, s.start_time)
        row = {
            "id": s.id,
            "turf_id": s.turf_id,
            "date": s.date.isoformat(),
            "start_time": s.start_time.strftime("%H:%M"),
            "end_time": s.end_time.strftime("%H:%M"),
            "is_booked": s.id in booked,
        }
        row.update(quote.to_dict())
        if now is not None:
            today = now.date()
            row["is_past"] = s.date < today or (s.date == today and s.end_time <= now.time())
            row["has_started"] = s.date < today or (s.date == today and s.start_time <= now.time())
        out.append(row)
    return out


def available_slots(turf, day: date, now):
    """
    Slots for ``day`` within current opening hours, each annotated with
    availability and price. Stale windows outside the hours are omitted.
    """
    try:
        ensure_slots(turf, day, now.date())
        db.session.commit()
    except IntegrityError:
        # a concurrent reader generated the same windows first
        db.session.rollback()

    windows = set(hour_windows(*turf_hours(turf)))
    slots = [s for s in list_slots(turf.id, day) if (s.start_time, s.end_time) in windows]
    return describe_slots(turf, slots, now=now)
