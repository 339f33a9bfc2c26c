"""Public operations. Each returns ``(body, status_code)``."""
from functools import wraps

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.slot import Slot
from security.rbac import require_turf_manager
from services import cancellation, events, listing, payments, reservation, slots, sweeper, turfs
from services.clock import now as clock_now
from services.errors import BookingError, Internal, NotFound, SlotUnavailable
from services.validation import parse_date, parse_id, parse_time_of_day
from utils.audit import log_event


def operation(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except BookingError as exc:
            db.session.rollback()
            return exc.to_dict(), exc.status_code
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Storage failure in %s", fn.__name__)
            err = Internal()
            return err.to_dict(), err.status_code
    return wrapper


def _audit(action, **fields):
    # runs after the domain commit; a failed audit write is logged, not returned
    try:
        log_event(action, **fields)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Audit write failed for %s", action)


def _app():
    return current_app._get_current_object()


def _batch_body(bookings):
    return {
        "batch_id": bookings[0].batch_id if bookings else None,
        "bookings": [b.to_dict() for b in bookings],
    }


def _run_sweeps(now):
    expired = sweeper.sweep_expired(now)
    for b in expired:
        _audit("BOOKING_EXPIRE", entity="booking", entity_id=b.id,
               metadata={"batch_id": b.batch_id, "slot_id": b.slot_id})
        events.emit(events.booking_expired, _app(), booking=b.to_dict())

    failed = sweeper.release_stale_pending(now)
    for b in failed:
        _audit("BOOKING_FAIL", entity="booking", entity_id=b.id,
               metadata={"batch_id": b.batch_id, "reason": b.status_reason})
    for batch_id in sorted({b.batch_id for b in failed}):
        events.emit(events.booking_failed, _app(), batch_id=batch_id,
                    bookings=[b.to_dict() for b in failed if b.batch_id == batch_id])

    if expired or failed:
        current_app.logger.info("Sweep: %d expired, %d pending released", len(expired), len(failed))
    return expired, failed


# ---------- sweeps ----------
@operation
def sweep():
    expired, failed = _run_sweeps(clock_now())
    return {"expired": [b.id for b in expired], "failed": [b.id for b in failed]}, 200


# ---------- PLAYERS: view slots ----------
@operation
def list_available_slots(turf_id, date, only_available=False):
    now = clock_now()
    turf = slots.get_turf(parse_id(turf_id, "turf_id"))
    day = parse_date(date)
    _run_sweeps(now)

    rows = slots.available_slots(turf, day, now)
    for row in rows:
        row["available"] = turf.is_bookable and not row["is_booked"] and not row["has_started"]
    if only_available:
        rows = [r for r in rows if r["available"]]
    return {"turf_id": turf.id, "date": day.isoformat(), "slots": rows}, 200


# ---------- PLAYERS: reserve (DOUBLE-BOOKING SAFE) ----------
@operation
def reserve(turf_id, slot_ids, user_id):
    now = clock_now()
    _run_sweeps(now)

    try:
        batch_id, bookings, superseded = reservation.reserve(turf_id, slot_ids, user_id, now)
    except SlotUnavailable as exc:
        db.session.rollback()
        _audit("BOOKING_RESERVE_FAIL", user_id=user_id, entity="turf", entity_id=turf_id,
               metadata={"slot_ids": exc.slot_ids})
        raise

    due = reservation.amount_due(bookings)
    for b in superseded:
        _audit("BOOKING_SUPERSEDE", user_id=b.user_id, entity="booking", entity_id=b.id,
               metadata={"batch_id": b.batch_id, "replaced_by": batch_id})
    _audit("BOOKING_RESERVE", user_id=bookings[0].user_id, entity="batch", entity_id=batch_id,
           metadata={"slot_ids": [b.slot_id for b in bookings], "amount_due": due["total"]})
    events.emit(events.amount_due, _app(), batch_id=batch_id, **due)

    body = _batch_body(bookings)
    body["status"] = "PENDING"
    body["amount_due"] = due
    return body, 201


# ---------- payment collaborator ----------
@operation
def confirm_payment(reference):
    bookings = payments.confirm_payment(reference, clock_now())
    body = _batch_body(bookings)
    _audit("BOOKING_CONFIRM", user_id=bookings[0].user_id, entity="batch", entity_id=body["batch_id"],
           metadata={"booking_ids": [b.id for b in bookings]})
    events.emit(events.booking_confirmed, _app(), **body)
    body["status"] = "CONFIRMED"
    return body, 200


@operation
def fail_payment(reference, reason=None):
    bookings = payments.fail_payment(reference, clock_now(), reason=reason)
    body = _batch_body(bookings)
    _audit("BOOKING_FAIL", user_id=bookings[0].user_id, entity="batch", entity_id=body["batch_id"],
           metadata={"booking_ids": [b.id for b in bookings], "reason": bookings[0].status_reason})
    events.emit(events.booking_failed, _app(), **body)
    body["status"] = "FAILED"
    return body, 200


# ---------- PLAYERS/ADMINS: cancel ----------
@operation
def cancel(booking_id, actor, reason=None):
    now = clock_now()
    _run_sweeps(now)

    booking = cancellation.cancel(booking_id, actor, now, reason=reason)
    body = {
        "booking_id": booking.id,
        "status": booking.status.value,
        "cancellation_charge": booking.cancellation_charge,
        "refund_due": booking.refund_due,
    }
    action = "BOOKING_CANCEL" if booking.status.value == "CANCELLED" else "BOOKING_FAIL"
    _audit(action, user_id=actor.user_id, entity="booking", entity_id=booking.id,
           metadata={"charge": booking.cancellation_charge, "refund": booking.refund_due,
                     "reason": booking.status_reason})
    signal = events.booking_cancelled if action == "BOOKING_CANCEL" else events.booking_failed
    events.emit(signal, _app(), booking=booking.to_dict(), **body)
    return body, 200


# ---------- bookings by role ----------
@operation
def list_bookings(actor, status=None, turf_id=None):
    _run_sweeps(clock_now())
    rows = listing.list_bookings(actor, status=status, turf_id=turf_id)
    return {"bookings": [b.to_dict() for b in rows]}, 200


# ---------- ADMIN: turfs and slots ----------
@operation
def register_turf(actor, **fields):
    turf, created = turfs.register_turf(actor, clock_now().date(), **fields)
    _audit("TURF_REGISTER", user_id=actor.user_id, entity="turf", entity_id=turf.id,
           metadata={"slots_created": len(created)})
    return {"id": turf.id, "is_approved": turf.is_approved, "status": turf.status.value,
            "slots_created": len(created)}, 201


@operation
def update_turf_hours(actor, turf_id, open_hour, close_hour):
    turf, result = turfs.update_turf_hours(actor, turf_id, open_hour, close_hour, clock_now().date())
    _audit("TURF_HOURS_UPDATE", user_id=actor.user_id, entity="turf", entity_id=turf.id,
           metadata={"open": open_hour, "close": close_hour, **result})
    _audit("SLOTS_REGENERATE", user_id=actor.user_id, entity="turf", entity_id=turf.id, metadata=result)
    return {"id": turf.id, **result}, 200


@operation
def set_turf_status(actor, turf_id, status):
    turf = turfs.set_turf_status(actor, turf_id, status)
    _audit("TURF_STATUS_UPDATE", user_id=actor.user_id, entity="turf", entity_id=turf.id,
           metadata={"status": turf.status.value})
    return {"id": turf.id, "status": turf.status.value}, 200


@operation
def approve_turf(actor, turf_id, approved=True):
    turf = turfs.approve_turf(actor, turf_id, approved)
    _audit("TURF_APPROVE", user_id=actor.user_id, entity="turf", entity_id=turf.id,
           metadata={"approved": turf.is_approved})
    return {"id": turf.id, "is_approved": turf.is_approved}, 200


@operation
def create_slot(actor, turf_id, date, start_time, end_time):
    turf = slots.get_turf(parse_id(turf_id, "turf_id"))
    require_turf_manager(actor, turf)
    slot = slots.create_slot(turf, parse_date(date),
                             parse_time_of_day(start_time, "start_time"),
                             parse_time_of_day(end_time, "end_time"),
                             today=clock_now().date())
    db.session.commit()
    _audit("SLOTS_CREATE", user_id=actor.user_id, entity="slot", entity_id=slot.id)
    return {"id": slot.id}, 201


@operation
def remove_slot(actor, slot_id):
    slot = db.session.get(Slot, parse_id(slot_id, "slot_id"))
    if not slot:
        raise NotFound("Slot not found")
    require_turf_manager(actor, slot.turf)

    slots.remove_slot(slot.id)
    db.session.commit()
    _audit("SLOT_REMOVE", user_id=actor.user_id, entity="slot", entity_id=slot_id)
    return {"message": "Slot deleted"}, 200
