"""Batch reservation: every requested slot gets a PENDING booking, or none does."""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BookingStatus, ACTIVE_STATUSES
from models.slot import Slot
from services.errors import SlotUnavailable, TurfUnavailable, ValidationError
from services.ids import new_batch_id
from services.pricing import calculate_price
from services.slots import booked_slot_ids, get_turf
from services.state import transition
from services.validation import parse_id, parse_ids

SUPERSEDED = "SUPERSEDED"


def _lock_slots(slot_ids):
    return (
        Slot.query
        .filter(Slot.id.in_(slot_ids))
        .order_by(Slot.id.asc())
        .with_for_update()
        .all()
    )


def _lock_active_bookings(slot_ids):
    return (
        Booking.query
        .filter(Booking.slot_id.in_(slot_ids), Booking.status.in_(ACTIVE_STATUSES))
        .order_by(Booking.id.asc())
        .with_for_update()
        .all()
    )


def find_conflicts(turf, slot_ids, user_id, now):
    """
    Check every requested slot; returns ``(slots, conflicts, supersede)``.

    A slot conflicts if it is missing, belongs to another turf, has already
    started, or holds an active booking that is not this user's own stalled
    PENDING checkout. Those stalled bookings come back in ``supersede``.
    """
    slots = _lock_slots(slot_ids)
    by_id = {s.id: s for s in slots}

    conflicts = set()
    for sid in slot_ids:
        slot = by_id.get(sid)
        if slot is None or slot.turf_id != turf.id:
            conflicts.add(sid)
            continue
        if slot.date < now.date() or (slot.date == now.date() and slot.start_time <= now.time()):
            conflicts.add(sid)

    supersede = []
    for booking in _lock_active_bookings(slot_ids):
        if booking.status == BookingStatus.PENDING and booking.user_id == user_id:
            supersede.append(booking)
        else:
            conflicts.add(booking.slot_id)

    ordered = [by_id[sid] for sid in slot_ids if sid in by_id]
    return ordered, conflicts, supersede


def amount_due(bookings, platform_fee=None) -> dict:
    if platform_fee is None:
        platform_fee = current_app.config.get("PLATFORM_FEE", 0)
    subtotal = sum(b.price_paid for b in bookings)
    fee = int(platform_fee) if bookings else 0
    return {
        "subtotal": subtotal,
        "platform_fee": fee,
        "total": subtotal + fee,
        "currency": current_app.config.get("CURRENCY", "INR"),
    }


def reserve(turf_id, slot_ids, user_id, now):
    """
    Returns ``(batch_id, bookings, superseded)``; raises TurfUnavailable,
    SlotUnavailable (naming every conflicting slot) or ValidationError.
    Commits on success, leaves the session clean on failure.
    """
    user_id = parse_id(user_id, "user_id")
    turf_id = parse_id(turf_id, "turf_id")
    slot_ids = parse_ids(slot_ids)

    turf = get_turf(turf_id)
    if not turf.is_approved:
        raise TurfUnavailable("This turf is under review and cannot accept bookings yet")
    if not turf.is_bookable:
        raise TurfUnavailable(f"Turf is {turf.status.value} and cannot accept bookings")

    # ---- critical section: nothing below may hand control elsewhere until commit ----
    slots, conflicts, supersede = find_conflicts(turf, slot_ids, user_id, now)
    if conflicts:
        db.session.rollback()
        raise SlotUnavailable(conflicts)

    for stale in supersede:
        transition(stale, BookingStatus.FAILED, now, reason=SUPERSEDED)
    # stale rows must leave the active set before new rows reach the unique index
    db.session.flush()

    batch_id = new_batch_id()
    bookings = []
    for slot in slots:
        quote = calculate_price(turf, slot.date, slot.start_time)
        booking = Booking(
            batch_id=batch_id,
            user_id=user_id,
            turf_id=turf.id,
            slot_id=slot.id,
            slot_date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            status=BookingStatus.PENDING,
            base_price=quote.base_price,
            is_peak=quote.is_peak,
            price_paid=quote.final_price,
            created_at=now,
            status_changed_at=now,
        )
        db.session.add(booking)
        bookings.append(booking)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        taken = booked_slot_ids(slot_ids)
        raise SlotUnavailable(taken or slot_ids)
    # ---- end critical section ----

    return batch_id, bookings, supersede
