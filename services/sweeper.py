from datetime import timedelta

from flask import current_app

from models import db
from models.booking import Booking, BookingStatus
from services.state import transition

PAYMENT_TIMEOUT = "PAYMENT_TIMEOUT"
SLOT_ELAPSED = "SLOT_ELAPSED"


def sweep_expired(now):
    candidates = (
        Booking.query
        .filter(Booking.status == BookingStatus.CONFIRMED, Booking.slot_date <= now.date())
        .with_for_update()
        .all()
    )
    expired = [b for b in candidates if now > b.slot_end]
    if not expired:
        db.session.commit()
        return []

    for b in expired:
        transition(b, BookingStatus.EXPIRED, now, reason=SLOT_ELAPSED)
    db.session.commit()
    return expired


def release_stale_pending(now, ttl_minutes=None):
    if ttl_minutes is None:
        ttl_minutes = current_app.config.get("PENDING_TTL_MINUTES", 15)
    if not ttl_minutes:
        return []

    cutoff = now - timedelta(minutes=ttl_minutes)
    stale = (
        Booking.query
        .filter(Booking.status == BookingStatus.PENDING, Booking.created_at < cutoff)
        .with_for_update()
        .all()
    )
    if not stale:
        db.session.commit()
        return []

    for b in stale:
        transition(b, BookingStatus.FAILED, now, reason=PAYMENT_TIMEOUT)
    db.session.commit()
    return stale
