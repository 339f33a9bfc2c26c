from flask import current_app

from models import db
from models.booking import Booking, BookingStatus
from security.rbac import can_cancel_booking
from services.errors import Forbidden, InvalidTransition, NotFound
from services.pricing import percent_of
from services.state import transition
from services.validation import parse_id

WITHDRAWN = "WITHDRAWN"
DEFAULT_CHARGE_PERCENT = 20


def split_refund(price_paid: int, percent=None):
    if percent is None:
        percent = current_app.config.get("CANCELLATION_CHARGE_PERCENT", DEFAULT_CHARGE_PERCENT)
    charge = percent_of(price_paid, percent)
    return charge, price_paid - charge


def cancel(booking_id, actor, now, reason=None):
    booking_id = parse_id(booking_id, "booking_id")

    booking = Booking.query.filter_by(id=booking_id).with_for_update().first()
    if not booking:
        raise NotFound("Booking not found")

    if not can_cancel_booking(actor, booking):
        raise Forbidden("Not your booking")

    if booking.status == BookingStatus.PENDING:
        transition(booking, BookingStatus.FAILED, now, reason=reason or WITHDRAWN, actor_id=actor.user_id)
        booking.cancellation_charge = 0
        booking.refund_due = 0
    elif booking.status == BookingStatus.CONFIRMED:
        charge, refund = split_refund(booking.price_paid)
        transition(booking, BookingStatus.CANCELLED, now, reason=reason, actor_id=actor.user_id)
        booking.cancellation_charge = charge
        booking.refund_due = refund
    else:
        raise InvalidTransition(f"Booking already {booking.status.value}", current=booking.status.value)

    db.session.commit()
    return booking
