from models import db
from models.booking import Booking, BookingStatus
from services.errors import InvalidTransition, NotFound, SlotUnavailable, ValidationError
from services.state import transition

SLOT_RELEASED = "SLOT_RELEASED"
PAYMENT_FAILED = "PAYMENT_FAILED"


def bookings_for_reference(reference):
    """
    All bookings of a batch, locked. ``reference`` is a batch id or the id
    of any booking in the batch (which stands for its whole batch).
    """
    if reference is None or str(reference).strip() == "":
        raise ValidationError("batch id or booking id required")
    ref = str(reference).strip()

    rows = (
        Booking.query
        .filter_by(batch_id=ref)
        .order_by(Booking.id.asc())
        .with_for_update()
        .all()
    )
    if not rows and ref.isdigit():
        booking = db.session.get(Booking, int(ref))
        if booking:
            return bookings_for_reference(booking.batch_id)
    if not rows:
        raise NotFound("Booking not found")
    return rows


def confirm_payment(reference, now):
    """
    PENDING -> CONFIRMED for the whole batch.

    Every booking must still be PENDING and still hold its slot. If a slot
    was taken away underneath the batch, the batch is FAILED instead and
    SlotUnavailable is raised so the payment can be refunded.
    """
    bookings = bookings_for_reference(reference)

    not_pending = [b for b in bookings if b.status != BookingStatus.PENDING]
    if not_pending:
        first = not_pending[0]
        raise InvalidTransition(
            f"Booking {first.id} is {first.status.value}, expected PENDING",
            booking_ids=[b.id for b in not_pending],
        )

    lost = [b for b in bookings if b.slot_id is None]
    if lost:
        for b in bookings:
            transition(b, BookingStatus.FAILED, now, reason=SLOT_RELEASED)
        db.session.commit()
        raise SlotUnavailable(
            [],
            message="Slot(s) released before payment settled; batch failed",
            booking_ids=[b.id for b in lost],
        )

    for b in bookings:
        transition(b, BookingStatus.CONFIRMED, now)
    db.session.commit()
    return bookings


def fail_payment(reference, now, reason=None):
    """PENDING -> FAILED for every still-pending booking in the batch."""
    bookings = bookings_for_reference(reference)
    pending = [b for b in bookings if b.status == BookingStatus.PENDING]
    if not pending:
        first = bookings[0]
        raise InvalidTransition(f"Booking already {first.status.value}", booking_ids=[b.id for b in bookings])

    for b in pending:
        transition(b, BookingStatus.FAILED, now, reason=reason or PAYMENT_FAILED)
    db.session.commit()
    return pending
