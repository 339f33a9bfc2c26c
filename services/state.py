"""
Booking state machine.

    PENDING   -> CONFIRMED | FAILED
    CONFIRMED -> CANCELLED | EXPIRED
    CANCELLED, EXPIRED, FAILED are absorbing.

Leaving PENDING/CONFIRMED is what releases a slot; there is no separate
flag to clear.
"""
from models.booking import BookingStatus
from services.errors import InvalidTransition

TRANSITIONS = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.FAILED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.CANCELLED, BookingStatus.EXPIRED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
    BookingStatus.FAILED: frozenset(),
}

if set(TRANSITIONS) != set(BookingStatus):
    raise RuntimeError("TRANSITIONS must list every BookingStatus")


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in TRANSITIONS[BookingStatus(current)]


def assert_transition(current: BookingStatus, target: BookingStatus):
    current = BookingStatus(current)
    if not can_transition(current, target):
        if not TRANSITIONS[current]:
            message = f"Booking already {current.value}"
        else:
            message = f"Invalid booking transition: {current.value} -> {target.value}"
        raise InvalidTransition(message, current=current.value, target=target.value)


def transition(booking, target: BookingStatus, at, reason=None, actor_id=None):
    assert_transition(booking.status, target)
    booking.status = target
    booking.status_changed_at = at
    if reason is not None:
        booking.status_reason = reason
    if actor_id is not None:
        booking.cancelled_by = actor_id
    return booking
