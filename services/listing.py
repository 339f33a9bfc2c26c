from models.booking import Booking, BookingStatus, ACTIVE_STATUSES, TERMINAL_STATUSES
from models.turf import Turf
from services.errors import Forbidden, ValidationError
from services.validation import parse_id
from utils.roles import ADMIN, PLAYER, SUPER_ADMIN, normalize_role

STATUS_GROUPS = {
    "active": ACTIVE_STATUSES,
    "history": TERMINAL_STATUSES,
}


def parse_status_filter(status):
    if status is None or str(status).strip() == "":
        return None
    key = str(status).strip()
    if key.lower() in STATUS_GROUPS:
        return list(STATUS_GROUPS[key.lower()])
    try:
        return [BookingStatus(key.upper())]
    except ValueError:
        raise ValidationError(f"Unknown status filter: {key}")


def list_bookings(actor, status=None, turf_id=None, limit=200):
    """
    Role-scoped booking history, newest first.

    PLAYER sees their own bookings, ADMIN sees bookings on turfs they own,
    SUPER_ADMIN sees everything.
    """
    if actor is None:
        raise Forbidden("Authentication required")
    role = normalize_role(actor.role)

    q = Booking.query
    if role == PLAYER:
        q = q.filter(Booking.user_id == actor.user_id)
    elif role == ADMIN:
        q = q.join(Turf, Booking.turf_id == Turf.id).filter(Turf.admin_id == actor.user_id)
    elif role != SUPER_ADMIN:
        raise Forbidden(f"Unknown role: {actor.role}")

    statuses = parse_status_filter(status)
    if statuses:
        q = q.filter(Booking.status.in_(statuses))
    if turf_id is not None:
        q = q.filter(Booking.turf_id == parse_id(turf_id, "turf_id"))

    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()
