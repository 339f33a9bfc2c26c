"""Domain errors; ``services.api`` maps them to ``(body, status_code)``."""


class BookingError(Exception):
    status_code = 500
    default_message = "Booking engine error"

    def __init__(self, message=None, code=None, **details):
        self.message = message or self.default_message
        self.code = code or self.__class__.__name__
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        body = {"error": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(BookingError):
    status_code = 400
    default_message = "Invalid input"


class Forbidden(BookingError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(BookingError):
    status_code = 404
    default_message = "Not found"


class InvalidTransition(BookingError):
    status_code = 409
    default_message = "Transition not allowed"


class SlotUnavailable(BookingError):
    """Carries ``slot_ids``: the slots the caller must deselect before retrying."""

    status_code = 409
    default_message = "Slot(s) unavailable"

    def __init__(self, slot_ids, message=None, **details):
        slot_ids = sorted(slot_ids)
        message = message or f"Slot(s) unavailable: {', '.join(str(s) for s in slot_ids)}"
        super().__init__(message, slot_ids=slot_ids, **details)
        self.slot_ids = slot_ids


class SlotBooked(BookingError):
    status_code = 409
    default_message = "Slot has an active booking"


class TurfUnavailable(BookingError):
    status_code = 409
    default_message = "Turf is not accepting bookings"


class DuplicateSlot(BookingError):
    status_code = 409
    default_message = "Slot already exists for that turf and time"


class Internal(BookingError):
    status_code = 500
    default_message = "Internal error"
