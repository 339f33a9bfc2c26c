from .db import db
from .audit_log import AuditLog
from .turf import Turf, TurfStatus
from .slot import Slot
from .booking import Booking, BookingStatus, ACTIVE_STATUSES, TERMINAL_STATUSES
