import enum
from datetime import datetime
from models.db import db


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"      # reserved, payment not settled
    CONFIRMED = "CONFIRMED"  # payment settled
    CANCELLED = "CANCELLED"  # confirmed booking cancelled by user/admin
    EXPIRED = "EXPIRED"      # confirmed booking whose slot window elapsed
    FAILED = "FAILED"        # pending booking that never completed payment


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
TERMINAL_STATUSES = (BookingStatus.CANCELLED, BookingStatus.EXPIRED, BookingStatus.FAILED)

_ACTIVE_SQL = "status IN ('PENDING', 'CONFIRMED')"


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    batch_id = db.Column(db.String(36), nullable=False, index=True)

    user_id = db.Column(db.Integer, nullable=False, index=True)
    turf_id = db.Column(db.Integer, db.ForeignKey("turfs.id"), nullable=False, index=True)
    # Cleared if a free slot is later removed; the window snapshot below stays.
    slot_id = db.Column(db.Integer, db.ForeignKey("slots.id"), nullable=True, index=True)

    slot_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    status = db.Column(
        db.Enum(BookingStatus, name="booking_status", native_enum=False, create_constraint=True, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )

    base_price = db.Column(db.Integer, nullable=False)
    is_peak = db.Column(db.Boolean, default=False, nullable=False)
    price_paid = db.Column(db.Integer, nullable=False)
    cancellation_charge = db.Column(db.Integer, nullable=True)
    refund_due = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False)
    status_changed_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.Integer, nullable=True)
    status_reason = db.Column(db.String(120), nullable=True)

    turf = db.relationship("Turf")
    slot = db.relationship("Slot", back_populates="bookings")

    __table_args__ = (
        # Hard business rule: at most one PENDING/CONFIRMED booking per slot
        db.Index(
            "uq_bookings_active_slot",
            "slot_id",
            unique=True,
            sqlite_where=db.text(_ACTIVE_SQL),
            postgresql_where=db.text(_ACTIVE_SQL),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def slot_end(self) -> datetime:
        return datetime.combine(self.slot_date, self.end_time)

    def to_dict(self):
        return {
            "id": self.id,
            "batch_id": self.batch_id,
            "user_id": self.user_id,
            "turf_id": self.turf_id,
            "slot_id": self.slot_id,
            "date": self.slot_date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "status": self.status.value,
            "base_price": self.base_price,
            "is_peak": self.is_peak,
            "price_paid": self.price_paid,
            "cancellation_charge": self.cancellation_charge,
            "refund_due": self.refund_due,
            "created_at": self.created_at.isoformat(),
            "status_changed_at": self.status_changed_at.isoformat() if self.status_changed_at else None,
            "status_reason": self.status_reason,
        }
