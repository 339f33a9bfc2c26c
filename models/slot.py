from datetime import datetime
from models.db import db


class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    turf_id = db.Column(db.Integer, db.ForeignKey("turfs.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    turf = db.relationship("Turf")
    bookings = db.relationship("Booking", back_populates="slot")

    __table_args__ = (
        # Prevent duplicate slot windows for the same turf
        db.UniqueConstraint("turf_id", "date", "start_time", "end_time", name="uq_turf_slot_window"),
    )

    @property
    def active_booking(self):
        for booking in self.bookings:
            if booking.is_active:
                return booking
        return None

    @property
    def is_booked(self) -> bool:
        # Derived from bookings; there is no stored flag to drift out of sync.
        return self.active_booking is not None
