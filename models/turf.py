import enum
from datetime import datetime
from models.db import db


class TurfStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    MAINTENANCE = "MAINTENANCE"
    CLOSED = "CLOSED"


class Turf(db.Model):
    __tablename__ = "turfs"

    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, nullable=False, index=True)  # owning admin (user store is external)
    name = db.Column(db.String(120), nullable=True)

    # Prices are whole currency units
    base_price = db.Column(db.Integer, nullable=False, default=0)
    weekday_price = db.Column(db.Integer, nullable=True)
    weekend_price = db.Column(db.Integer, nullable=True)
    peak_hour_multiplier = db.Column(db.Numeric(4, 2), nullable=False, default=1)
    peak_start_time = db.Column(db.Time, nullable=True)
    peak_end_time = db.Column(db.Time, nullable=True)

    opening_time = db.Column(db.Time, nullable=False)
    closing_time = db.Column(db.Time, nullable=False)

    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(
        db.Enum(TurfStatus, name="turf_status", native_enum=False, create_constraint=True, length=20),
        nullable=False,
        default=TurfStatus.ACTIVE,
    )

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("opening_time < closing_time", name="ck_turf_hours"),
    )

    @property
    def is_bookable(self) -> bool:
        return bool(self.is_approved) and self.status == TurfStatus.ACTIVE
