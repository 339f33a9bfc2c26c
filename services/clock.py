from datetime import datetime

from flask import current_app


class SystemClock:
    """Venue-local wall clock (naive, matching slot date/time columns)."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to a given instant; ``advance`` moves it forward."""

    def __init__(self, at: datetime):
        self._now = at

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime):
        self._now = at

    def advance(self, delta):
        self._now = self._now + delta


def get_clock():
    return current_app.extensions.get("booking_clock") or SystemClock()


def now() -> datetime:
    return get_clock().now()
