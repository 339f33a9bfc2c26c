"""Outbound booking signals, sent after commit."""
from blinker import Namespace
from flask import current_app

_signals = Namespace()

amount_due = _signals.signal("amount-due")
booking_confirmed = _signals.signal("booking-confirmed")
booking_cancelled = _signals.signal("booking-cancelled")
booking_expired = _signals.signal("booking-expired")
booking_failed = _signals.signal("booking-failed")


def emit(signal, sender, **payload):
    delivered = 0
    for receiver in signal.receivers_for(sender):
        try:
            receiver(sender, **payload)
            delivered += 1
        except Exception:
            current_app.logger.exception("Receiver for %s failed", signal.name)
    return delivered
