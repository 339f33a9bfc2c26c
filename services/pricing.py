"""Slot pricing. Amounts are whole currency units, rounded half-up."""
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal, ROUND_HALF_UP

WEEKEND_DAYS = {5, 6}  # Saturday, Sunday


@dataclass(frozen=True)
class PriceQuote:
    base_price: int
    final_price: int
    is_peak: bool
    multiplier: Decimal
    is_weekend: bool

    def to_dict(self):
        return {
            "base_price": self.base_price,
            "final_price": self.final_price,
            "is_peak": self.is_peak,
            "multiplier": str(self.multiplier),
            "is_weekend": self.is_weekend,
        }


def round_currency(amount) -> int:
    return int(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS


def is_peak_hour(start: time, peak_start, peak_end) -> bool:
    if peak_start is None or peak_end is None:
        return False
    return peak_start <= start < peak_end


def calculate_price(turf, day: date, start: time) -> PriceQuote:
    weekend = is_weekend(day)
    fallback = turf.base_price or 0
    if weekend:
        base = turf.weekend_price if turf.weekend_price is not None else fallback
    else:
        base = turf.weekday_price if turf.weekday_price is not None else fallback

    peak = is_peak_hour(start, turf.peak_start_time, turf.peak_end_time)
    multiplier = Decimal(str(turf.peak_hour_multiplier if turf.peak_hour_multiplier is not None else 1))

    final = round_currency(Decimal(base) * multiplier) if peak else int(base)
    return PriceQuote(
        base_price=int(base),
        final_price=final,
        is_peak=peak,
        multiplier=multiplier if peak else Decimal("1"),
        is_weekend=weekend,
    )


def percent_of(amount: int, percent) -> int:
    return round_currency(Decimal(amount) * Decimal(str(percent)) / Decimal(100))
