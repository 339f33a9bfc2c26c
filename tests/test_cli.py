from datetime import datetime

from conftest import MONDAY, confirmed_booking, slot_at
from models.slot import Slot


def test_sweep_bookings_command(app, turf, clock, player):
    confirmed_booking(turf, slot_at(turf, MONDAY, 10), player)
    clock.set(datetime(2026, 10, 19, 12, 0))

    result = app.test_cli_runner().invoke(args=["sweep-bookings"])
    assert result.exit_code == 0
    assert "expired=1 failed=0" in result.output


def test_generate_slots_extends_horizon(app, turf, make_turf):
    make_turf(approved=False, name="Unreviewed")
    runner = app.test_cli_runner()

    result = runner.invoke(args=["generate-slots", "--start", "2026-10-26", "--days", "2"])
    assert result.exit_code == 0
    assert "created=32" in result.output
    assert Slot.query.filter_by(turf_id=turf.id, date=datetime(2026, 10, 27).date()).count() == 16

    result = runner.invoke(args=["generate-slots", "--start", "2026-10-26", "--days", "2"])
    assert "created=0" in result.output


def test_generate_slots_rejects_empty_horizon(app, turf):
    result = app.test_cli_runner().invoke(args=["generate-slots", "--days", "0"])
    assert result.exit_code != 0
    assert "horizon must be at least one day" in result.output
