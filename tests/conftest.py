"""
Shared test fixtures.

Provides a Flask app wired to:
  • an in-memory SQLite database, created fresh per test
  • a FixedClock (Monday 2026-10-19 09:00) the tests move by hand
  • one approved turf: 06:00-22:00, weekday 1000, weekend 1200,
    peak 18:00-21:00 x1.2
"""
from datetime import date, datetime, time

import pytest

from app import create_app
from config import Config
from models import db
from models.slot import Slot
from models.turf import Turf
from services import api
from services.clock import FixedClock
from utils.roles import ADMIN, PLAYER, SUPER_ADMIN, Actor

MONDAY = date(2026, 10, 19)
WEDNESDAY = date(2026, 10, 21)
SATURDAY = date(2026, 10, 24)


class TestConfig(Config):
    __test__ = False
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SLOT_HORIZON_DAYS = 7
    PLATFORM_FEE = 20
    CANCELLATION_CHARGE_PERCENT = 20
    PENDING_TTL_MINUTES = 15


# ── Helpers ────────────────────────────────────────────────────────────────


def slot_at(turf, day, hour) -> Slot:
    return Slot.query.filter_by(turf_id=turf.id, date=day, start_time=time(hour, 0)).one()


def reserve_ok(turf, slots, user):
    body, status = api.reserve(turf.id, [s.id for s in slots], user.user_id)
    assert status == 201, body
    return body


def confirmed_booking(turf, slot, user):
    body = reserve_ok(turf, [slot], user)
    confirmed, status = api.confirm_payment(body["batch_id"])
    assert status == 200, confirmed
    return confirmed["bookings"][0]


# ── Fixtures ───────────────────────────────────────────────────────────────


@pytest.fixture()
def clock():
    return FixedClock(datetime(2026, 10, 19, 9, 0))


@pytest.fixture()
def app(clock):
    app = create_app(TestConfig)
    app.extensions["booking_clock"] = clock
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def owner():
    return Actor(user_id=100, role=ADMIN)


@pytest.fixture()
def other_admin():
    return Actor(user_id=200, role=ADMIN)


@pytest.fixture()
def super_admin():
    return Actor(user_id=900, role=SUPER_ADMIN)


@pytest.fixture()
def player():
    return Actor(user_id=1, role=PLAYER)


@pytest.fixture()
def other_player():
    return Actor(user_id=2, role=PLAYER)


@pytest.fixture()
def make_turf(app, owner, super_admin):
    def _make(approved=True, actor=None, **overrides):
        fields = dict(
            name="Arena",
            open_hour=6,
            close_hour=22,
            base_price=1000,
            weekday_price=1000,
            weekend_price=1200,
            peak_hour_multiplier="1.2",
            peak_start="18:00",
            peak_end="21:00",
        )
        fields.update(overrides)
        body, status = api.register_turf(actor or owner, **fields)
        assert status == 201, body
        if approved:
            _, status = api.approve_turf(super_admin, body["id"])
            assert status == 200
        return db.session.get(Turf, body["id"])
    return _make


@pytest.fixture()
def turf(make_turf):
    return make_turf()
