import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app import create_app
from conftest import MONDAY, SATURDAY, WEDNESDAY, TestConfig, reserve_ok, slot_at
from models import db
from models.audit_log import AuditLog
from models.booking import Booking, BookingStatus
from models.turf import Turf
from services import api, events, reservation
from services.clock import FixedClock
from utils.roles import ADMIN, SUPER_ADMIN, Actor


def test_reserve_batch(turf, player):
    picked = [slot_at(turf, SATURDAY, 10), slot_at(turf, SATURDAY, 19)]
    body = reserve_ok(turf, picked, player)

    assert body["status"] == "PENDING"
    assert len(body["bookings"]) == 2
    assert {b["batch_id"] for b in body["bookings"]} == {body["batch_id"]}
    assert [b["price_paid"] for b in body["bookings"]] == [1200, 1440]
    assert body["amount_due"] == {"subtotal": 2640, "platform_fee": 20, "total": 2660, "currency": "INR"}
    for slot in picked:
        assert slot.is_booked


def test_booking_snapshots_slot_and_price(turf, player):
    slot = slot_at(turf, WEDNESDAY, 18)
    body = reserve_ok(turf, [slot], player)
    row = body["bookings"][0]
    assert row["date"] == "2026-10-21"
    assert (row["start_time"], row["end_time"]) == ("18:00", "19:00")
    assert row["base_price"] == 1000
    assert row["is_peak"] is True
    assert row["price_paid"] == 1200
    assert row["user_id"] == player.user_id


def test_batch_is_all_or_nothing(turf, player, other_player):
    free = slot_at(turf, WEDNESDAY, 10)
    taken = slot_at(turf, WEDNESDAY, 11)
    reserve_ok(turf, [taken], other_player)

    body, status = api.reserve(turf.id, [free.id, taken.id], player.user_id)
    assert status == 409
    assert body["code"] == "SlotUnavailable"
    assert body["slot_ids"] == [taken.id]
    assert not free.is_booked
    assert Booking.query.filter_by(user_id=player.user_id).count() == 0


def test_conflict_names_every_bad_slot(turf, player, other_player):
    a = slot_at(turf, WEDNESDAY, 10)
    b = slot_at(turf, WEDNESDAY, 11)
    c = slot_at(turf, WEDNESDAY, 12)
    reserve_ok(turf, [a, c], other_player)

    body, status = api.reserve(turf.id, [c.id, b.id, a.id, 99999], player.user_id)
    assert status == 409
    assert body["slot_ids"] == sorted([a.id, c.id, 99999])


def test_confirmed_slot_cannot_be_reserved(turf, player, other_player):
    slot = slot_at(turf, WEDNESDAY, 10)
    body = reserve_ok(turf, [slot], other_player)
    api.confirm_payment(body["batch_id"])

    body, status = api.reserve(turf.id, [slot.id], player.user_id)
    assert status == 409


def test_started_or_past_slots_are_refused(turf, player):
    under_way = slot_at(turf, MONDAY, 9)
    gone = slot_at(turf, MONDAY, 6)
    body, status = api.reserve(turf.id, [under_way.id, gone.id], player.user_id)
    assert status == 409
    assert body["slot_ids"] == sorted([under_way.id, gone.id])


def test_slot_from_another_turf_is_refused(make_turf, turf, player):
    other = make_turf(name="Other")
    foreign = slot_at(other, WEDNESDAY, 10)
    body, status = api.reserve(turf.id, [foreign.id], player.user_id)
    assert status == 409
    assert body["slot_ids"] == [foreign.id]


def test_duplicate_ids_collapse(turf, player):
    slot = slot_at(turf, WEDNESDAY, 10)
    body, status = api.reserve(turf.id, [slot.id, slot.id], player.user_id)
    assert status == 201
    assert len(body["bookings"]) == 1


@pytest.mark.parametrize("slot_ids", [[], None, "12", [0], ["x"]])
def test_bad_slot_ids(turf, player, slot_ids):
    body, status = api.reserve(turf.id, slot_ids, player.user_id)
    assert status == 400


def test_unapproved_turf_refuses_bookings(make_turf, player):
    pending_review = make_turf(approved=False)
    slot = slot_at(pending_review, WEDNESDAY, 10)
    body, status = api.reserve(pending_review.id, [slot.id], player.user_id)
    assert status == 409
    assert body["code"] == "TurfUnavailable"


@pytest.mark.parametrize("turf_status", ["MAINTENANCE", "CLOSED"])
def test_inactive_turf_refuses_bookings(turf, owner, player, turf_status):
    api.set_turf_status(owner, turf.id, turf_status)
    slot = slot_at(turf, WEDNESDAY, 10)
    body, status = api.reserve(turf.id, [slot.id], player.user_id)
    assert status == 409
    assert body["code"] == "TurfUnavailable"


def test_own_pending_checkout_is_superseded(turf, player):
    a = slot_at(turf, WEDNESDAY, 10)
    b = slot_at(turf, WEDNESDAY, 11)
    first = reserve_ok(turf, [a], player)

    second = reserve_ok(turf, [a, b], player)
    old = db.session.get(Booking, first["bookings"][0]["id"])
    assert old.status == BookingStatus.FAILED
    assert old.status_reason == reservation.SUPERSEDED
    assert second["batch_id"] != first["batch_id"]
    assert a.active_booking.batch_id == second["batch_id"]
    assert AuditLog.query.filter_by(action="BOOKING_SUPERSEDE").count() == 1


def test_others_pending_checkout_is_a_conflict(turf, player, other_player):
    slot = slot_at(turf, WEDNESDAY, 10)
    reserve_ok(turf, [slot], other_player)
    _, status = api.reserve(turf.id, [slot.id], player.user_id)
    assert status == 409


def test_amount_due_event(app, turf, player):
    seen = []

    def receiver(sender, **payload):
        seen.append(payload)

    with events.amount_due.connected_to(receiver):
        body = reserve_ok(turf, [slot_at(turf, WEDNESDAY, 10)], player)

    assert seen == [{"batch_id": body["batch_id"], "subtotal": 1000, "platform_fee": 20,
                     "total": 1020, "currency": "INR"}]


def test_reserve_is_audited(turf, player, other_player):
    slot = slot_at(turf, WEDNESDAY, 10)
    body = reserve_ok(turf, [slot], player)
    api.reserve(turf.id, [slot.id], other_player.user_id)

    ok = AuditLog.query.filter_by(action="BOOKING_RESERVE").one()
    assert ok.entity_id == body["batch_id"]
    failed = AuditLog.query.filter_by(action="BOOKING_RESERVE_FAIL").one()
    assert failed.user_id == other_player.user_id


def test_unique_index_rejects_double_booking(turf, player, other_player, monkeypatch):
    slot = slot_at(turf, WEDNESDAY, 10)
    reserve_ok(turf, [slot], player)

    # Blind the pre-check so only the index stands in the way.
    monkeypatch.setattr(reservation, "_lock_active_bookings", lambda slot_ids: [])
    body, status = api.reserve(turf.id, [slot.id], other_player.user_id)

    assert status == 409
    assert body["slot_ids"] == [slot.id]
    assert Booking.query.filter_by(slot_id=slot.id).count() == 1


def test_concurrent_reservations_one_winner(tmp_path):
    class RaceConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.db'}"

    app = create_app(RaceConfig)
    app.extensions["booking_clock"] = FixedClock(datetime(2026, 10, 19, 9, 0))
    with app.app_context():
        db.create_all()
        body, _ = api.register_turf(Actor(100, ADMIN), open_hour=6, close_hour=22, base_price=1000)
        api.approve_turf(Actor(900, SUPER_ADMIN), body["id"])
        turf_id = body["id"]
        slot_id = slot_at(db.session.get(Turf, turf_id), WEDNESDAY, 10).id
        db.session.remove()

    barrier = threading.Barrier(2)
    statuses = []

    def attempt(user_id):
        with app.app_context():
            barrier.wait()
            _, status = api.reserve(turf_id, [slot_id], user_id)
            statuses.append(status)
            db.session.remove()

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in (1, 2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(statuses) == [201, 409]
    with app.app_context():
        active = Booking.query.filter(Booking.slot_id == slot_id,
                                      Booking.status.in_(["PENDING", "CONFIRMED"])).count()
        assert active == 1
        db.drop_all()
        db.engine.dispose()


def test_pending_timeout_frees_slot_for_others(turf, clock, player, other_player):
    slot = slot_at(turf, WEDNESDAY, 10)
    first = reserve_ok(turf, [slot], player)

    clock.advance(timedelta(minutes=16))
    body = reserve_ok(turf, [slot], other_player)

    old = db.session.get(Booking, first["bookings"][0]["id"])
    assert old.status == BookingStatus.FAILED
    assert old.status_reason == "PAYMENT_TIMEOUT"
    assert body["bookings"][0]["user_id"] == other_player.user_id


def test_audit_failure_keeps_committed_reservation(turf, player, monkeypatch, caplog):
    def broken_audit(action, **fields):
        raise SQLAlchemyError("audit table locked")

    monkeypatch.setattr(api, "log_event", broken_audit)
    body, status = api.reserve(turf.id, [slot_at(turf, WEDNESDAY, 10).id], player.user_id)

    assert status == 201
    assert Booking.query.filter_by(batch_id=body["batch_id"]).one().status == BookingStatus.PENDING
    assert "Audit write failed for BOOKING_RESERVE" in caplog.text
