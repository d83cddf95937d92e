"""Tests for the reservation lifecycle: Pending -> Confirmed -> Cancelled."""
from decimal import Decimal

import pytest

from boxoffice.errors import (
    EventNotCurrent,
    InactiveCustomer,
    IncompatibleTicketType,
    InvalidState,
    NoFreePassAvailable,
    NotFound,
    PriceUnavailable,
    ValidationError,
)
from boxoffice.models.event import TicketType
from boxoffice.models.reservation import Reservation, ReservationStatus
from boxoffice.services import booking_service, customer_service, event_service, reservation_service
from tests.conftest import make_customer, make_event, move_to_past


class TestCreate:
    """Guards and initial state on creation."""

    def test_pending_reservation(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(
            db, customer.customer_id, event.event_id, TicketType.general,
        )
        assert reservation.status == ReservationStatus.pending
        assert reservation.price_paid is None
        assert reservation.is_free_pass is False
        assert reservation.code.startswith("RES-")
        assert len(reservation.code) == len("RES-") + 8
        assert reservation_service.can_be_cancelled(reservation)
        assert reservation_service.is_current(reservation)
        assert reservation_service.summary(reservation) == f"{reservation.code} - Hamlet - General"

    def test_codes_are_unique(self, db):
        customer = make_customer(db)
        event = make_event(db)
        codes = {
            booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general).code
            for _ in range(5)
        }
        assert len(codes) == 5

    def test_unknown_customer(self, db):
        event = make_event(db)
        with pytest.raises(NotFound):
            booking_service.create_reservation(db, "missing", event.event_id, TicketType.general)

    def test_inactive_customer(self, db):
        customer = make_customer(db)
        event = make_event(db)
        customer_service.deactivate_customer(db, customer.customer_id)
        with pytest.raises(InactiveCustomer):
            booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)

    def test_past_event(self, db):
        customer = make_customer(db)
        event = move_to_past(db, make_event(db))
        with pytest.raises(EventNotCurrent):
            booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)

    def test_ticket_type_not_offered(self, db):
        customer = make_customer(db)
        event = make_event(db)
        with pytest.raises(IncompatibleTicketType):
            booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.box)
        assert db.query(Reservation).count() == 0

    def test_free_pass_without_balance(self, db):
        customer = make_customer(db)
        event = make_event(db)
        with pytest.raises(NoFreePassAvailable):
            booking_service.create_free_pass_reservation(db, customer.customer_id, event.event_id, TicketType.vip)
        assert db.query(Reservation).count() == 0

    def test_free_pass_reservation_is_confirmed_at_zero(self, db):
        customer = make_customer(db)
        customer.free_passes = 1
        db.commit()
        event = make_event(db)
        reservation = booking_service.create_free_pass_reservation(
            db, customer.customer_id, event.event_id, TicketType.vip,
        )
        assert reservation.status == ReservationStatus.confirmed
        assert reservation.is_free_pass is True
        assert reservation.price_paid == Decimal("0")
        assert reservation.confirmed_at is not None


class TestConfirm:

    def test_confirm_prices_from_event(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.vip)
        confirmed = booking_service.confirm_reservation(db, reservation.reservation_id)
        assert confirmed.status == ReservationStatus.confirmed
        assert confirmed.price_paid == Decimal("250.00")
        assert confirmed.confirmed_at is not None
        db.refresh(customer)
        assert customer.attendance_count == 1

    def test_confirm_uses_current_price(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.vip)
        event_service.update_event(db, event.event_id, {
            "prices": {TicketType.general: Decimal("100.00"), TicketType.vip: Decimal("300.00")},
            "capacities": {TicketType.general: 10, TicketType.vip: 10},
        })
        confirmed = booking_service.confirm_reservation(db, reservation.reservation_id)
        assert confirmed.price_paid == Decimal("300.00")

    def test_confirm_after_type_withdrawn(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.vip)
        event_service.update_event(db, event.event_id, {
            "prices": {TicketType.general: Decimal("100.00")},
            "capacities": {TicketType.general: 10},
        })
        with pytest.raises(PriceUnavailable):
            booking_service.confirm_reservation(db, reservation.reservation_id)
        db.refresh(reservation)
        assert reservation.status == ReservationStatus.pending
        assert reservation.price_paid is None
        db.refresh(customer)
        assert customer.attendance_count == 0

    def test_confirm_twice(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_and_confirm_reservation(
            db, customer.customer_id, event.event_id, TicketType.general,
        )
        with pytest.raises(InvalidState):
            booking_service.confirm_reservation(db, reservation.reservation_id)
        db.refresh(customer)
        assert customer.attendance_count == 1

    def test_confirm_after_event_passed(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        move_to_past(db, event)
        with pytest.raises(EventNotCurrent):
            booking_service.confirm_reservation(db, reservation.reservation_id)
        db.refresh(reservation)
        assert reservation.status == ReservationStatus.pending

    def test_create_and_confirm_on_past_event_persists_nothing(self, db):
        customer = make_customer(db)
        event = move_to_past(db, make_event(db))
        with pytest.raises(EventNotCurrent):
            booking_service.create_and_confirm_reservation(
                db, customer.customer_id, event.event_id, TicketType.general,
            )
        assert db.query(Reservation).count() == 0


class TestCancel:

    def test_cancel_pending(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        cancelled = booking_service.cancel_reservation(db, reservation.reservation_id, "change of plans")
        assert cancelled.status == ReservationStatus.cancelled
        assert cancelled.cancel_reason == "change of plans"
        assert cancelled.cancelled_at is not None
        assert not reservation_service.can_be_cancelled(cancelled)
        assert not reservation_service.is_current(cancelled)

    def test_cancel_is_terminal(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        booking_service.cancel_reservation(db, reservation.reservation_id)
        with pytest.raises(InvalidState):
            booking_service.cancel_reservation(db, reservation.reservation_id)
        with pytest.raises(InvalidState):
            booking_service.confirm_reservation(db, reservation.reservation_id)

    def test_reason_too_long(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        with pytest.raises(ValidationError) as exc:
            booking_service.cancel_reservation(db, reservation.reservation_id, "x" * 501)
        assert "reason" in exc.value.errors
        db.refresh(reservation)
        assert reservation.status == ReservationStatus.pending


class TestDelete:

    def test_delete_pending(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        booking_service.delete_reservation(db, reservation.reservation_id)
        with pytest.raises(NotFound):
            booking_service.get_reservation(db, reservation.reservation_id)

    def test_delete_cancelled_is_refused(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        booking_service.cancel_reservation(db, reservation.reservation_id)
        with pytest.raises(InvalidState):
            booking_service.delete_reservation(db, reservation.reservation_id)

    def test_delete_confirmed_keeps_attendance(self, db):
        customer = make_customer(db)
        event = make_event(db)
        reservation = booking_service.create_and_confirm_reservation(
            db, customer.customer_id, event.event_id, TicketType.general,
        )
        booking_service.delete_reservation(db, reservation.reservation_id)
        db.refresh(customer)
        assert customer.attendance_count == 1


class TestScenarioC:
    """Five confirmations, a free-pass booking, then cancelling it."""

    def test_full_loyalty_cycle(self, db):
        customer = make_customer(db)
        event = make_event(db)
        for _ in range(5):
            reservation = booking_service.create_reservation(
                db, customer.customer_id, event.event_id, TicketType.general,
            )
            booking_service.confirm_reservation(db, reservation.reservation_id)
        db.refresh(customer)
        assert customer.attendance_count == 5
        assert customer.free_passes == 1

        free = booking_service.create_free_pass_reservation(db, customer.customer_id, event.event_id, TicketType.vip)
        assert free.status == ReservationStatus.confirmed
        assert free.price_paid == Decimal("0")
        db.refresh(customer)
        assert customer.free_passes == 0

        cancelled = booking_service.cancel_reservation(db, free.reservation_id, "test")
        assert cancelled.status == ReservationStatus.cancelled
        db.refresh(customer)
        assert customer.free_passes == 1
