"""Tests for derived remaining capacity."""
from decimal import Decimal

import pytest

from boxoffice.errors import NoAvailability
from boxoffice.models.event import EventCategory, TicketType
from boxoffice.services import availability_service, booking_service
from tests.conftest import make_customer, make_event


class TestRemainingCapacity:

    def test_fresh_event_has_full_capacity(self, db):
        event = make_event(db)
        assert availability_service.remaining_capacity(db, event, TicketType.general) == 10
        assert availability_service.availability_by_type(db, event) == {
            TicketType.general: 10, TicketType.vip: 10,
        }

    def test_unconfigured_type_has_zero(self, db):
        event = make_event(db)
        assert availability_service.remaining_capacity(db, event, TicketType.box) == 0
        assert not availability_service.has_availability(db, event, TicketType.box)

    def test_only_confirmed_reservations_count(self, db):
        event = make_event(db)
        customer = make_customer(db)
        booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.general)
        confirmed = booking_service.create_and_confirm_reservation(
            db, customer.customer_id, event.event_id, TicketType.general,
        )
        assert availability_service.remaining_capacity(db, event, TicketType.general) == 9
        assert availability_service.confirmed_count(db, event, TicketType.general) == 1

        booking_service.cancel_reservation(db, confirmed.reservation_id)
        assert availability_service.remaining_capacity(db, event, TicketType.general) == 10

    def test_zero_capacity_type_rejects_creation(self, db):
        event = make_event(
            db,
            prices={TicketType.general: Decimal("10"), TicketType.vip: Decimal("90")},
            capacities={TicketType.general: 5, TicketType.vip: 0},
        )
        customer = make_customer(db)
        with pytest.raises(NoAvailability):
            booking_service.create_reservation(db, customer.customer_id, event.event_id, TicketType.vip)

    def test_sold_out_rejects_every_creation(self, db):
        event = make_event(
            db,
            category=EventCategory.talk,
            prices={TicketType.with_meet_and_greet: Decimal("40")},
            capacities={TicketType.with_meet_and_greet: 1},
        )
        customer = make_customer(db)
        booking_service.create_and_confirm_reservation(
            db, customer.customer_id, event.event_id, TicketType.with_meet_and_greet,
        )
        assert availability_service.remaining_capacity(db, event, TicketType.with_meet_and_greet) == 0
        with pytest.raises(NoAvailability):
            booking_service.create_reservation(
                db, customer.customer_id, event.event_id, TicketType.with_meet_and_greet,
            )
        assert not booking_service.can_create_reservation(
            db, customer.customer_id, event.event_id, TicketType.with_meet_and_greet,
        )

    def test_remaining_never_negative_after_capacity_cut(self, db):
        """Raw capacity below confirmed count still reports zero, not negative."""
        event = make_event(db)
        customer = make_customer(db)
        booking_service.create_and_confirm_reservation(db, customer.customer_id, event.event_id, TicketType.vip)
        for cfg in event.ticket_configs:
            if cfg.ticket_type == TicketType.vip:
                cfg.capacity = 0
        db.commit()
        db.refresh(event)
        assert availability_service.remaining_capacity(db, event, TicketType.vip) == 0
        assert availability_service.availability_by_type(db, event)[TicketType.vip] == 0
