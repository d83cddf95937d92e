"""Availability checker: remaining capacity per ticket type.

Remaining capacity is derived, never stored: the configured capacity for a
ticket type minus the confirmed reservations of that type. Callers that act
on the answer must do so in the same transaction (see reservation_service).
"""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from boxoffice.models.event import Event, TicketType
from boxoffice.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)


def confirmed_count(db: Session, event: Event, ticket_type: TicketType) -> int:
    """Number of Confirmed reservations for one ticket type of an event."""
    return (
        db.query(func.count(Reservation.reservation_id))
        .filter(
            Reservation.event_id == event.event_id,
            Reservation.ticket_type == TicketType(ticket_type),
            Reservation.status == ReservationStatus.confirmed,
        )
        .scalar()
    ) or 0


def remaining_capacity(db: Session, event: Event, ticket_type: TicketType) -> int:
    """Capacity left for a ticket type; 0 when the type is not configured."""
    capacity = event.capacities.get(TicketType(ticket_type))
    if capacity is None:
        return 0
    return max(capacity - confirmed_count(db, event, ticket_type), 0)


def has_availability(db: Session, event: Event, ticket_type: TicketType) -> bool:
    return remaining_capacity(db, event, ticket_type) > 0


def availability_by_type(db: Session, event: Event) -> dict[TicketType, int]:
    """Remaining capacity for every configured ticket type, in one query."""
    rows = (
        db.query(Reservation.ticket_type, func.count(Reservation.reservation_id))
        .filter(
            Reservation.event_id == event.event_id,
            Reservation.status == ReservationStatus.confirmed,
        )
        .group_by(Reservation.ticket_type)
        .all()
    )
    confirmed = {ticket_type: count for ticket_type, count in rows}
    result = {
        ticket_type: max(capacity - confirmed.get(ticket_type, 0), 0)
        for ticket_type, capacity in event.capacities.items()
    }
    logger.debug("Availability for event %s: %s", event.event_id, result)
    return result


def total_confirmed(db: Session, event: Event) -> int:
    """Confirmed reservations across all ticket types of an event."""
    return (
        db.query(func.count(Reservation.reservation_id))
        .filter(
            Reservation.event_id == event.event_id,
            Reservation.status == ReservationStatus.confirmed,
        )
        .scalar()
    ) or 0
