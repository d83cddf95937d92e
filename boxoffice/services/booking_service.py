"""Reservation orchestrator: the entry point used by the API.

Each write operation is one transaction (see transactions.run_in_transaction):
load the rows by id, lock Event and Customer (SELECT ... FOR UPDATE where the
database supports it), run the state machine, commit. Version columns on
Event and Customer catch whatever the row locks do not, and the whole unit of
work is rerun a bounded number of times.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from boxoffice.errors import NotFound
from boxoffice.models.customer import Customer
from boxoffice.models.event import Event, TicketType
from boxoffice.models.reservation import Reservation, ReservationStatus
from boxoffice.services import availability_service, loyalty_service, reservation_service
from boxoffice.services.transactions import run_in_transaction
from boxoffice.timeutils import now_utc

logger = logging.getLogger(__name__)


# ── Lookups ────────────────────────────────────────────────────────


def load_customer(db: Session, customer_id: str, lock: bool = False) -> Customer:
    query = db.query(Customer).filter(Customer.customer_id == customer_id)
    if lock:
        query = query.with_for_update().populate_existing()
    customer = query.first()
    if not customer:
        raise NotFound("Customer", "id", customer_id)
    return customer


def load_event(db: Session, event_id: str, lock: bool = False) -> Event:
    query = db.query(Event).filter(Event.event_id == event_id)
    if lock:
        query = query.with_for_update().populate_existing()
    event = query.first()
    if not event:
        raise NotFound("Event", "id", event_id)
    return event


def load_reservation(db: Session, reservation_id: str, lock: bool = False) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.reservation_id == reservation_id).first()
    if not reservation:
        raise NotFound("Reservation", "id", reservation_id)
    if lock:
        # Lock order is event, customer, reservation. The reservation is read
        # again under the lock so a state change committed meanwhile is seen.
        load_event(db, reservation.event_id, lock=True)
        load_customer(db, reservation.customer_id, lock=True)
        reservation = (
            db.query(Reservation)
            .filter(Reservation.reservation_id == reservation_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not reservation:
            raise NotFound("Reservation", "id", reservation_id)
    return reservation


# ── Units of work ──────────────────────────────────────────────────


def _create(db: Session, customer_id: str, event_id: str, ticket_type: TicketType,
            use_free_pass: bool, confirm: bool) -> Reservation:
    event = load_event(db, event_id, lock=True)
    customer = load_customer(db, customer_id, lock=True)
    reservation = reservation_service.create(db, customer, event, ticket_type, use_free_pass)
    if confirm and reservation.status == ReservationStatus.pending:
        reservation_service.confirm(db, reservation)
    return reservation


def _confirm(db: Session, reservation_id: str) -> Reservation:
    reservation = load_reservation(db, reservation_id, lock=True)
    return reservation_service.confirm(db, reservation)


def _cancel(db: Session, reservation_id: str, reason: Optional[str]) -> Reservation:
    reservation = load_reservation(db, reservation_id, lock=True)
    return reservation_service.cancel(db, reservation, reason)


def _delete(db: Session, reservation_id: str) -> None:
    reservation = load_reservation(db, reservation_id, lock=True)
    reservation_service.delete(db, reservation)


# ── Public operations ──────────────────────────────────────────────


def create_reservation(
    db: Session,
    customer_id: str,
    event_id: str,
    ticket_type: TicketType,
    use_free_pass: bool = False,
) -> Reservation:
    """Create a Pending reservation, or a Confirmed one paid with a free pass."""
    return run_in_transaction(
        db, "create_reservation", _create, customer_id, event_id, TicketType(ticket_type), use_free_pass, False,
    )


def create_free_pass_reservation(db: Session, customer_id: str, event_id: str, ticket_type: TicketType) -> Reservation:
    return create_reservation(db, customer_id, event_id, ticket_type, use_free_pass=True)


def create_and_confirm_reservation(
    db: Session,
    customer_id: str,
    event_id: str,
    ticket_type: TicketType,
    use_free_pass: bool = False,
) -> Reservation:
    """Create and immediately confirm, atomically.

    A free-pass reservation is already Confirmed, so the confirm step is skipped.
    If confirmation fails nothing is left behind.
    """
    return run_in_transaction(
        db, "create_and_confirm_reservation", _create,
        customer_id, event_id, TicketType(ticket_type), use_free_pass, True,
    )


def confirm_reservation(db: Session, reservation_id: str) -> Reservation:
    return run_in_transaction(db, "confirm_reservation", _confirm, reservation_id)


def cancel_reservation(db: Session, reservation_id: str, reason: Optional[str] = None) -> Reservation:
    return run_in_transaction(db, "cancel_reservation", _cancel, reservation_id, reason)


def delete_reservation(db: Session, reservation_id: str) -> None:
    run_in_transaction(db, "delete_reservation", _delete, reservation_id)


def reconcile_loyalty(db: Session) -> dict:
    """Administrative repair of loyalty drift across all customers."""
    return run_in_transaction(db, "reconcile_loyalty", loyalty_service.reconcile)


def remaining_capacity(db: Session, event_id: str, ticket_type: TicketType) -> int:
    event = load_event(db, event_id)
    return availability_service.remaining_capacity(db, event, TicketType(ticket_type))


def can_create_reservation(db: Session, customer_id: str, event_id: str, ticket_type: TicketType) -> bool:
    """Dry run of the creation guards (no free pass); never raises a domain error."""
    try:
        customer = load_customer(db, customer_id)
        event = load_event(db, event_id)
    except NotFound:
        return False
    ticket_type = TicketType(ticket_type)
    return (
        bool(customer.active)
        and event.is_current
        and ticket_type in event.prices
        and availability_service.has_availability(db, event, ticket_type)
    )


# ── Queries ────────────────────────────────────────────────────────


def get_reservation(db: Session, reservation_id: str) -> Reservation:
    return load_reservation(db, reservation_id)


def get_reservation_by_code(db: Session, code: str) -> Reservation:
    reservation = db.query(Reservation).filter(Reservation.code == code).first()
    if not reservation:
        raise NotFound("Reservation", "code", code)
    return reservation


def list_reservations(db: Session, status: Optional[ReservationStatus] = None) -> list[Reservation]:
    query = db.query(Reservation)
    if status is not None:
        query = query.filter(Reservation.status == ReservationStatus(status))
    return query.order_by(Reservation.created_at.desc()).all()


def list_for_customer(db: Session, customer_id: str) -> list[Reservation]:
    load_customer(db, customer_id)
    return (
        db.query(Reservation)
        .filter(Reservation.customer_id == customer_id)
        .order_by(Reservation.created_at.desc())
        .all()
    )


def list_for_event(db: Session, event_id: str) -> list[Reservation]:
    load_event(db, event_id)
    return (
        db.query(Reservation)
        .filter(Reservation.event_id == event_id)
        .order_by(Reservation.created_at.desc())
        .all()
    )


def confirmed_for_customer(db: Session, customer_id: str) -> list[Reservation]:
    load_customer(db, customer_id)
    return (
        db.query(Reservation)
        .filter(
            Reservation.customer_id == customer_id,
            Reservation.status == ReservationStatus.confirmed,
        )
        .order_by(Reservation.confirmed_at.desc())
        .all()
    )


def stale_pending(db: Session, older_than_hours: int) -> list[Reservation]:
    """Pending reservations created more than N hours ago (read-only sweep input)."""
    limit = now_utc() - timedelta(hours=older_than_hours)
    return (
        db.query(Reservation)
        .filter(
            Reservation.status == ReservationStatus.pending,
            Reservation.created_at < limit,
        )
        .order_by(Reservation.created_at)
        .all()
    )


def starting_soon(db: Session, within_hours: int) -> list[Reservation]:
    """Live reservations whose event starts within the next N hours."""
    now = now_utc()
    return (
        db.query(Reservation)
        .join(Event, Reservation.event_id == Event.event_id)
        .filter(
            Reservation.status.in_(tuple(reservation_service.CANCELABLE_STATES)),
            Event.active.is_(True),
            Event.date_time_utc > now,
            Event.date_time_utc <= now + timedelta(hours=within_hours),
        )
        .order_by(Event.date_time_utc)
        .all()
    )


def revenue_for_event(db: Session, event_id: str) -> Decimal:
    load_event(db, event_id)
    total = (
        db.query(func.coalesce(func.sum(Reservation.price_paid), 0))
        .filter(
            Reservation.event_id == event_id,
            Reservation.status == ReservationStatus.confirmed,
        )
        .scalar()
    )
    return Decimal(total or 0).quantize(Decimal("0.01"))
