"""Reservation state machine.

    Pending ──confirm──▶ Confirmed
       │                    │
       └──────cancel────────┴──▶ Cancelled (terminal)

A free-pass reservation is born Confirmed: the pass is consumed in the same
transaction and there is no separate confirm step, so it never counts as an
attendance. Only ``confirm`` feeds the loyalty ledger.

Every function here works on rows the caller already loaded (and locked)
inside its transaction and never commits. Operations that take a seat
(free-pass creation and confirmation) also bump the Event version so two
transactions that both saw the last free seat cannot both commit.
"""
import logging
import secrets
import string
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.config import settings
from boxoffice.errors import (
    EventNotCurrent,
    InactiveCustomer,
    IncompatibleTicketType,
    InvalidState,
    NoAvailability,
    PriceUnavailable,
    ValidationError,
)
from boxoffice.models.customer import Customer
from boxoffice.models.event import Event, TicketType
from boxoffice.models.reservation import Reservation, ReservationStatus
from boxoffice.services import availability_service, loyalty_service
from boxoffice.services.transactions import RetryableConflict
from boxoffice.timeutils import now_utc

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CANCELABLE_STATES = frozenset({ReservationStatus.pending, ReservationStatus.confirmed})


class ReservationCodeCollision(RetryableConflict):
    """Another transaction inserted the same reservation code first."""


def new_code() -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(settings.RESERVATION_CODE_LENGTH))
    return f"{settings.RESERVATION_CODE_PREFIX}{suffix}"


def generate_unique_code(db: Session) -> str:
    """Draw codes until one is not taken; bounded by MAX_CODE_ATTEMPTS."""
    for _ in range(settings.MAX_CODE_ATTEMPTS):
        code = new_code()
        taken = db.query(Reservation.reservation_id).filter(Reservation.code == code).first()
        if taken is None:
            return code
        logger.warning("Reservation code %s already taken, drawing another", code)
    raise ReservationCodeCollision(f"no free reservation code after {settings.MAX_CODE_ATTEMPTS} draws")


def can_be_cancelled(reservation: Reservation) -> bool:
    return reservation.status in CANCELABLE_STATES


def is_current(reservation: Reservation) -> bool:
    return can_be_cancelled(reservation) and reservation.event.is_current


def summary(reservation: Reservation) -> str:
    return f"{reservation.code} - {reservation.event.name} - {TicketType(reservation.ticket_type).value}"


def _require_current(event: Event) -> None:
    if not event.is_current:
        raise EventNotCurrent(event.event_id)


def _claim_seat(db: Session, event: Event, ticket_type: TicketType) -> None:
    """Check there is a seat left and version-stamp the event row."""
    if not availability_service.has_availability(db, event, ticket_type):
        raise NoAvailability(event.event_id, TicketType(ticket_type).value)
    event.updated_at = now_utc()
    db.add(event)


def _flush_new(db: Session, reservation: Reservation) -> None:
    db.add(reservation)
    try:
        db.flush()
    except IntegrityError as exc:
        message = str(exc.orig).lower()
        if "reservations.code" in message or "reservations_code" in message:
            raise ReservationCodeCollision(reservation.code) from exc
        raise


def create(
    db: Session,
    customer: Customer,
    event: Event,
    ticket_type: TicketType,
    use_free_pass: bool = False,
) -> Reservation:
    """Open a reservation: Pending, or Confirmed at zero price with a free pass."""
    ticket_type = TicketType(ticket_type)
    if not customer.active:
        raise InactiveCustomer(customer.customer_id)
    _require_current(event)
    if ticket_type not in event.prices:
        raise IncompatibleTicketType(
            f"Ticket type {ticket_type.value} is not offered for this event",
            details={"event_id": event.event_id, "ticket_type": ticket_type.value},
        )
    if not availability_service.has_availability(db, event, ticket_type):
        raise NoAvailability(event.event_id, ticket_type.value)

    now = now_utc()
    reservation = Reservation(
        customer_id=customer.customer_id,
        event_id=event.event_id,
        ticket_type=ticket_type,
        code=generate_unique_code(db),
        created_at=now,
    )
    if use_free_pass:
        loyalty_service.consume_free_pass(db, customer)
        _claim_seat(db, event, ticket_type)
        reservation.status = ReservationStatus.confirmed
        reservation.is_free_pass = True
        reservation.price_paid = Decimal("0.00")
        reservation.confirmed_at = now
    else:
        reservation.status = ReservationStatus.pending
        reservation.is_free_pass = False

    _flush_new(db, reservation)
    logger.info(
        "Reservation %s created for customer %s on event %s (%s, %s%s)",
        reservation.code, customer.customer_id, event.event_id, ticket_type.value,
        reservation.status.value, ", free pass" if use_free_pass else "",
    )
    return reservation


def confirm(db: Session, reservation: Reservation) -> Reservation:
    """Pending -> Confirmed, priced from the event catalog, then count the attendance."""
    if reservation.status != ReservationStatus.pending:
        raise InvalidState(
            "Only pending reservations can be confirmed",
            details={"reservation_id": reservation.reservation_id, "status": reservation.status.value},
        )
    event = reservation.event
    _require_current(event)
    price: Optional[Decimal] = event.price_for(TicketType(reservation.ticket_type))
    if price is None:
        raise PriceUnavailable(event.event_id, TicketType(reservation.ticket_type).value)
    _claim_seat(db, event, reservation.ticket_type)

    reservation.status = ReservationStatus.confirmed
    reservation.price_paid = price
    reservation.confirmed_at = now_utc()
    db.add(reservation)
    loyalty_service.process_attendance(db, reservation.customer)
    db.flush()
    logger.info("Reservation %s confirmed at %s", reservation.code, price)
    return reservation


def cancel(db: Session, reservation: Reservation, reason: Optional[str] = None) -> Reservation:
    """Pending/Confirmed -> Cancelled. A free pass goes back to the customer."""
    if not can_be_cancelled(reservation):
        raise InvalidState(
            "Reservation cannot be cancelled in its current state",
            details={"reservation_id": reservation.reservation_id, "status": reservation.status.value},
        )
    limit = settings.CANCEL_REASON_MAX_LENGTH
    if reason is not None and len(reason) > limit:
        raise ValidationError({"reason": f"Cancellation reason cannot exceed {limit} characters"})

    if reservation.is_free_pass:
        loyalty_service.refund_free_pass(db, reservation.customer)
    reservation.status = ReservationStatus.cancelled
    reservation.cancelled_at = now_utc()
    reservation.cancel_reason = reason
    db.add(reservation)
    db.flush()
    logger.info("Reservation %s cancelled (reason: %s)", reservation.code, reason)
    return reservation


def delete(db: Session, reservation: Reservation) -> None:
    """Hard delete while still cancelable.

    Loyalty effects are left untouched: no pass refund, no attendance
    reversal. A deleted free-pass reservation shows up as drift that
    ``loyalty_service.reconcile`` repairs.
    """
    if not can_be_cancelled(reservation):
        raise InvalidState(
            "Reservation cannot be deleted in its current state",
            details={"reservation_id": reservation.reservation_id, "status": reservation.status.value},
        )
    db.delete(reservation)
    db.flush()
    logger.info("Reservation %s deleted", reservation.code)
