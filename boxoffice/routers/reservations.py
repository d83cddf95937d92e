"""Reservation API routes.

Every write goes through booking_service, which runs the state machine inside a
retried transaction. Routes only translate requests and build responses.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from boxoffice.database import get_db
from boxoffice.models.reservation import ReservationStatus
from boxoffice.schemas.reservation import (
    ReservationCreate, ReservationCancelRequest, ReservationOut, RevenueOut, build_reservation_out,
)
from boxoffice.services import booking_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_reservation(payload: ReservationCreate, db: Session = Depends(get_db)):
    """Create a Pending reservation, or a Confirmed one when paid with a free pass."""
    reservation = booking_service.create_reservation(
        db,
        customer_id=payload.customer_id,
        event_id=payload.event_id,
        ticket_type=payload.ticket_type,
        use_free_pass=payload.use_free_pass,
    )
    return build_reservation_out(reservation)


@router.post("/confirmed", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_confirmed_reservation(payload: ReservationCreate, db: Session = Depends(get_db)):
    """Create and confirm in one transaction; nothing is persisted on failure."""
    reservation = booking_service.create_and_confirm_reservation(
        db,
        customer_id=payload.customer_id,
        event_id=payload.event_id,
        ticket_type=payload.ticket_type,
        use_free_pass=payload.use_free_pass,
    )
    return build_reservation_out(reservation)


@router.get("/", response_model=list[ReservationOut])
def list_reservations(
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return [build_reservation_out(r) for r in booking_service.list_reservations(db, reservation_status)]


@router.get("/stale-pending", response_model=list[ReservationOut])
def list_stale_pending(hours: int = Query(24, ge=1), db: Session = Depends(get_db)):
    """Pending reservations created more than `hours` ago. Read-only."""
    return [build_reservation_out(r) for r in booking_service.stale_pending(db, hours)]


@router.get("/starting-soon", response_model=list[ReservationOut])
def list_starting_soon(hours: int = Query(24, ge=1), db: Session = Depends(get_db)):
    return [build_reservation_out(r) for r in booking_service.starting_soon(db, hours)]


@router.get("/code/{code}", response_model=ReservationOut)
def get_reservation_by_code(code: str, db: Session = Depends(get_db)):
    return build_reservation_out(booking_service.get_reservation_by_code(db, code))


@router.get("/customer/{customer_id}", response_model=list[ReservationOut])
def list_for_customer(
    customer_id: str,
    confirmed_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    """A customer's reservations, newest first."""
    if confirmed_only:
        reservations = booking_service.confirmed_for_customer(db, customer_id)
    else:
        reservations = booking_service.list_for_customer(db, customer_id)
    return [build_reservation_out(r) for r in reservations]


@router.get("/event/{event_id}", response_model=list[ReservationOut])
def list_for_event(event_id: str, db: Session = Depends(get_db)):
    return [build_reservation_out(r) for r in booking_service.list_for_event(db, event_id)]


@router.get("/event/{event_id}/revenue", response_model=RevenueOut)
def event_revenue(event_id: str, db: Session = Depends(get_db)):
    """Sum of prices paid by Confirmed reservations (free passes count as 0)."""
    return RevenueOut(event_id=event_id, revenue=booking_service.revenue_for_event(db, event_id))


@router.get("/{reservation_id}", response_model=ReservationOut)
def get_reservation(reservation_id: str, db: Session = Depends(get_db)):
    return build_reservation_out(booking_service.get_reservation(db, reservation_id))


@router.post("/{reservation_id}/confirm", response_model=ReservationOut)
def confirm_reservation(reservation_id: str, db: Session = Depends(get_db)):
    """Pending -> Confirmed. The price always comes from the event's price map."""
    return build_reservation_out(booking_service.confirm_reservation(db, reservation_id))


@router.post("/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_reservation(
    reservation_id: str,
    payload: Optional[ReservationCancelRequest] = None,
    db: Session = Depends(get_db),
):
    """Cancel a Pending or Confirmed reservation; a used free pass is refunded."""
    reason = payload.reason if payload else None
    return build_reservation_out(booking_service.cancel_reservation(db, reservation_id, reason))


@router.delete("/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reservation(reservation_id: str, db: Session = Depends(get_db)):
    """Hard delete, allowed only while the reservation could still be cancelled."""
    booking_service.delete_reservation(db, reservation_id)
