"""Pydantic schemas for Reservations."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from boxoffice.config import settings
from boxoffice.models.event import TicketType
from boxoffice.models.reservation import Reservation, ReservationStatus
from boxoffice.schemas.customer import CustomerSummaryOut
from boxoffice.schemas.event import EventSummaryOut
from boxoffice.services import reservation_service


class ReservationCreate(BaseModel):
    customer_id: str
    event_id: str
    ticket_type: TicketType
    use_free_pass: bool = False


class ReservationCancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=settings.CANCEL_REASON_MAX_LENGTH)


class ReservationOut(BaseModel):
    reservation_id: str
    code: str
    customer: CustomerSummaryOut
    event: EventSummaryOut
    ticket_type: TicketType
    status: ReservationStatus
    is_free_pass: bool
    price_paid: Optional[Decimal] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None
    can_be_cancelled: bool
    is_current: bool
    summary: str
    version: int


class ReservationSummaryOut(BaseModel):
    reservation_id: str
    code: str
    event_id: str
    ticket_type: TicketType
    status: ReservationStatus
    is_free_pass: bool
    price_paid: Optional[Decimal] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RevenueOut(BaseModel):
    event_id: str
    revenue: Decimal


def build_reservation_out(reservation: Reservation) -> ReservationOut:
    return ReservationOut(
        reservation_id=reservation.reservation_id,
        code=reservation.code,
        customer=CustomerSummaryOut.model_validate(reservation.customer),
        event=EventSummaryOut.model_validate(reservation.event),
        ticket_type=reservation.ticket_type,
        status=reservation.status,
        is_free_pass=reservation.is_free_pass,
        price_paid=reservation.price_paid,
        created_at=reservation.created_at,
        confirmed_at=reservation.confirmed_at,
        cancelled_at=reservation.cancelled_at,
        cancel_reason=reservation.cancel_reason,
        can_be_cancelled=reservation_service.can_be_cancelled(reservation),
        is_current=reservation_service.is_current(reservation),
        summary=reservation_service.summary(reservation),
        version=reservation.version,
    )
