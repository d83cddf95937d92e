"""Event API routes. Delegates to event_service for catalog and date checks."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from boxoffice.database import get_db
from boxoffice.models.event import EventCategory, TicketType
from boxoffice.schemas.event import (
    EventCreate, EventUpdate, EventOut, TicketAvailabilityOut, build_event_out, split_ticket_types,
)
from boxoffice.services import availability_service, booking_service, event_service

logger = logging.getLogger(__name__)
router = APIRouter()


def _event_out(db: Session, event) -> EventOut:
    return build_event_out(event, availability_service.availability_by_type(db, event))


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, db: Session = Depends(get_db)):
    """Create an event with its ticket types, prices and capacities."""
    prices, capacities = split_ticket_types(payload.ticket_types)
    event = event_service.create_event(
        db=db,
        name=payload.name,
        description=payload.description,
        date_time=payload.date_time,
        category=payload.category,
        total_capacity=payload.total_capacity,
        prices=prices,
        capacities=capacities,
    )
    return _event_out(db, event)


@router.get("/", response_model=list[EventOut])
def list_events(
    category: Optional[EventCategory] = Query(None),
    current_only: bool = Query(False),
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    """List events with optional filters."""
    events = event_service.list_events(
        db, category=category, current_only=current_only, include_inactive=include_inactive,
    )
    return [_event_out(db, event) for event in events]


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    """Fetch a single event with its remaining capacity per ticket type."""
    return _event_out(db, event_service.get_event(db, event_id))


@router.put("/{event_id}", response_model=EventOut)
def update_event(event_id: str, payload: EventUpdate, db: Session = Depends(get_db)):
    """Update a future event; the resulting ticket catalog is re-validated."""
    updates = payload.model_dump(exclude_unset=True, exclude={"ticket_types"})
    if payload.ticket_types is not None:
        updates["prices"], updates["capacities"] = split_ticket_types(payload.ticket_types)
    event = event_service.update_event(db, event_id, updates)
    return _event_out(db, event)


@router.delete("/{event_id}", response_model=EventOut)
def delete_event(event_id: str, db: Session = Depends(get_db)):
    """Soft delete; refused while confirmed reservations exist."""
    return _event_out(db, event_service.delete_event(db, event_id))


@router.get("/{event_id}/availability", response_model=dict[str, int])
def get_availability(event_id: str, db: Session = Depends(get_db)):
    event = event_service.get_event(db, event_id)
    return {t.value: n for t, n in availability_service.availability_by_type(db, event).items()}


@router.get("/{event_id}/availability/{ticket_type}", response_model=TicketAvailabilityOut)
def get_ticket_availability(event_id: str, ticket_type: TicketType, db: Session = Depends(get_db)):
    """Remaining capacity for one ticket type (0 when the type is not offered)."""
    return TicketAvailabilityOut(
        event_id=event_id,
        ticket_type=ticket_type,
        remaining_capacity=booking_service.remaining_capacity(db, event_id, ticket_type),
    )
