"""Pydantic schemas for Events."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from boxoffice.models.event import Event, EventCategory, TicketType


class TicketConfigIn(BaseModel):
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    capacity: int = Field(ge=0, le=999999)


class EventCreate(BaseModel):
    name: str = Field(min_length=2, max_length=150)
    description: str = Field(default="", max_length=2000)
    date_time: datetime  # naive values are read in the venue timezone
    category: EventCategory
    total_capacity: int = Field(ge=1, le=999999)
    ticket_types: dict[TicketType, TicketConfigIn]


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=150)
    description: Optional[str] = Field(default=None, max_length=2000)
    date_time: Optional[datetime] = None
    category: Optional[EventCategory] = None
    total_capacity: Optional[int] = Field(default=None, ge=1, le=999999)
    ticket_types: Optional[dict[TicketType, TicketConfigIn]] = None


class EventSummaryOut(BaseModel):
    event_id: str
    name: str
    date_time_utc: datetime
    category: EventCategory

    model_config = {"from_attributes": True}


class EventOut(BaseModel):
    event_id: str
    name: str
    description: str
    date_time_utc: datetime
    category: EventCategory
    total_capacity: int
    active: bool
    is_current: bool
    prices: dict[str, Decimal]
    capacities: dict[str, int]
    availability: dict[str, int]
    price_from: Optional[Decimal] = None
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TicketAvailabilityOut(BaseModel):
    event_id: str
    ticket_type: TicketType
    remaining_capacity: int


def split_ticket_types(ticket_types: dict[TicketType, TicketConfigIn]) -> tuple[dict, dict]:
    """Turn the request's per-type config into the price and capacity maps."""
    prices = {ticket_type: cfg.price for ticket_type, cfg in ticket_types.items()}
    capacities = {ticket_type: cfg.capacity for ticket_type, cfg in ticket_types.items()}
    return prices, capacities


def build_event_out(event: Event, availability: dict[TicketType, int]) -> EventOut:
    prices = event.prices
    return EventOut(
        event_id=event.event_id,
        name=event.name,
        description=event.description or "",
        date_time_utc=event.date_time_utc,
        category=event.category,
        total_capacity=event.total_capacity,
        active=event.active,
        is_current=event.is_current,
        prices={t.value: p for t, p in prices.items()},
        capacities={t.value: c for t, c in event.capacities.items()},
        availability={t.value: n for t, n in availability.items()},
        price_from=min(prices.values()) if prices else None,
        version=event.version,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )
