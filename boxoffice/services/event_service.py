"""Event service: catalog-checked create/update and guarded soft delete.

Responsibilities:
- Ticket catalog compatibility on create and update
- Date/time must be in the future; past events are frozen
- Catalog changes may not drop capacity below what is already confirmed
- Soft delete, blocked while confirmed reservations exist
- Optimistic locking via the version column (bumped on every write)
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session

from boxoffice.errors import EventNotCurrent, InvalidState, NotFound, ValidationError
from boxoffice.models.event import Event, EventCategory, EventTicketConfig, TicketType
from boxoffice.services import availability_service
from boxoffice.services.ticket_catalog import validate_catalog
from boxoffice.services.transactions import run_in_transaction
from boxoffice.timeutils import as_utc, now_utc, to_utc

logger = logging.getLogger(__name__)


def _check_future(date_time_utc: datetime) -> None:
    if date_time_utc <= now_utc():
        raise ValidationError({"date_time": "Event date/time must be in the future"})


def _check_fields(name: str, total_capacity: int) -> None:
    errors = {}
    if not name or not name.strip():
        errors["name"] = "Name is required"
    if total_capacity is None or total_capacity < 1:
        errors["total_capacity"] = "Total capacity must be at least 1"
    if errors:
        raise ValidationError(errors)


def _normalize(prices: dict, capacities: dict) -> tuple[dict[TicketType, Decimal], dict[TicketType, int]]:
    return (
        {TicketType(t): (Decimal(str(p)) if p is not None else None) for t, p in prices.items()},
        {TicketType(t): c for t, c in capacities.items()},
    )


def _ticket_configs(prices: dict[TicketType, Decimal], capacities: dict[TicketType, int]) -> list[EventTicketConfig]:
    return [
        EventTicketConfig(ticket_type=ticket_type, price=prices[ticket_type], capacity=capacities[ticket_type])
        for ticket_type in sorted(prices, key=lambda t: t.value)
    ]


def get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise NotFound("Event", "id", event_id)
    return event


def list_events(
    db: Session,
    category: Optional[EventCategory] = None,
    current_only: bool = False,
    include_inactive: bool = False,
) -> list[Event]:
    query = db.query(Event)
    if category is not None:
        query = query.filter(Event.category == EventCategory(category))
    if not include_inactive:
        query = query.filter(Event.active.is_(True))
    if current_only:
        query = query.filter(Event.active.is_(True), Event.date_time_utc > now_utc())
    return query.order_by(Event.date_time_utc).all()


def create_event(
    db: Session,
    name: str,
    date_time: datetime,
    category: EventCategory,
    total_capacity: int,
    prices: dict,
    capacities: dict,
    description: str = "",
) -> Event:
    """Create an event with its full ticket configuration."""
    category = EventCategory(category)
    _check_fields(name, total_capacity)
    date_time_utc = to_utc(date_time)
    _check_future(date_time_utc)
    prices, capacities = _normalize(prices, capacities)
    validate_catalog(category, prices, capacities)

    event = Event(
        name=name.strip(),
        description=description or "",
        date_time_utc=date_time_utc,
        category=category,
        total_capacity=total_capacity,
        active=True,
        ticket_configs=_ticket_configs(prices, capacities),
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(
        "Created event '%s' (%s) %s on %s with ticket types %s",
        event.name, event.event_id, category.value, date_time_utc.isoformat(),
        sorted(t.value for t in prices),
    )
    return event


def _update(db: Session, event_id: str, updates: dict[str, Any]) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).with_for_update().populate_existing().first()
    if not event:
        raise NotFound("Event", "id", event_id)
    if as_utc(event.date_time_utc) <= now_utc():
        raise EventNotCurrent(event_id, "An event that already took place cannot be updated")

    name = updates.get("name", event.name)
    total_capacity = updates.get("total_capacity", event.total_capacity)
    category = EventCategory(updates.get("category", event.category))
    _check_fields(name, total_capacity)

    date_time_utc = as_utc(event.date_time_utc)
    if updates.get("date_time") is not None:
        date_time_utc = to_utc(updates["date_time"])
        _check_future(date_time_utc)

    if "prices" in updates or "capacities" in updates:
        prices, capacities = _normalize(
            updates.get("prices", event.prices), updates.get("capacities", event.capacities),
        )
    else:
        prices, capacities = event.prices, event.capacities
    validate_catalog(category, prices, capacities)

    shortfalls = {}
    for ticket_type in event.capacities:
        taken = availability_service.confirmed_count(db, event, ticket_type)
        if taken and capacities.get(ticket_type, 0) < taken:
            shortfalls[f"capacities.{ticket_type.value}"] = (
                f"{taken} reservations are already confirmed for this ticket type"
            )
    if shortfalls:
        raise ValidationError(shortfalls)

    event.name = name.strip()
    event.description = updates.get("description", event.description) or ""
    event.date_time_utc = date_time_utc
    event.category = category
    event.total_capacity = total_capacity

    existing = {cfg.ticket_type: cfg for cfg in event.ticket_configs}
    for ticket_type, cfg in existing.items():
        if ticket_type not in prices:
            event.ticket_configs.remove(cfg)
    for ticket_type in prices:
        cfg = existing.get(ticket_type)
        if cfg is None:
            event.ticket_configs.append(
                EventTicketConfig(ticket_type=ticket_type, price=prices[ticket_type], capacity=capacities[ticket_type])
            )
        else:
            cfg.price = prices[ticket_type]
            cfg.capacity = capacities[ticket_type]
    event.updated_at = now_utc()
    db.flush()
    return event


def update_event(db: Session, event_id: str, updates: dict[str, Any]) -> Event:
    """Partial update; the resulting catalog is re-validated as a whole."""
    event = run_in_transaction(db, "update_event", _update, event_id, updates)
    db.refresh(event)
    logger.info("Updated event %s to version %d", event_id, event.version)
    return event


def _deactivate(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).with_for_update().populate_existing().first()
    if not event:
        raise NotFound("Event", "id", event_id)
    if availability_service.total_confirmed(db, event) > 0:
        raise InvalidState(
            "An event with confirmed reservations cannot be deleted",
            details={"event_id": event_id},
        )
    event.active = False
    event.updated_at = now_utc()
    db.flush()
    return event


def delete_event(db: Session, event_id: str) -> Event:
    """Soft delete: the event stays readable but stops taking reservations."""
    event = run_in_transaction(db, "delete_event", _deactivate, event_id)
    logger.info("Deactivated event %s", event_id)
    return event
