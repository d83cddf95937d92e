"""Ticket catalog rules: which ticket types each event category admits."""
from decimal import Decimal
from typing import Iterable

from boxoffice.errors import IncompatibleTicketType, ValidationError
from boxoffice.models.event import EventCategory, TicketType

ALLOWED_TICKET_TYPES: dict[EventCategory, frozenset[TicketType]] = {
    EventCategory.stage_show: frozenset({TicketType.general, TicketType.vip}),
    EventCategory.concert: frozenset({TicketType.field, TicketType.orchestra, TicketType.box}),
    EventCategory.talk: frozenset({TicketType.with_meet_and_greet, TicketType.without_meet_and_greet}),
}


def allowed_ticket_types(category: EventCategory) -> frozenset[TicketType]:
    return ALLOWED_TICKET_TYPES[EventCategory(category)]


def validate_compatible(category: EventCategory, ticket_types: Iterable[TicketType]) -> None:
    """Raise IncompatibleTicketType if any ticket type is not sold for this category."""
    category = EventCategory(category)
    allowed = allowed_ticket_types(category)
    for ticket_type in ticket_types:
        ticket_type = TicketType(ticket_type)
        if ticket_type not in allowed:
            raise IncompatibleTicketType(
                f"Ticket type {ticket_type.value} is not compatible with {category.value}",
                details={
                    "category": category.value,
                    "ticket_type": ticket_type.value,
                    "allowed": sorted(t.value for t in allowed),
                },
            )


def validate_catalog(
    category: EventCategory,
    prices: dict[TicketType, Decimal],
    capacities: dict[TicketType, int],
) -> None:
    """Check the full price/capacity configuration of an event.

    Compatibility failures raise IncompatibleTicketType; every other problem
    is collected into a single ValidationError.
    """
    errors: dict[str, str] = {}
    if not prices:
        errors["ticket_types"] = "At least one ticket type must be configured"
    if set(prices) != set(capacities):
        errors["ticket_types"] = "Price and capacity must be configured for the same ticket types"
    for ticket_type, price in prices.items():
        if price is None or Decimal(price) <= 0:
            errors[f"prices.{TicketType(ticket_type).value}"] = "Price must be greater than zero"
    for ticket_type, capacity in capacities.items():
        if capacity is None or capacity < 0:
            errors[f"capacities.{TicketType(ticket_type).value}"] = "Capacity cannot be negative"
    if errors:
        raise ValidationError(errors)

    validate_compatible(category, prices.keys())
