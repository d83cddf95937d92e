"""ORM models. Importing the package registers every mapper with Base.metadata."""
from boxoffice.models.customer import Customer
from boxoffice.models.event import Event, EventCategory, EventTicketConfig, TicketType
from boxoffice.models.reservation import Reservation, ReservationStatus

__all__ = [
    "Customer",
    "Event",
    "EventCategory",
    "EventTicketConfig",
    "TicketType",
    "Reservation",
    "ReservationStatus",
]
