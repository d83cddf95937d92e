"""Event ORM model and its ticket catalog."""
import uuid
import enum
from sqlalchemy import (
    Column, String, Text, DateTime, Integer, Boolean, Numeric, ForeignKey,
    UniqueConstraint, CheckConstraint, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from boxoffice.database import Base
from boxoffice.timeutils import as_utc, now_utc


class EventCategory(str, enum.Enum):
    stage_show = "StageShow"
    concert = "Concert"
    talk = "Talk"


class TicketType(str, enum.Enum):
    general = "General"
    vip = "VIP"
    field = "Field"
    orchestra = "Orchestra"
    box = "Box"
    with_meet_and_greet = "WithMeetAndGreet"
    without_meet_and_greet = "WithoutMeetAndGreet"


class Event(Base):
    __tablename__ = "events"

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=False, default="")
    date_time_utc = Column(DateTime(timezone=True), nullable=False)
    category = Column(SAEnum(EventCategory), nullable=False)
    total_capacity = Column(Integer, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    ticket_configs = relationship(
        "EventTicketConfig", back_populates="event", cascade="all, delete-orphan", lazy="selectin",
    )
    reservations = relationship("Reservation", back_populates="event")

    __table_args__ = (
        CheckConstraint("total_capacity >= 1", name="ck_events_total_capacity_positive"),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def prices(self) -> dict:
        return {cfg.ticket_type: cfg.price for cfg in self.ticket_configs}

    @property
    def capacities(self) -> dict:
        return {cfg.ticket_type: cfg.capacity for cfg in self.ticket_configs}

    @property
    def is_current(self) -> bool:
        """Active and still scheduled in the future."""
        return bool(self.active) and as_utc(self.date_time_utc) > now_utc()

    def price_for(self, ticket_type: TicketType):
        return self.prices.get(ticket_type)


class EventTicketConfig(Base):
    """One row per (event, ticket type): the price and capacity maps share keys."""

    __tablename__ = "event_ticket_configs"

    config_id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    ticket_type = Column(SAEnum(TicketType), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    capacity = Column(Integer, nullable=False)

    event = relationship("Event", back_populates="ticket_configs")

    __table_args__ = (
        UniqueConstraint("event_id", "ticket_type", name="uq_event_ticket_configs_type"),
        CheckConstraint("price > 0", name="ck_event_ticket_configs_price_positive"),
        CheckConstraint("capacity >= 0", name="ck_event_ticket_configs_capacity_non_negative"),
    )
