"""Reservation ORM model."""
import uuid
import enum
from sqlalchemy import (
    Column, String, DateTime, Boolean, Integer, Numeric, ForeignKey, Index, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from boxoffice.database import Base
from boxoffice.models.event import TicketType


class ReservationStatus(str, enum.Enum):
    pending = "Pending"
    confirmed = "Confirmed"
    cancelled = "Cancelled"


class Reservation(Base):
    __tablename__ = "reservations"

    reservation_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(36), ForeignKey("customers.customer_id"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    ticket_type = Column(SAEnum(TicketType), nullable=False)
    status = Column(SAEnum(ReservationStatus), nullable=False, default=ReservationStatus.pending)
    is_free_pass = Column(Boolean, nullable=False, default=False)
    price_paid = Column(Numeric(10, 2), nullable=True)
    code = Column(String(20), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancel_reason = Column(String(500), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    customer = relationship("Customer", back_populates="reservations")
    event = relationship("Event", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_event_type_status", "event_id", "ticket_type", "status"),
        Index("ix_reservations_customer", "customer_id"),
    )
    __mapper_args__ = {"version_id_col": version}
