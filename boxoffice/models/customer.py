"""Customer ORM model with loyalty counters."""
import uuid
from sqlalchemy import Column, String, Date, Boolean, DateTime, Integer, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from boxoffice.config import settings
from boxoffice.database import Base


class Customer(Base):
    __tablename__ = "customers"

    customer_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False, unique=True)
    document_number = Column(String(8), nullable=False, unique=True)
    phone = Column(String(20), nullable=True)
    birth_date = Column(Date, nullable=True)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())
    # Loyalty counters: written only by loyalty_service
    attendance_count = Column(Integer, nullable=False, default=0)
    free_passes = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)

    reservations = relationship("Reservation", back_populates="customer")

    __table_args__ = (
        CheckConstraint("attendance_count >= 0", name="ck_customers_attendance_non_negative"),
        CheckConstraint("free_passes >= 0", name="ck_customers_free_passes_non_negative"),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_frequent(self) -> bool:
        return self.attendance_count >= settings.ATTENDANCES_PER_FREE_PASS

    @property
    def has_free_passes(self) -> bool:
        return self.free_passes > 0
