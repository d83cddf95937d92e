"""Pydantic schemas for Customers."""
from __future__ import annotations
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

NAME_PATTERN = r"^[A-Za-zÁáÉéÍíÓóÚúÑñÜü\s'-]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
DOCUMENT_PATTERN = r"^[0-9]{7,8}$"
PHONE_PATTERN = r"^[+]?[0-9\s\-()]{7,20}$"


def _past_date(value: Optional[date]) -> Optional[date]:
    if value is not None and value >= date.today():
        raise ValueError("Birth date must be in the past")
    return value


class CustomerCreate(BaseModel):
    first_name: str = Field(min_length=2, max_length=50, pattern=NAME_PATTERN)
    last_name: str = Field(min_length=2, max_length=50, pattern=NAME_PATTERN)
    email: str = Field(max_length=100, pattern=EMAIL_PATTERN)
    document_number: str = Field(pattern=DOCUMENT_PATTERN)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    birth_date: Optional[date] = None

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, value: Optional[date]) -> Optional[date]:
        return _past_date(value)


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50, pattern=NAME_PATTERN)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50, pattern=NAME_PATTERN)
    email: Optional[str] = Field(default=None, max_length=100, pattern=EMAIL_PATTERN)
    document_number: Optional[str] = Field(default=None, pattern=DOCUMENT_PATTERN)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    birth_date: Optional[date] = None

    @field_validator("birth_date")
    @classmethod
    def birth_date_in_past(cls, value: Optional[date]) -> Optional[date]:
        return _past_date(value)


class CustomerSummaryOut(BaseModel):
    customer_id: str
    first_name: str
    last_name: str
    email: str
    attendance_count: int
    free_passes: int

    model_config = {"from_attributes": True}


class CustomerOut(BaseModel):
    customer_id: str
    first_name: str
    last_name: str
    email: str
    document_number: str
    phone: Optional[str] = None
    birth_date: Optional[date] = None
    registered_at: Optional[datetime] = None
    attendance_count: int
    free_passes: int
    active: bool
    is_frequent: bool
    version: int

    model_config = {"from_attributes": True}
