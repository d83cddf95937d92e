"""Pydantic schemas for the loyalty endpoints."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class LoyaltySummaryOut(BaseModel):
    customer_id: str
    attendance_count: int
    free_passes: int
    is_frequent: bool
    attendances_until_next_pass: int
    attendances_this_year: int
    registered_at: Optional[datetime] = None


class LoyaltyStatisticsOut(BaseModel):
    total_customers: int
    frequent_customers: int
    customers_with_passes: int
    passes_outstanding: int
    passes_used: int
    average_attendance: float
    frequent_percentage: float


class ReconcileReportOut(BaseModel):
    inconsistencies_found: int
    details: list[str]


class IntegrityReportOut(ReconcileReportOut):
    system_consistent: bool
