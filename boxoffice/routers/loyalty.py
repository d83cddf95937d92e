"""Loyalty program API routes."""
import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boxoffice.database import get_db
from boxoffice.schemas.customer import CustomerOut
from boxoffice.schemas.loyalty import (
    IntegrityReportOut, LoyaltyStatisticsOut, LoyaltySummaryOut, ReconcileReportOut,
)
from boxoffice.services import booking_service, customer_service, loyalty_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/customers/{customer_id}", response_model=LoyaltySummaryOut)
def customer_summary(customer_id: str, db: Session = Depends(get_db)):
    customer = customer_service.get_customer(db, customer_id)
    return loyalty_service.customer_loyalty_summary(db, customer)


@router.get("/eligible", response_model=list[CustomerOut])
def customers_owed_passes(db: Session = Depends(get_db)):
    """Customers whose pass balance is below what their attendance earned."""
    return loyalty_service.customers_owed_passes(db)


@router.get("/statistics", response_model=LoyaltyStatisticsOut)
def statistics(db: Session = Depends(get_db)):
    return loyalty_service.loyalty_statistics(db)


@router.get("/ranking", response_model=list[CustomerOut])
def ranking(limit: int = Query(10, ge=1, le=100), db: Session = Depends(get_db)):
    return loyalty_service.top_customers(db, limit=limit)


@router.get("/integrity", response_model=IntegrityReportOut)
def integrity(db: Session = Depends(get_db)):
    """Report loyalty drift without changing anything."""
    return loyalty_service.integrity_report(db)


@router.post("/reconcile", response_model=ReconcileReportOut)
def reconcile(db: Session = Depends(get_db)):
    """Grant any passes customers are owed. Safe to run repeatedly."""
    report = booking_service.reconcile_loyalty(db)
    logger.info("Reconcile requested via API: %d inconsistencies", report["inconsistencies_found"])
    return report
