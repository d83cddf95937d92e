"""Loyalty ledger: attendance count, free-pass balance and their reconciliation.

Rules:
- Every ATTENDANCES_PER_FREE_PASS-th confirmed attendance grants one free pass.
- A free-pass reservation consumes one pass; cancelling it refunds the pass.
- At rest, ``attendance // N == balance + live free-pass reservations``.
  ``reconcile`` grants whatever a customer is owed when the right side falls short.

Counters are only mutated here, on rows loaded in the caller's transaction.
Customer carries a version column, so a concurrent writer working from a
stale row fails at flush time and the orchestrator retries.
"""
import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from boxoffice.config import settings
from boxoffice.errors import NoFreePassAvailable
from boxoffice.models.customer import Customer
from boxoffice.models.reservation import Reservation, ReservationStatus
from boxoffice.timeutils import start_of_year_utc

logger = logging.getLogger(__name__)


def _per_pass() -> int:
    return settings.ATTENDANCES_PER_FREE_PASS


def process_attendance(db: Session, customer: Customer) -> bool:
    """Record one confirmed attendance. Returns True if a pass was granted."""
    customer.attendance_count += 1
    granted = customer.attendance_count % _per_pass() == 0
    if granted:
        customer.free_passes += 1
        logger.info(
            "Customer %s reached %d attendances: free pass granted (balance %d)",
            customer.customer_id, customer.attendance_count, customer.free_passes,
        )
    db.add(customer)
    return granted


def consume_free_pass(db: Session, customer: Customer) -> None:
    if not customer.has_free_passes:
        raise NoFreePassAvailable(customer.customer_id)
    customer.free_passes -= 1
    db.add(customer)
    logger.info("Customer %s used a free pass (balance %d)", customer.customer_id, customer.free_passes)


def refund_free_pass(db: Session, customer: Customer) -> None:
    customer.free_passes += 1
    db.add(customer)
    logger.info("Customer %s refunded a free pass (balance %d)", customer.customer_id, customer.free_passes)


def eligible_for_pass(customer: Customer) -> bool:
    """True when the attendance count sits exactly on a pass boundary."""
    return customer.attendance_count > 0 and customer.attendance_count % _per_pass() == 0


def expected_passes(customer: Customer) -> int:
    """Passes earned over the customer's lifetime."""
    return customer.attendance_count // _per_pass()


def _consumed_passes_by_customer(db: Session) -> dict[str, int]:
    rows = (
        db.query(Reservation.customer_id, func.count(Reservation.reservation_id))
        .filter(
            Reservation.is_free_pass.is_(True),
            Reservation.status != ReservationStatus.cancelled,
        )
        .group_by(Reservation.customer_id)
        .all()
    )
    return {customer_id: count for customer_id, count in rows}


def _find_drift(db: Session, customers: list[Customer]) -> list[tuple[Customer, int, int]]:
    """Return (customer, consumed, missing) for every customer owed passes."""
    consumed_by_customer = _consumed_passes_by_customer(db)
    drift = []
    for customer in customers:
        consumed = consumed_by_customer.get(customer.customer_id, 0)
        missing = expected_passes(customer) - (customer.free_passes + consumed)
        if missing > 0:
            drift.append((customer, consumed, missing))
    return drift


def _describe(customer: Customer, consumed: int) -> str:
    return (
        f"Customer {customer.full_name} ({customer.customer_id}): should have earned "
        f"{expected_passes(customer)} passes but holds {customer.free_passes} available + {consumed} used"
    )


def integrity_report(db: Session) -> dict[str, Any]:
    """Detect loyalty drift without repairing it."""
    customers = db.query(Customer).order_by(Customer.customer_id).all()
    details = [_describe(customer, consumed) for customer, consumed, _ in _find_drift(db, customers)]
    return {
        "inconsistencies_found": len(details),
        "details": details,
        "system_consistent": not details,
    }


def reconcile(db: Session) -> dict[str, Any]:
    """Grant every pass a customer is owed. Idempotent; does not commit."""
    customers = db.query(Customer).order_by(Customer.customer_id).with_for_update().all()
    details = []
    for customer, consumed, missing in _find_drift(db, customers):
        details.append(_describe(customer, consumed))
        customer.free_passes += missing
        db.add(customer)
        logger.warning("Reconciliation granted %d missing pass(es) to customer %s", missing, customer.customer_id)
    logger.info("Loyalty reconciliation finished: %d inconsistencies", len(details))
    return {"inconsistencies_found": len(details), "details": details}


def customers_owed_passes(db: Session) -> list[Customer]:
    customers = db.query(Customer).filter(Customer.attendance_count >= _per_pass()).all()
    return [customer for customer, _, _ in _find_drift(db, customers)]


def attendances_this_year(db: Session, customer: Customer) -> int:
    """Paid reservations confirmed since January 1st (UTC)."""
    return (
        db.query(func.count(Reservation.reservation_id))
        .filter(
            Reservation.customer_id == customer.customer_id,
            Reservation.status == ReservationStatus.confirmed,
            Reservation.is_free_pass.is_(False),
            Reservation.confirmed_at >= start_of_year_utc(),
        )
        .scalar()
    ) or 0


def customer_loyalty_summary(db: Session, customer: Customer) -> dict[str, Any]:
    remainder = customer.attendance_count % _per_pass()
    return {
        "customer_id": customer.customer_id,
        "attendance_count": customer.attendance_count,
        "free_passes": customer.free_passes,
        "is_frequent": customer.is_frequent,
        "attendances_until_next_pass": _per_pass() - remainder,
        "attendances_this_year": attendances_this_year(db, customer),
        "registered_at": customer.registered_at,
    }


def loyalty_statistics(db: Session) -> dict[str, Any]:
    total_customers = db.query(func.count(Customer.customer_id)).scalar() or 0
    frequent = (
        db.query(func.count(Customer.customer_id))
        .filter(Customer.attendance_count >= _per_pass())
        .scalar()
    ) or 0
    with_passes = (
        db.query(func.count(Customer.customer_id)).filter(Customer.free_passes > 0).scalar()
    ) or 0
    outstanding = db.query(func.coalesce(func.sum(Customer.free_passes), 0)).scalar() or 0
    used = (
        db.query(func.count(Reservation.reservation_id))
        .filter(
            Reservation.is_free_pass.is_(True),
            Reservation.status != ReservationStatus.cancelled,
        )
        .scalar()
    ) or 0
    average = db.query(func.avg(Customer.attendance_count)).scalar()
    return {
        "total_customers": total_customers,
        "frequent_customers": frequent,
        "customers_with_passes": with_passes,
        "passes_outstanding": int(outstanding),
        "passes_used": used,
        "average_attendance": round(float(average or 0), 2),
        "frequent_percentage": round(frequent / total_customers * 100, 2) if total_customers else 0.0,
    }


def top_customers(db: Session, limit: int = 10) -> list[Customer]:
    return (
        db.query(Customer)
        .filter(Customer.active.is_(True))
        .order_by(Customer.attendance_count.desc(), Customer.last_name)
        .limit(limit)
        .all()
    )
