"""Customer registration and profile maintenance.

Loyalty counters are not editable here; see loyalty_service.
"""
import logging
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from boxoffice.errors import DuplicateEmail, NotFound
from boxoffice.models.customer import Customer
from boxoffice.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("first_name", "last_name", "email", "document_number", "phone", "birth_date")


def _check_unique(db: Session, email: Optional[str], document_number: Optional[str],
                  exclude_id: Optional[str] = None) -> None:
    if email is not None:
        query = db.query(Customer.customer_id).filter(Customer.email == email)
        if exclude_id:
            query = query.filter(Customer.customer_id != exclude_id)
        if query.first():
            raise DuplicateEmail("email", email)
    if document_number is not None:
        query = db.query(Customer.customer_id).filter(Customer.document_number == document_number)
        if exclude_id:
            query = query.filter(Customer.customer_id != exclude_id)
        if query.first():
            raise DuplicateEmail("document_number", document_number)


def create_customer(db: Session, data: dict[str, Any]) -> Customer:
    """Register a customer with zeroed loyalty counters."""
    email = data["email"].strip().lower()
    _check_unique(db, email, data.get("document_number"))
    customer = Customer(
        first_name=data["first_name"].strip(),
        last_name=data["last_name"].strip(),
        email=email,
        document_number=data["document_number"],
        phone=data.get("phone"),
        birth_date=data.get("birth_date"),
        attendance_count=0,
        free_passes=0,
        active=True,
    )
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent registration won the unique index after our check
        db.rollback()
        _check_unique(db, email, data["document_number"])
        raise
    db.refresh(customer)
    logger.info("Registered customer %s (%s)", customer.customer_id, customer.email)
    return customer


def get_customer(db: Session, customer_id: str) -> Customer:
    customer = db.query(Customer).filter(Customer.customer_id == customer_id).first()
    if not customer:
        raise NotFound("Customer", "id", customer_id)
    return customer


def get_customer_by_email(db: Session, email: str) -> Customer:
    customer = db.query(Customer).filter(Customer.email == email.strip().lower()).first()
    if not customer:
        raise NotFound("Customer", "email", email)
    return customer


def list_customers(db: Session, include_inactive: bool = False) -> list[Customer]:
    query = db.query(Customer)
    if not include_inactive:
        query = query.filter(Customer.active.is_(True))
    return query.order_by(Customer.last_name, Customer.first_name).all()


def _update(db: Session, customer_id: str, updates: dict[str, Any]) -> Customer:
    customer = get_customer(db, customer_id)
    if updates.get("email") is not None:
        updates["email"] = updates["email"].strip().lower()
    _check_unique(db, updates.get("email"), updates.get("document_number"), exclude_id=customer_id)
    for field in EDITABLE_FIELDS:
        if field in updates and updates[field] is not None:
            setattr(customer, field, updates[field])
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        _check_unique(db, updates.get("email"), updates.get("document_number"), exclude_id=customer_id)
        raise
    return customer


def update_customer(db: Session, customer_id: str, updates: dict[str, Any]) -> Customer:
    customer = run_in_transaction(db, "update_customer", _update, customer_id, dict(updates))
    db.refresh(customer)
    logger.info("Updated customer %s", customer_id)
    return customer


def _deactivate(db: Session, customer_id: str) -> Customer:
    customer = get_customer(db, customer_id)
    customer.active = False
    db.flush()
    return customer


def deactivate_customer(db: Session, customer_id: str) -> Customer:
    """Soft delete; reservations keep pointing at the row."""
    customer = run_in_transaction(db, "deactivate_customer", _deactivate, customer_id)
    logger.info("Deactivated customer %s", customer_id)
    return customer


def _activate(db: Session, customer_id: str) -> Customer:
    customer = get_customer(db, customer_id)
    customer.active = True
    db.flush()
    return customer


def activate_customer(db: Session, customer_id: str) -> Customer:
    """Undo a soft delete so the customer can book again."""
    customer = run_in_transaction(db, "activate_customer", _activate, customer_id)
    logger.info("Reactivated customer %s", customer_id)
    return customer
