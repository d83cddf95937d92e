"""Customer API routes."""
import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from boxoffice.database import get_db
from boxoffice.schemas.customer import CustomerCreate, CustomerUpdate, CustomerOut
from boxoffice.services import customer_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerCreate, db: Session = Depends(get_db)):
    """Register a new customer (email and document number must be unique)."""
    return customer_service.create_customer(db, payload.model_dump())


@router.get("/", response_model=list[CustomerOut])
def list_customers(include_inactive: bool = Query(False), db: Session = Depends(get_db)):
    """List customers, active ones only unless asked otherwise."""
    return customer_service.list_customers(db, include_inactive=include_inactive)


@router.get("/by-email/{email}", response_model=CustomerOut)
def get_customer_by_email(email: str, db: Session = Depends(get_db)):
    return customer_service.get_customer_by_email(db, email)


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    """Fetch a single customer by ID."""
    return customer_service.get_customer(db, customer_id)


@router.put("/{customer_id}", response_model=CustomerOut)
def update_customer(customer_id: str, payload: CustomerUpdate, db: Session = Depends(get_db)):
    """Update profile fields (partial update). Loyalty counters are read-only."""
    return customer_service.update_customer(db, customer_id, payload.model_dump(exclude_unset=True))


@router.put("/{customer_id}/activate", response_model=CustomerOut)
def activate_customer(customer_id: str, db: Session = Depends(get_db)):
    """Reverse a soft delete; loyalty counters are kept as they were."""
    return customer_service.activate_customer(db, customer_id)


@router.delete("/{customer_id}", response_model=CustomerOut)
def deactivate_customer(customer_id: str, db: Session = Depends(get_db)):
    """Soft delete: the customer is marked inactive and can no longer book."""
    return customer_service.deactivate_customer(db, customer_id)
