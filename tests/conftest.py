"""Pytest fixtures: file-backed SQLite database, fresh for every test.

A file (rather than :memory:) lets the concurrency tests open independent
sessions from several threads against the same database.
"""
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from boxoffice.database import Base, engine_options, get_db
from boxoffice.main import app
from boxoffice.models.customer import Customer
from boxoffice.models.event import Event, EventCategory, TicketType
from boxoffice.models.reservation import Reservation  # noqa: F401
from boxoffice.services import customer_service, event_service

SQLITE_URL = "sqlite:///./test.db"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, **engine_options(SQLITE_URL))
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _unique_document() -> str:
    return str(10000000 + uuid.uuid4().int % 90000000)


def future(days: int = 7) -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=days)


# ---------------------------------------------------------------------------
# Service-level helpers: build rows directly through the services
# ---------------------------------------------------------------------------
def make_customer(db, first_name: str = "Ana", last_name: str = "Perez", **overrides) -> Customer:
    data = {
        "first_name": first_name,
        "last_name": last_name,
        "email": f"{uuid.uuid4().hex[:10]}@example.com",
        "document_number": _unique_document(),
    }
    data.update(overrides)
    return customer_service.create_customer(db, data)


def make_event(
    db,
    category: EventCategory = EventCategory.stage_show,
    prices: dict = None,
    capacities: dict = None,
    name: str = "Hamlet",
    date_time: datetime = None,
    total_capacity: int = 100,
) -> Event:
    if prices is None:
        prices = {TicketType.general: Decimal("100.00"), TicketType.vip: Decimal("250.00")}
    if capacities is None:
        capacities = {ticket_type: 10 for ticket_type in prices}
    return event_service.create_event(
        db,
        name=name,
        date_time=date_time or future(),
        category=category,
        total_capacity=total_capacity,
        prices=prices,
        capacities=capacities,
    )


def move_to_past(db, event: Event) -> Event:
    """Services refuse past dates, so tests age an event in place."""
    event.date_time_utc = datetime.now(timezone.utc) - timedelta(days=1)
    db.commit()
    db.refresh(event)
    return event


# ---------------------------------------------------------------------------
# API helpers: create rows via the HTTP surface, return the response JSON
# ---------------------------------------------------------------------------
def create_test_customer(client: TestClient, first_name: str = "Ana", last_name: str = "Perez", **overrides) -> dict:
    """POST /api/customers and return the response JSON."""
    payload = {
        "first_name": first_name,
        "last_name": last_name,
        "email": f"{uuid.uuid4().hex[:10]}@example.com",
        "document_number": _unique_document(),
    }
    payload.update(overrides)
    resp = client.post("/api/customers/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_event(
    client: TestClient,
    category: str = "StageShow",
    ticket_types: dict = None,
    name: str = "Hamlet",
    days_ahead: int = 7,
) -> dict:
    """POST /api/events and return the response JSON."""
    if ticket_types is None:
        ticket_types = {
            "General": {"price": "100.00", "capacity": 10},
            "VIP": {"price": "250.00", "capacity": 2},
        }
    resp = client.post("/api/events/", json={
        "name": name,
        "date_time": future(days_ahead).isoformat(),
        "category": category,
        "total_capacity": 100,
        "ticket_types": ticket_types,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
