"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the box office tables: customers, events, event_ticket_configs,
reservations.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum labels are the Python member names, matching SAEnum's defaults on the models.
EVENT_CATEGORY = ("stage_show", "concert", "talk")
TICKET_TYPE = (
    "general", "vip", "field", "orchestra", "box",
    "with_meet_and_greet", "without_meet_and_greet",
)
RESERVATION_STATUS = ("pending", "confirmed", "cancelled")


def _enum(name: str, labels: tuple) -> postgresql.ENUM:
    # Types are created once up front; ticket types are shared by two tables.
    return postgresql.ENUM(*labels, name=name, create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for name, labels in (
        ("eventcategory", EVENT_CATEGORY),
        ("tickettype", TICKET_TYPE),
        ("reservationstatus", RESERVATION_STATUS),
    ):
        sa.Enum(*labels, name=name).create(bind, checkfirst=True)

    # --- customers ---
    op.create_table(
        "customers",
        sa.Column("customer_id", sa.String(36), primary_key=True),
        sa.Column("first_name", sa.String(50), nullable=False),
        sa.Column("last_name", sa.String(50), nullable=False),
        sa.Column("email", sa.String(100), nullable=False, unique=True),
        sa.Column("document_number", sa.String(8), nullable=False, unique=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("birth_date", sa.Date, nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("attendance_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("free_passes", sa.Integer, nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.CheckConstraint("attendance_count >= 0", name="ck_customers_attendance_non_negative"),
        sa.CheckConstraint("free_passes >= 0", name="ck_customers_free_passes_non_negative"),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("date_time_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("category", _enum("eventcategory", EVENT_CATEGORY), nullable=False),
        sa.Column("total_capacity", sa.Integer, nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("total_capacity >= 1", name="ck_events_total_capacity_positive"),
    )

    # --- event_ticket_configs ---
    op.create_table(
        "event_ticket_configs",
        sa.Column("config_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("ticket_type", _enum("tickettype", TICKET_TYPE), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.UniqueConstraint("event_id", "ticket_type", name="uq_event_ticket_configs_type"),
        sa.CheckConstraint("price > 0", name="ck_event_ticket_configs_price_positive"),
        sa.CheckConstraint("capacity >= 0", name="ck_event_ticket_configs_capacity_non_negative"),
    )

    # --- reservations ---
    op.create_table(
        "reservations",
        sa.Column("reservation_id", sa.String(36), primary_key=True),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("customers.customer_id"), nullable=False),
        sa.Column("event_id", sa.String(36), sa.ForeignKey("events.event_id"), nullable=False),
        sa.Column("ticket_type", _enum("tickettype", TICKET_TYPE), nullable=False),
        sa.Column("status", _enum("reservationstatus", RESERVATION_STATUS), nullable=False),
        sa.Column("is_free_pass", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("price_paid", sa.Numeric(10, 2), nullable=True),
        sa.Column("code", sa.String(20), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancel_reason", sa.String(500), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
    )
    op.create_index("ix_reservations_event_type_status", "reservations", ["event_id", "ticket_type", "status"])
    op.create_index("ix_reservations_customer", "reservations", ["customer_id"])


def downgrade() -> None:
    op.drop_index("ix_reservations_customer", table_name="reservations")
    op.drop_index("ix_reservations_event_type_status", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("event_ticket_configs")
    op.drop_table("events")
    op.drop_table("customers")
    bind = op.get_bind()
    for name in ("reservationstatus", "tickettype", "eventcategory"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
