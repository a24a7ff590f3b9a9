"""Preference engine tables: booking patterns, route familiarity, travel preferences

Revision ID: phase_a_001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "phase_a_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- booking_patterns (append-only) ---
    op.create_table(
        "booking_patterns",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("route", sa.String(16), nullable=False),
        sa.Column("airline_code", sa.String(10)),
        sa.Column("airline_name", sa.String(100)),
        sa.Column("flight_number", sa.String(20)),
        sa.Column("departure_time", sa.String(8)),
        sa.Column("arrival_time", sa.String(8)),
        sa.Column("day_of_week", sa.Integer),
        sa.Column("price_paid", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), server_default="INR"),
        sa.Column("cabin_class", sa.String(20)),
        sa.Column("seat_selected", sa.String(10)),
        sa.Column("seat_type", sa.String(20)),
        sa.Column("bags_added", sa.Integer, server_default="0"),
        sa.Column("days_before_departure", sa.Integer),
        sa.Column("booking_source", sa.String(20), server_default="chat"),
        sa.Column("supplier_offer_id", sa.String(100)),
        sa.Column("supplier_order_id", sa.String(100)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("sequence", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_booking_patterns_user_id", "booking_patterns", ["user_id"])
    op.create_index("idx_booking_patterns_user_route", "booking_patterns", ["user_id", "route", "sequence"])

    # --- route_familiarity ---
    op.create_table(
        "route_familiarity",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("route", sa.String(16), nullable=False),
        sa.Column("times_booked", sa.Integer, server_default="0"),
        sa.Column("last_booked_at", sa.DateTime(timezone=True)),
        sa.Column("avg_price_paid", sa.Numeric(12, 2)),
        sa.Column("min_price_paid", sa.Numeric(12, 2)),
        sa.Column("max_price_paid", sa.Numeric(12, 2)),
        sa.Column("preferred_airline_code", sa.String(10)),
        sa.Column("preferred_airline_name", sa.String(100)),
        sa.Column("preferred_flight_number", sa.String(20)),
        sa.Column("preferred_departure_window", sa.String(20)),
        sa.Column("avg_days_before_departure", sa.Numeric(8, 2)),
        sa.Column("familiarity_level", sa.String(20), server_default="discovery"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "route", name="uq_route_familiarity_user_route"),
    )
    op.create_index("ix_route_familiarity_user_id", "route_familiarity", ["user_id"])

    # --- user_travel_preferences ---
    op.create_table(
        "user_travel_preferences",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", sa.String(64), nullable=False, unique=True),
        sa.Column("home_airport", sa.String(10), server_default="BLR"),
        sa.Column("preferred_airlines", JSONB, server_default="[]"),
        sa.Column("preferred_departure_windows", JSONB, server_default="{}"),
        sa.Column("seat_preference", sa.String(20), server_default="aisle"),
        sa.Column("cabin_class", sa.String(20), server_default="economy"),
        sa.Column("meal_preference", sa.String(50)),
        sa.Column("bag_preference", sa.String(20), server_default="cabin_only"),
        sa.Column("price_sensitivity", sa.Numeric(4, 2), server_default="0.5"),
        sa.Column("advance_booking_days_avg", sa.Numeric(6, 1), server_default="7"),
        sa.Column("communication_style", sa.String(20), server_default="balanced"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("user_travel_preferences")
    op.drop_index("ix_route_familiarity_user_id", table_name="route_familiarity")
    op.drop_table("route_familiarity")
    op.drop_index("idx_booking_patterns_user_route", table_name="booking_patterns")
    op.drop_index("ix_booking_patterns_user_id", table_name="booking_patterns")
    op.drop_table("booking_patterns")
