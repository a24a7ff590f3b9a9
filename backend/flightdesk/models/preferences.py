import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, DateTime, Integer, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from flightdesk.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class BookingPattern(Base):
    """Append-only record of one completed booking."""

    __tablename__ = "booking_patterns"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    route: Mapped[str] = mapped_column(String(16), nullable=False)
    airline_code: Mapped[str | None] = mapped_column(String(10))
    airline_name: Mapped[str | None] = mapped_column(String(100))
    flight_number: Mapped[str | None] = mapped_column(String(20))
    departure_time: Mapped[str | None] = mapped_column(String(8))  # HH:MM:SS local
    arrival_time: Mapped[str | None] = mapped_column(String(8))
    day_of_week: Mapped[int | None] = mapped_column(Integer)
    price_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="INR")
    cabin_class: Mapped[str | None] = mapped_column(String(20))
    seat_selected: Mapped[str | None] = mapped_column(String(10))
    seat_type: Mapped[str | None] = mapped_column(String(20))
    bags_added: Mapped[int] = mapped_column(Integer, default=0)
    days_before_departure: Mapped[int | None] = mapped_column(Integer)
    booking_source: Mapped[str] = mapped_column(String(20), default="chat")
    supplier_offer_id: Mapped[str | None] = mapped_column(String(100))
    supplier_order_id: Mapped[str | None] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    # Monotonic insertion order; created_at alone can tie within one transaction
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class RouteFamiliarity(Base):
    __tablename__ = "route_familiarity"
    __table_args__ = (UniqueConstraint("user_id", "route", name="uq_route_familiarity_user_route"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    route: Mapped[str] = mapped_column(String(16), nullable=False)
    times_booked: Mapped[int] = mapped_column(Integer, default=0)
    last_booked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    avg_price_paid: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    min_price_paid: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    max_price_paid: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    preferred_airline_code: Mapped[str | None] = mapped_column(String(10))
    preferred_airline_name: Mapped[str | None] = mapped_column(String(100))
    preferred_flight_number: Mapped[str | None] = mapped_column(String(20))
    preferred_departure_window: Mapped[str | None] = mapped_column(String(20))
    avg_days_before_departure: Mapped[float | None] = mapped_column(Numeric(8, 2))
    familiarity_level: Mapped[str] = mapped_column(String(20), default="discovery")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class UserTravelPreferences(Base):
    __tablename__ = "user_travel_preferences"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    home_airport: Mapped[str] = mapped_column(String(10), default="BLR")
    preferred_airlines: Mapped[list] = mapped_column(JSONType, default=list)
    preferred_departure_windows: Mapped[dict] = mapped_column(JSONType, default=dict)
    seat_preference: Mapped[str] = mapped_column(String(20), default="aisle")
    cabin_class: Mapped[str] = mapped_column(String(20), default="economy")
    meal_preference: Mapped[str | None] = mapped_column(String(50))
    bag_preference: Mapped[str] = mapped_column(String(20), default="cabin_only")
    price_sensitivity: Mapped[float] = mapped_column(Numeric(4, 2), default=0.5)
    advance_booking_days_avg: Mapped[float] = mapped_column(Numeric(6, 1), default=7)
    communication_style: Mapped[str] = mapped_column(String(20), default="balanced")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
