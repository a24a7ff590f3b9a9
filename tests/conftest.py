"""Shared pytest fixtures for all test suites."""

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from flightdesk.config import Settings
from flightdesk.database import Base, create_session_factory
from flightdesk.models import BookingPattern, RouteFamiliarity, UserTravelPreferences  # noqa: F401
from flightdesk.schemas.supply import (
    FareConditions,
    FlightOffer,
    PriceBreakdown,
    SegmentEndpoint,
    SupplyFlightSegment,
)


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_session_factory(sqlite_engine)() as session:
        yield session


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every supplier configured and fast retries."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        app_mode="sandbox",
        duffel_api_token="duffel_test_token",
        amadeus_client_id="amadeus-id",
        amadeus_client_secret="amadeus-secret",
        supplier_max_retries=2,
    )


@pytest.fixture
def make_offer() -> Callable[..., FlightOffer]:
    """Factory for single-segment canonical offers."""

    def _make(
        offer_id: str = "mock-abc",
        airline_code: str = "6E",
        airline: str = "IndiGo",
        flight_number: str | None = None,
        departure: str = "2026-03-02T07:30:00+05:30",
        arrival: str = "2026-03-02T10:15:00+05:30",
        total: float = 5000.0,
        currency: str = "INR",
        origin: str = "BLR",
        destination: str = "DEL",
        refundable: bool = False,
        supplier_name: str | None = None,
    ) -> FlightOffer:
        supplier = supplier_name or offer_id.split("-", 1)[0]
        return FlightOffer(
            id=offer_id,
            supplier_name=supplier,
            supplier_id=offer_id.split("-", 1)[-1],
            segments=[
                SupplyFlightSegment(
                    id=f"seg-{offer_id}",
                    airline=airline,
                    airline_code=airline_code,
                    flight_number=flight_number or f"{airline_code}123",
                    departure=SegmentEndpoint(airport=origin, airport_code=origin, time=departure),
                    arrival=SegmentEndpoint(airport=destination, airport_code=destination, time=arrival),
                    duration="2h 45m",
                )
            ],
            total_duration="2h 45m",
            stops=0,
            price=PriceBreakdown(
                base_fare=round(total * 0.85, 2),
                taxes_and_fees=round(total * 0.15, 2),
                total=total,
                currency=currency,
            ),
            conditions=FareConditions(changeable=True, refundable=refundable),
        )

    return _make
