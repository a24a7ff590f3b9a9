"""Persistence for booking patterns, route familiarity and travel preferences."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from flightdesk.models.preferences import BookingPattern, RouteFamiliarity, UserTravelPreferences
from flightdesk.schemas.preferences import (
    AirlinePreference,
    BookingPatternRecord,
    RouteFamiliarityData,
    UserPreferences,
)


class PreferenceRepository(Protocol):
    async def add_booking_pattern(self, user_id: str, record: BookingPatternRecord) -> None: ...

    async def list_booking_patterns(
        self, user_id: str, route: str | None = None, limit: int | None = None
    ) -> list[BookingPatternRecord]:
        """Newest first."""
        ...

    async def count_booking_patterns(self, user_id: str) -> int: ...

    async def get_route_familiarity(self, user_id: str, route: str) -> RouteFamiliarityData | None: ...

    async def list_route_familiarity(self, user_id: str) -> list[RouteFamiliarityData]:
        """Most booked first."""
        ...

    async def upsert_route_familiarity(self, user_id: str, data: RouteFamiliarityData) -> None: ...

    async def get_preferences(self, user_id: str) -> UserPreferences | None: ...

    async def upsert_preferences(self, preferences: UserPreferences) -> None: ...


def _float(value: Decimal | float | None) -> float | None:
    return float(value) if value is not None else None


def _decimal(value: float | None) -> Decimal | None:
    return Decimal(str(value)) if value is not None else None


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class InMemoryPreferenceRepository:
    """Dict-backed store for tests and single-process use."""

    def __init__(self) -> None:
        self._patterns: dict[str, list[BookingPatternRecord]] = {}
        self._routes: dict[tuple[str, str], RouteFamiliarityData] = {}
        self._preferences: dict[str, UserPreferences] = {}

    async def add_booking_pattern(self, user_id: str, record: BookingPatternRecord) -> None:
        if record.created_at is None:
            record = record.model_copy(update={"created_at": datetime.now(timezone.utc)})
        self._patterns.setdefault(user_id, []).append(record)

    async def list_booking_patterns(
        self, user_id: str, route: str | None = None, limit: int | None = None
    ) -> list[BookingPatternRecord]:
        rows = [p for p in reversed(self._patterns.get(user_id, [])) if route is None or p.route == route]
        return rows[:limit] if limit is not None else rows

    async def count_booking_patterns(self, user_id: str) -> int:
        return len(self._patterns.get(user_id, []))

    async def get_route_familiarity(self, user_id: str, route: str) -> RouteFamiliarityData | None:
        return self._routes.get((user_id, route))

    async def list_route_familiarity(self, user_id: str) -> list[RouteFamiliarityData]:
        rows = [data for (uid, _), data in self._routes.items() if uid == user_id]
        return sorted(rows, key=lambda r: r.times_booked, reverse=True)

    async def upsert_route_familiarity(self, user_id: str, data: RouteFamiliarityData) -> None:
        self._routes[(user_id, data.route)] = data

    async def get_preferences(self, user_id: str) -> UserPreferences | None:
        return self._preferences.get(user_id)

    async def upsert_preferences(self, preferences: UserPreferences) -> None:
        self._preferences[preferences.user_id] = preferences


class SqlPreferenceRepository:
    """SQLAlchemy-backed store. Commits after every write."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Booking patterns ---

    async def add_booking_pattern(self, user_id: str, record: BookingPatternRecord) -> None:
        result = await self.db.execute(
            select(func.coalesce(func.max(BookingPattern.sequence), 0)).where(
                BookingPattern.user_id == user_id
            )
        )
        next_sequence = result.scalar_one() + 1

        fields = record.model_dump(exclude={"created_at", "price_paid"})
        row = BookingPattern(
            user_id=user_id,
            price_paid=_decimal(record.price_paid),
            sequence=next_sequence,
            **fields,
        )
        if record.created_at is not None:
            row.created_at = record.created_at
        self.db.add(row)
        await self.db.commit()

    async def list_booking_patterns(
        self, user_id: str, route: str | None = None, limit: int | None = None
    ) -> list[BookingPatternRecord]:
        query = select(BookingPattern).where(BookingPattern.user_id == user_id)
        if route is not None:
            query = query.where(BookingPattern.route == route)
        query = query.order_by(BookingPattern.sequence.desc())
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return [self._to_record(row) for row in result.scalars().all()]

    async def count_booking_patterns(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(BookingPattern).where(BookingPattern.user_id == user_id)
        )
        return result.scalar_one()

    @staticmethod
    def _to_record(row: BookingPattern) -> BookingPatternRecord:
        return BookingPatternRecord(
            route=row.route,
            airline_code=row.airline_code,
            airline_name=row.airline_name,
            flight_number=row.flight_number,
            departure_time=row.departure_time,
            arrival_time=row.arrival_time,
            day_of_week=row.day_of_week,
            price_paid=float(row.price_paid),
            currency=row.currency,
            cabin_class=row.cabin_class,
            seat_selected=row.seat_selected,
            seat_type=row.seat_type,
            bags_added=row.bags_added or 0,
            days_before_departure=row.days_before_departure,
            booking_source=row.booking_source,
            supplier_offer_id=row.supplier_offer_id,
            supplier_order_id=row.supplier_order_id,
            created_at=row.created_at,
        )

    # --- Route familiarity ---

    async def _route_row(self, user_id: str, route: str) -> RouteFamiliarity | None:
        result = await self.db.execute(
            select(RouteFamiliarity).where(
                RouteFamiliarity.user_id == user_id,
                RouteFamiliarity.route == route,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_route_data(row: RouteFamiliarity) -> RouteFamiliarityData:
        return RouteFamiliarityData(
            route=row.route,
            times_booked=row.times_booked or 0,
            last_booked_at=row.last_booked_at.isoformat() if row.last_booked_at else None,
            avg_price_paid=_float(row.avg_price_paid),
            min_price_paid=_float(row.min_price_paid),
            max_price_paid=_float(row.max_price_paid),
            preferred_airline_code=row.preferred_airline_code,
            preferred_airline_name=row.preferred_airline_name,
            preferred_flight_number=row.preferred_flight_number,
            preferred_departure_window=row.preferred_departure_window,
            avg_days_before_departure=_float(row.avg_days_before_departure),
            familiarity_level=row.familiarity_level or "discovery",
        )

    async def get_route_familiarity(self, user_id: str, route: str) -> RouteFamiliarityData | None:
        row = await self._route_row(user_id, route)
        return self._to_route_data(row) if row else None

    async def list_route_familiarity(self, user_id: str) -> list[RouteFamiliarityData]:
        result = await self.db.execute(
            select(RouteFamiliarity)
            .where(RouteFamiliarity.user_id == user_id)
            .order_by(RouteFamiliarity.times_booked.desc(), RouteFamiliarity.route)
        )
        return [self._to_route_data(row) for row in result.scalars().all()]

    async def upsert_route_familiarity(self, user_id: str, data: RouteFamiliarityData) -> None:
        row = await self._route_row(user_id, data.route)
        if row is None:
            row = RouteFamiliarity(user_id=user_id, route=data.route)
            self.db.add(row)

        row.times_booked = data.times_booked
        row.last_booked_at = _parse_ts(data.last_booked_at)
        row.avg_price_paid = _decimal(data.avg_price_paid)
        row.min_price_paid = _decimal(data.min_price_paid)
        row.max_price_paid = _decimal(data.max_price_paid)
        row.preferred_airline_code = data.preferred_airline_code
        row.preferred_airline_name = data.preferred_airline_name
        row.preferred_flight_number = data.preferred_flight_number
        row.preferred_departure_window = data.preferred_departure_window
        row.avg_days_before_departure = _decimal(data.avg_days_before_departure)
        row.familiarity_level = data.familiarity_level
        await self.db.commit()

    # --- Preferences ---

    async def _preferences_row(self, user_id: str) -> UserTravelPreferences | None:
        result = await self.db.execute(
            select(UserTravelPreferences).where(UserTravelPreferences.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_preferences(self, user_id: str) -> UserPreferences | None:
        row = await self._preferences_row(user_id)
        if row is None:
            return None
        return UserPreferences(
            user_id=row.user_id,
            home_airport=row.home_airport,
            preferred_airlines=[AirlinePreference(**a) for a in row.preferred_airlines or []],
            preferred_departure_windows=dict(row.preferred_departure_windows or {}),
            seat_preference=row.seat_preference,
            cabin_class=row.cabin_class,
            meal_preference=row.meal_preference,
            bag_preference=row.bag_preference,
            price_sensitivity=float(row.price_sensitivity),
            advance_booking_days_avg=float(row.advance_booking_days_avg),
            communication_style=row.communication_style,
        )

    async def upsert_preferences(self, preferences: UserPreferences) -> None:
        row = await self._preferences_row(preferences.user_id)
        if row is None:
            row = UserTravelPreferences(user_id=preferences.user_id)
            self.db.add(row)

        row.home_airport = preferences.home_airport
        row.preferred_airlines = [a.model_dump() for a in preferences.preferred_airlines]
        row.preferred_departure_windows = dict(preferences.preferred_departure_windows)
        row.seat_preference = preferences.seat_preference
        row.cabin_class = preferences.cabin_class
        row.meal_preference = preferences.meal_preference
        row.bag_preference = preferences.bag_preference
        row.price_sensitivity = _decimal(preferences.price_sensitivity)
        row.advance_booking_days_avg = _decimal(preferences.advance_booking_days_avg)
        row.communication_style = preferences.communication_style
        await self.db.commit()
