"""Tests for booking-history learning and recommendations on the in-memory store."""

import pytest

from flightdesk.schemas.preferences import BookingData, BookingPatternRecord, LoyaltyAirline
from flightdesk.services.preferences import InMemoryPreferenceRepository, PreferenceEngine
from flightdesk.services.preferences.learning import (
    compute_airline_preferences,
    compute_price_sensitivity,
    to_pattern_record,
)

USER = "user-1"


def _booking(**overrides) -> BookingData:
    data = {
        "route": "BLR-DEL",
        "airline_code": "6E",
        "airline_name": "IndiGo",
        "flight_number": "6E123",
        "departure_time": "2026-03-02T07:30:00+05:30",
        "arrival_time": "2026-03-02T10:15:00+05:30",
        "day_of_week": 1,
        "price_paid": 5000.0,
        "currency": "INR",
        "cabin_class": "economy",
        "days_before_departure": 10,
    }
    data.update(overrides)
    return BookingData(**data)


@pytest.fixture
def repository() -> InMemoryPreferenceRepository:
    return InMemoryPreferenceRepository()


@pytest.fixture
def engine(repository: InMemoryPreferenceRepository) -> PreferenceEngine:
    return PreferenceEngine(repository)


async def _learn(engine: PreferenceEngine, times: int, **overrides) -> None:
    for _ in range(times):
        await engine.learn_from_booking(USER, _booking(**overrides))


def test_pattern_record_keeps_local_clock_time() -> None:
    record = to_pattern_record(_booking(departure_time="2026-03-02T23:45:10+05:30"))
    assert record.departure_time == "23:45:00"
    assert record.arrival_time == "10:15:00"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "times,level",
    [(1, "discovery"), (2, "discovery"), (3, "learning"), (5, "learning"), (6, "autopilot")],
)
async def test_familiarity_thresholds(engine: PreferenceEngine, times: int, level: str) -> None:
    await _learn(engine, times)
    route = await engine.get_route_familiarity(USER, "BLR-DEL")
    assert route.times_booked == times
    assert route.familiarity_level == level


@pytest.mark.asyncio
async def test_identical_bookings_keep_modes(engine: PreferenceEngine) -> None:
    await _learn(engine, 1)
    first = await engine.get_route_familiarity(USER, "BLR-DEL")
    await _learn(engine, 1)
    second = await engine.get_route_familiarity(USER, "BLR-DEL")

    assert second.times_booked == 2 * first.times_booked
    assert second.preferred_airline_code == first.preferred_airline_code == "6E"
    assert second.preferred_departure_window == first.preferred_departure_window == "early_morning"
    assert second.preferred_flight_number == "6E123"


@pytest.mark.asyncio
async def test_route_aggregates(engine: PreferenceEngine) -> None:
    await _learn(engine, 1, price_paid=4000.0, days_before_departure=4)
    await _learn(engine, 1, price_paid=6000.0, days_before_departure=10)
    await _learn(engine, 1, price_paid=5000.0, days_before_departure=7)

    route = await engine.get_route_familiarity(USER, "BLR-DEL")
    assert route.avg_price_paid == 5000.0
    assert route.min_price_paid == 4000.0
    assert route.max_price_paid == 6000.0
    assert route.avg_days_before_departure == 7.0
    assert route.last_booked_at is not None


@pytest.mark.asyncio
async def test_global_preferences_learned(engine: PreferenceEngine) -> None:
    await _learn(engine, 1, airline_code="AI", airline_name="Air India", flight_number="AI501")
    await _learn(engine, 2)

    prefs = await engine.get_preferences(USER)
    # newest first: 6E gets 1 + 1/2, AI gets 1/3
    assert [(a.code, a.score) for a in prefs.preferred_airlines] == [("6E", 1.0), ("AI", 0.22)]
    assert prefs.preferred_departure_windows == {"monday": "early_morning"}
    assert prefs.price_sensitivity == 0.3
    assert prefs.advance_booking_days_avg == 10.0


def test_price_sensitivity_heuristic() -> None:
    def rows(*prices: float) -> list[BookingPatternRecord]:
        return [BookingPatternRecord(route="BLR-DEL", price_paid=p, currency="INR") for p in prices]

    assert compute_price_sensitivity(rows(4000, 5000, 6000)) == 0.5
    assert compute_price_sensitivity(rows(1000, 9000)) == 1.0
    assert compute_price_sensitivity(rows(5000, 5000), offset=0.0) == 0.0
    assert compute_price_sensitivity([]) == 0.5


def test_airline_preferences_skip_missing_codes() -> None:
    recent = [
        BookingPatternRecord(route="BLR-DEL", price_paid=1.0, currency="INR"),
        BookingPatternRecord(route="BLR-DEL", airline_code="UK", price_paid=1.0, currency="INR"),
    ]
    assert [(a.code, a.name, a.score) for a in compute_airline_preferences(recent)] == [("UK", "UK", 1.0)]


@pytest.mark.asyncio
async def test_default_preferences_are_created(engine: PreferenceEngine, repository) -> None:
    assert await repository.get_preferences("fresh") is None

    prefs = await engine.get_preferences("fresh")

    assert prefs.home_airport == "BLR"
    assert prefs.price_sensitivity == 0.5
    assert await repository.get_preferences("fresh") == prefs


@pytest.mark.asyncio
async def test_unknown_route_is_discovery(engine: PreferenceEngine) -> None:
    route = await engine.get_route_familiarity(USER, "BOM-GOI")
    assert route.times_booked == 0
    assert route.familiarity_level == "discovery"


def _offers(make_offer):
    return [
        make_offer("mock-ai", airline_code="AI", airline="Air India", departure="2026-03-02T18:00:00+05:30"),
        make_offer("mock-6e", total=4800.0),
        make_offer("mock-sg1", airline_code="SG", airline="SpiceJet", total=4300.0),
        make_offer("mock-sg2", airline_code="SG", airline="SpiceJet", total=4400.0),
        make_offer("mock-uk1", airline_code="UK", airline="Vistara", total=7000.0),
        make_offer("mock-uk2", airline_code="UK", airline="Vistara", total=7100.0),
    ]


@pytest.mark.asyncio
async def test_recommendation_autopilot(engine: PreferenceEngine, make_offer) -> None:
    await _learn(engine, 6)

    rec = await engine.get_recommendation(USER, "BLR-DEL", _offers(make_offer))

    assert rec.familiarity_level == "autopilot"
    assert [s.offer.id for s in rec.offers] == ["mock-6e"]
    assert rec.commentary == "Based on your 6 previous trips, this is your best match."
    assert rec.offers[0].price_insight == "Lowest I've seen for you on BLR-DEL, great deal"


@pytest.mark.asyncio
async def test_recommendation_learning(engine: PreferenceEngine, make_offer) -> None:
    await _learn(engine, 3)

    rec = await engine.get_recommendation(USER, "BLR-DEL", _offers(make_offer))

    assert rec.familiarity_level == "learning"
    assert len(rec.offers) == 3
    assert rec.offers[0].offer.id == "mock-6e"
    scores = [s.score.score for s in rec.offers]
    assert scores == sorted(scores, reverse=True)
    assert rec.commentary == "Based on your last few trips, I'd go with the IndiGo option."


@pytest.mark.asyncio
async def test_recommendation_discovery(engine: PreferenceEngine, make_offer) -> None:
    rec = await engine.get_recommendation(USER, "BLR-DEL", _offers(make_offer))

    assert rec.familiarity_level == "discovery"
    assert len(rec.offers) == 5
    assert rec.commentary is None
    assert all(s.price_insight is None for s in rec.offers)


@pytest.mark.asyncio
async def test_recommendation_with_no_offers(engine: PreferenceEngine) -> None:
    await _learn(engine, 6)
    rec = await engine.get_recommendation(USER, "BLR-DEL", [])
    assert rec.offers == []
    assert rec.commentary is None


@pytest.mark.asyncio
async def test_seed_from_onboarding(engine: PreferenceEngine) -> None:
    seeded = await engine.seed_from_onboarding(
        USER,
        home_airport="DEL",
        loyalty_airlines=[LoyaltyAirline(code="AI", name="Air India"), LoyaltyAirline(code="UK")],
    )

    assert seeded.home_airport == "DEL"
    assert seeded.seat_preference == "aisle"
    assert [(a.code, a.name, a.score) for a in seeded.preferred_airlines] == [
        ("AI", "Air India", 0.3),
        ("UK", "UK", 0.3),
    ]
    assert await engine.get_preferences(USER) == seeded


@pytest.mark.asyncio
async def test_seed_keeps_user_choices_through_learning(engine: PreferenceEngine) -> None:
    await engine.seed_from_onboarding(USER, home_airport="DEL", seat_preference="window")
    await _learn(engine, 1)

    prefs = await engine.get_preferences(USER)
    assert prefs.home_airport == "DEL"
    assert prefs.seat_preference == "window"
    assert prefs.preferred_airlines[0].code == "6E"


@pytest.mark.asyncio
async def test_travel_dna(engine: PreferenceEngine) -> None:
    await _learn(engine, 3)
    await _learn(engine, 1, route="BLR-BOM", airline_code="AI", airline_name="Air India", flight_number="AI501")

    dna = await engine.get_travel_dna(USER)

    assert dna.total_bookings == 4
    assert dna.routes_learned == 1
    assert [(r.route, r.times_booked, r.familiarity_level) for r in dna.top_routes] == [
        ("BLR-DEL", 3, "learning"),
        ("BLR-BOM", 1, "discovery"),
    ]
    assert [(a.code, a.percentage) for a in dna.airline_usage] == [("6E", 75), ("AI", 25)]
    assert dna.preferences.user_id == USER
