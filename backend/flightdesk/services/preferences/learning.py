"""Aggregations that turn booking history into route and traveler statistics.

All functions are pure and recompute from the rows they are given; the
engine feeds them the full route history or the recent global window.
"""

from datetime import datetime, timezone

from flightdesk.schemas.preferences import (
    AirlinePreference,
    AirlineUsage,
    BookingData,
    BookingPatternRecord,
    RouteFamiliarityData,
    UserPreferences,
)
from flightdesk.services.preferences.time_windows import (
    DAY_NAMES,
    get_time_window,
    hour_of,
    mode,
    parse_local_datetime,
)

# Global preferences are learned from this many most-recent bookings
RECENT_WINDOW = 20

LEARNING_THRESHOLD = 3
AUTOPILOT_THRESHOLD = 6

SENSITIVITY_OFFSET = 0.3
DEFAULT_SENSITIVITY = 0.5
DEFAULT_ADVANCE_DAYS = 7.0


def _local_time(iso: str) -> str:
    dt = parse_local_datetime(iso)
    return f"{dt.hour:02d}:{dt.minute:02d}:00"


def to_pattern_record(booking: BookingData) -> BookingPatternRecord:
    return BookingPatternRecord(
        route=booking.route,
        airline_code=booking.airline_code,
        airline_name=booking.airline_name,
        flight_number=booking.flight_number,
        departure_time=_local_time(booking.departure_time),
        arrival_time=_local_time(booking.arrival_time),
        day_of_week=booking.day_of_week,
        price_paid=booking.price_paid,
        currency=booking.currency,
        cabin_class=booking.cabin_class,
        seat_selected=booking.seat_selected,
        seat_type=booking.seat_type,
        bags_added=booking.bags_added,
        days_before_departure=booking.days_before_departure,
        booking_source=booking.booking_source,
        supplier_offer_id=booking.supplier_offer_id,
        supplier_order_id=booking.supplier_order_id,
    )


def familiarity_level(times_booked: int) -> str:
    if times_booked >= AUTOPILOT_THRESHOLD:
        return "autopilot"
    if times_booked >= LEARNING_THRESHOLD:
        return "learning"
    return "discovery"


def _mean(values: list[float]) -> float | None:
    return sum(values) / len(values) if values else None


def compute_route_familiarity(
    route: str,
    patterns: list[BookingPatternRecord],
    now: datetime | None = None,
) -> RouteFamiliarityData:
    """Route statistics over every stored booking of the route."""
    prices = [p.price_paid for p in patterns]

    airline_code = mode(p.airline_code for p in patterns if p.airline_code)
    airline_name = next(
        (p.airline_name for p in patterns if p.airline_code == airline_code), None
    ) if airline_code else None

    windows = [get_time_window(hour_of(p.departure_time)) for p in patterns if p.departure_time]
    days = [p.days_before_departure for p in patterns if p.days_before_departure is not None]

    return RouteFamiliarityData(
        route=route,
        times_booked=len(patterns),
        last_booked_at=(now or datetime.now(timezone.utc)).isoformat(),
        avg_price_paid=_mean(prices),
        min_price_paid=min(prices) if prices else None,
        max_price_paid=max(prices) if prices else None,
        preferred_airline_code=airline_code,
        preferred_airline_name=airline_name,
        preferred_flight_number=mode(p.flight_number for p in patterns if p.flight_number),
        preferred_departure_window=mode(windows),
        avg_days_before_departure=_mean(days),
        familiarity_level=familiarity_level(len(patterns)),
    )


def compute_airline_preferences(recent: list[BookingPatternRecord]) -> list[AirlinePreference]:
    """Recency-weighted airline scores, normalised so the top airline is 1.0.

    ``recent`` must be newest first; row i contributes ``1 / (i + 1)``.
    """
    totals: dict[str, float] = {}
    names: dict[str, str] = {}
    for i, p in enumerate(recent):
        if not p.airline_code:
            continue
        totals[p.airline_code] = totals.get(p.airline_code, 0.0) + 1 / (i + 1)
        names.setdefault(p.airline_code, p.airline_name or p.airline_code)

    if not totals:
        return []

    top = max(totals.values())
    ranked = [
        AirlinePreference(code=code, name=names[code], score=round(total / top, 2))
        for code, total in totals.items()
    ]
    # sorted() is stable so ties keep first-seen order
    return sorted(ranked, key=lambda a: a.score, reverse=True)


def compute_departure_windows(recent: list[BookingPatternRecord]) -> dict[str, str]:
    """Mode departure window per weekday name."""
    by_day: dict[str, list[str]] = {}
    for p in recent:
        if not p.departure_time or p.day_of_week is None:
            continue
        by_day.setdefault(DAY_NAMES[p.day_of_week], []).append(get_time_window(hour_of(p.departure_time)))
    return {day: mode(windows) for day, windows in by_day.items()}


def compute_price_sensitivity(
    recent: list[BookingPatternRecord], offset: float = SENSITIVITY_OFFSET
) -> float:
    """0 = always books the cheapest, 1 = ignores price."""
    prices = [p.price_paid for p in recent]
    avg = _mean(prices) or 0
    low = min(prices) if prices else 0
    if avg <= 0 or low <= 0:
        return DEFAULT_SENSITIVITY
    return round(min(1.0, max(0.0, 1 - low / avg + offset)), 2)


def compute_advance_booking_days(recent: list[BookingPatternRecord]) -> float:
    days = [p.days_before_departure for p in recent if p.days_before_departure is not None]
    avg = _mean(days)
    return round(avg, 1) if avg is not None else DEFAULT_ADVANCE_DAYS


def update_preferences(
    current: UserPreferences,
    recent: list[BookingPatternRecord],
    sensitivity_offset: float = SENSITIVITY_OFFSET,
) -> UserPreferences:
    """Refresh the learned fields of ``current``; user-set fields are kept."""
    if not recent:
        return current
    return current.model_copy(
        update={
            "preferred_airlines": compute_airline_preferences(recent),
            "preferred_departure_windows": compute_departure_windows(recent),
            "price_sensitivity": compute_price_sensitivity(recent, sensitivity_offset),
            "advance_booking_days_avg": compute_advance_booking_days(recent),
        }
    )


def compute_airline_usage(patterns: list[BookingPatternRecord]) -> list[AirlineUsage]:
    counts: dict[str, int] = {}
    names: dict[str, str] = {}
    for p in patterns:
        if not p.airline_code:
            continue
        counts[p.airline_code] = counts.get(p.airline_code, 0) + 1
        names.setdefault(p.airline_code, p.airline_name or p.airline_code)

    total = sum(counts.values())
    usage = [
        AirlineUsage(code=code, name=names[code], percentage=round(count / total * 100) if total else 0)
        for code, count in counts.items()
    ]
    return sorted(usage, key=lambda a: a.percentage, reverse=True)
