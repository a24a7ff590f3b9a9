"""Rates an offer 0-100 against a traveler's learned habits."""

import math
from dataclasses import dataclass

from flightdesk.schemas.preferences import (
    OfferScore,
    RouteFamiliarityData,
    ScoreBreakdown,
    UserPreferences,
)
from flightdesk.schemas.supply import FlightOffer
from flightdesk.services.preferences.learning import SENSITIVITY_OFFSET
from flightdesk.services.preferences.time_windows import (
    DAY_NAMES,
    are_adjacent_windows,
    get_time_window,
    parse_local_datetime,
    sunday_based_weekday,
)


@dataclass(frozen=True)
class ScoringParameters:
    """Component points and thresholds. Maximums sum to 100."""

    # Airline (max 30)
    airline_top: int = 30
    airline_second: int = 20
    airline_other_preferred: int = 10
    airline_baseline: int = 5

    # Departure window (max 25)
    time_exact: int = 25
    time_adjacent: int = 15
    time_neutral: int = 12

    # Price vs route average (max 25), before sensitivity weighting
    price_at_or_below_avg: int = 25
    price_slightly_above: int = 15
    price_well_above: int = 5
    price_baseline: int = 15
    price_ratio_cheap: float = 1.0
    price_ratio_slight: float = 1.2

    # Exact flight (max 10)
    flight_exact: int = 10
    flight_same_airline: int = 5

    # Seat familiarity heuristic (max 10)
    seat_same_airline: int = 7
    seat_other: int = 3

    # Used when learning price sensitivity from history
    sensitivity_offset: float = SENSITIVITY_OFFSET


DEFAULT_PARAMETERS = ScoringParameters()

# Price insight bands, in currency units
INSIGHT_GOOD_DEAL = 50
INSIGHT_HIGH = 200


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def _airline_score(code: str | None, preferences: UserPreferences, p: ScoringParameters) -> int:
    if not code:
        return p.airline_baseline
    for rank, pref in enumerate(preferences.preferred_airlines):
        if pref.code == code:
            if rank == 0:
                return p.airline_top
            if rank == 1:
                return p.airline_second
            return p.airline_other_preferred
    return p.airline_baseline


def _time_score(
    departure: str | None,
    preferences: UserPreferences,
    route_data: RouteFamiliarityData,
    p: ScoringParameters,
) -> int:
    if not departure:
        return 0
    dep = parse_local_datetime(departure)
    offer_window = get_time_window(dep.hour)
    day = DAY_NAMES[sunday_based_weekday(dep)]
    preferred = preferences.preferred_departure_windows.get(day) or route_data.preferred_departure_window

    if not preferred:
        return p.time_neutral
    if offer_window == preferred:
        return p.time_exact
    if are_adjacent_windows(offer_window, preferred):
        return p.time_adjacent
    return 0


def _price_score(
    total: float,
    preferences: UserPreferences,
    route_data: RouteFamiliarityData,
    p: ScoringParameters,
) -> int:
    avg = route_data.avg_price_paid
    if avg is None or avg <= 0:
        return p.price_baseline

    ratio = total / avg
    if ratio <= p.price_ratio_cheap:
        raw = p.price_at_or_below_avg
    elif ratio <= p.price_ratio_slight:
        raw = p.price_slightly_above
    else:
        raw = p.price_well_above

    # Low sensitivity (cheapest-picker) keeps the full swing
    weight = 0.5 + (1 - preferences.price_sensitivity) * 0.5
    return _round_half_up(raw * weight)


def score_offer(
    offer: FlightOffer,
    preferences: UserPreferences,
    route_data: RouteFamiliarityData,
    params: ScoringParameters = DEFAULT_PARAMETERS,
) -> OfferScore:
    first = offer.first_segment
    airline = first.airline_code if first else None
    flight_number = first.flight_number if first else None

    same_airline = bool(airline) and airline == route_data.preferred_airline_code

    if flight_number and route_data.preferred_flight_number and flight_number == route_data.preferred_flight_number:
        flight = params.flight_exact
    elif same_airline:
        flight = params.flight_same_airline
    else:
        flight = 0

    breakdown = ScoreBreakdown(
        airline=_airline_score(airline, preferences, params),
        time=_time_score(first.departure.time if first else None, preferences, route_data, params),
        price=_price_score(offer.price.total, preferences, route_data, params),
        flight=flight,
        seat=params.seat_same_airline if same_airline else params.seat_other,
    )
    return OfferScore(score=min(100, breakdown.total), breakdown=breakdown)


def generate_price_insight(price: float, currency: str, route_data: RouteFamiliarityData) -> str | None:
    """One-line comparison of ``price`` with what the traveler usually pays on the route."""
    if not route_data.avg_price_paid or route_data.times_booked < 2:
        return None

    symbol = "₹" if currency == "INR" else "$"
    diff = price - route_data.avg_price_paid
    amount = f"{symbol}{abs(_round_half_up(diff)):,}"

    if route_data.min_price_paid is not None and price <= route_data.min_price_paid:
        return f"Lowest I've seen for you on {route_data.route}, great deal"
    if diff < -INSIGHT_GOOD_DEAL:
        return f"{amount} less than you usually pay, good deal"
    if abs(diff) <= INSIGHT_GOOD_DEAL:
        return "About what you normally pay for this route"
    if diff > INSIGHT_HIGH:
        return f"{amount} more than usual, prices are high right now"
    return f"{amount} more than your average on this route"
