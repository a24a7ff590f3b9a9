from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from flightdesk.schemas.supply import FlightOffer

FamiliarityLevel = Literal["discovery", "learning", "autopilot"]
TimeWindow = Literal["early_morning", "morning", "afternoon", "evening", "late_evening"]


class AirlinePreference(BaseModel):
    code: str
    name: str
    score: float


class LoyaltyAirline(BaseModel):
    """Airline named during onboarding."""

    code: str
    name: str | None = None


class UserPreferences(BaseModel):
    user_id: str
    home_airport: str = "BLR"
    preferred_airlines: list[AirlinePreference] = Field(default_factory=list)
    preferred_departure_windows: dict[str, str] = Field(default_factory=dict)
    seat_preference: str = "aisle"
    cabin_class: str = "economy"
    meal_preference: str | None = None
    bag_preference: str = "cabin_only"
    price_sensitivity: float = 0.5  # 0 = always cheapest, 1 = ignores price
    advance_booking_days_avg: float = 7
    communication_style: str = "balanced"


class RouteFamiliarityData(BaseModel):
    route: str
    times_booked: int = 0
    last_booked_at: str | None = None
    avg_price_paid: float | None = None
    min_price_paid: float | None = None
    max_price_paid: float | None = None
    preferred_airline_code: str | None = None
    preferred_airline_name: str | None = None
    preferred_flight_number: str | None = None
    preferred_departure_window: str | None = None
    avg_days_before_departure: float | None = None
    familiarity_level: FamiliarityLevel = "discovery"


class BookingData(BaseModel):
    """A completed booking, the only write path into the learning engine."""

    route: str  # "BLR-DEL"
    airline_code: str
    airline_name: str
    flight_number: str
    departure_time: str  # ISO
    arrival_time: str
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    price_paid: float
    currency: str
    cabin_class: str
    seat_selected: str | None = None
    seat_type: str | None = None
    bags_added: int = 0
    days_before_departure: int
    booking_source: str = "chat"
    supplier_offer_id: str | None = None
    supplier_order_id: str | None = None


class BookingPatternRecord(BaseModel):
    """Stored form of a booking: times reduced to local ``HH:MM:SS``."""

    route: str
    airline_code: str | None = None
    airline_name: str | None = None
    flight_number: str | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    day_of_week: int | None = None
    price_paid: float
    currency: str
    cabin_class: str | None = None
    seat_selected: str | None = None
    seat_type: str | None = None
    bags_added: int = 0
    days_before_departure: int | None = None
    booking_source: str = "chat"
    supplier_offer_id: str | None = None
    supplier_order_id: str | None = None
    created_at: datetime | None = None


class ScoreBreakdown(BaseModel):
    airline: int
    time: int
    price: int
    flight: int
    seat: int

    @property
    def total(self) -> int:
        return self.airline + self.time + self.price + self.flight + self.seat


class OfferScore(BaseModel):
    score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown


class ScoredOffer(BaseModel):
    offer: FlightOffer
    score: OfferScore
    price_insight: str | None = None


class Recommendation(BaseModel):
    familiarity_level: FamiliarityLevel
    offers: list[ScoredOffer] = Field(default_factory=list)
    commentary: str | None = None


class RouteSummary(BaseModel):
    route: str
    times_booked: int
    familiarity_level: FamiliarityLevel
    avg_price: float | None = None


class AirlineUsage(BaseModel):
    code: str
    name: str
    percentage: int


class TravelDNA(BaseModel):
    total_bookings: int
    routes_learned: int
    preferences: UserPreferences
    top_routes: list[RouteSummary] = Field(default_factory=list)
    airline_usage: list[AirlineUsage] = Field(default_factory=list)
