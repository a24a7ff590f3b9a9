"""Canonical supply model shared by every supplier adapter."""

from datetime import date, datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, model_validator

CabinClass = Literal["economy", "premium_economy", "business", "first"]
BookingStatus = Literal["confirmed", "pending", "cancelled", "failed"]

CABIN_CLASSES: tuple[str, ...] = ("economy", "premium_economy", "business", "first")


class SegmentEndpoint(BaseModel):
    airport: str
    airport_code: str
    time: str  # ISO 8601
    terminal: str | None = None

    model_config = {"frozen": True}


class SupplyFlightSegment(BaseModel):
    id: str
    airline: str
    airline_code: str
    flight_number: str
    departure: SegmentEndpoint
    arrival: SegmentEndpoint
    duration: str  # e.g. "7h 30m"
    cabin: CabinClass = "economy"
    aircraft: str | None = None

    model_config = {"frozen": True}


class PriceBreakdown(BaseModel):
    base_fare: float
    taxes_and_fees: float
    total: float
    currency: str
    markup: float | None = None
    service_fee: float | None = None

    model_config = {"frozen": True}


class FareConditions(BaseModel):
    changeable: bool
    refundable: bool
    change_penalty: float | None = None
    cancel_penalty: float | None = None

    model_config = {"frozen": True}


class BaggageAllowance(BaseModel):
    carry_on: int
    checked: int
    checked_weight_kg: int | None = None

    model_config = {"frozen": True}


class FlightOffer(BaseModel):
    """One bookable itinerary from one supplier.

    ``id`` is always prefixed with the supplier name so identifiers from
    different suppliers never collide.
    """

    id: str
    supplier_name: str
    supplier_id: str
    segments: list[SupplyFlightSegment] = Field(default_factory=list)
    total_duration: str
    stops: int = Field(ge=0)
    price: PriceBreakdown
    seats_remaining: int | None = None
    expires_at: str | None = None
    conditions: FareConditions | None = None
    baggage_included: BaggageAllowance | None = None

    model_config = {"frozen": True}

    @property
    def first_segment(self) -> SupplyFlightSegment | None:
        return self.segments[0] if self.segments else None

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self.expires_at:
            return False
        expires = datetime.fromisoformat(self.expires_at.replace("Z", "+00:00"))
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return (now or datetime.now(timezone.utc)) >= expires


class SupplySearchParams(BaseModel):
    origin: str
    destination: str
    departure_date: date
    return_date: date | None = None
    adults: int = Field(default=1, ge=1)
    cabin_class: CabinClass | None = None
    airline: str | None = None  # IATA code, drives NDC routing
    max_results: int | None = Field(default=None, ge=1)
    currency: str | None = None

    @model_validator(mode="after")
    def _check_dates(self) -> "SupplySearchParams":
        if self.return_date and self.return_date < self.departure_date:
            raise ValueError("return_date must not be before departure_date")
        return self


class SupplyPassenger(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    date_of_birth: str | None = None
    passport_number: str | None = None
    passport_expiry: str | None = None
    nationality: str | None = None
    gender: Literal["male", "female"] | None = None


class SupplyPaymentInfo(BaseModel):
    type: Literal["stripe", "balance", "card"]
    token: str | None = None
    currency: str
    amount: float


class SupplyBooking(BaseModel):
    id: str
    supplier_name: str
    supplier_booking_id: str
    confirmation_code: str
    status: BookingStatus
    offer: FlightOffer
    passengers: list[SupplyPassenger] = Field(default_factory=list)
    total_price: PriceBreakdown
    booked_at: str


class SupplyCancellationResult(BaseModel):
    success: bool
    refund_amount: float | None = None
    refund_currency: str | None = None
    message: str | None = None


class SupplySearchResult(BaseModel):
    offers: list[FlightOffer] = Field(default_factory=list)
    source: str


class PolicyView(BaseModel):
    """Flattened offer view consumed by the travel-policy evaluator."""

    price: float
    cabin: str
    stops: int
    airline_code: str
    departure_time: str
    refundable: bool
    origin: str
    destination: str


class CompatPrice(BaseModel):
    amount: float
    currency: str
    service_fee: float | None = None
    markup: float | None = None


class CompatFlightOption(BaseModel):
    """Legacy flat option shape kept for existing callers."""

    id: str
    segments: list[SupplyFlightSegment]
    total_duration: str
    stops: int
    price: CompatPrice
    seats_remaining: int | None = None
