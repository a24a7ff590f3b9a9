"""Offline supplier: deterministic generated inventory for dev, demos and tests."""

import hashlib
import logging
import random
import uuid
from collections import OrderedDict
from datetime import date, datetime, timedelta, timezone

from flightdesk.data.airlines import MOCK_AIRLINES
from flightdesk.schemas.supply import (
    BaggageAllowance,
    FareConditions,
    FlightOffer,
    PriceBreakdown,
    SegmentEndpoint,
    SupplyBooking,
    SupplyCancellationResult,
    SupplyFlightSegment,
    SupplyPassenger,
    SupplyPaymentInfo,
    SupplySearchParams,
)
from flightdesk.services.supply.base import FlightSupplier
from flightdesk.services.supply.durations import format_minutes
from flightdesk.services.supply.errors import SupplyError, SupplyErrorCode

logger = logging.getLogger(__name__)

# Offers and bookings kept per instance; the oldest are dropped first
MAX_CACHED_ENTRIES = 500

CONNECTING_HUBS = ("DXB", "DOH", "FRA", "AMS", "IST", "SIN")

# Price bands per cabin (USD)
PRICE_BANDS = {
    "economy": (250, 800),
    "premium_economy": (600, 1400),
    "business": (1500, 4000),
    "first": (3000, 7000),
}


def _seeded_rng(*parts: str) -> random.Random:
    # Deterministic seed so the same request always yields the same inventory
    seed_str = "|".join(parts)
    seed = int(hashlib.md5(seed_str.encode()).hexdigest()[:8], 16)
    return random.Random(seed)


def _split_price(total: float, currency: str) -> PriceBreakdown:
    return PriceBreakdown(
        base_fare=round(total * 0.85, 2),
        taxes_and_fees=round(total * 0.15, 2),
        total=round(total, 2),
        currency=currency,
    )


class MockSupplier(FlightSupplier):
    """Always-available supplier that fabricates plausible offers.

    Offers and bookings produced by this instance are remembered so that
    details, booking and retrieval calls stay consistent with search.
    """

    name = "mock"

    def __init__(self, max_cached: int = MAX_CACHED_ENTRIES) -> None:
        self._max_cached = max_cached
        self._offers: OrderedDict[str, FlightOffer] = OrderedDict()
        self._bookings: OrderedDict[str, SupplyBooking] = OrderedDict()

    def _remember(self, store: OrderedDict, key: str, value) -> None:
        store[key] = value
        store.move_to_end(key)
        while len(store) > self._max_cached:
            store.popitem(last=False)

    def is_available(self) -> bool:
        return True

    async def search_flights(self, params: SupplySearchParams) -> list[FlightOffer]:
        offers = self._generate_offers(
            params.origin.upper(),
            params.destination.upper(),
            params.departure_date,
            params.cabin_class,
            params.currency or "USD",
        )
        if params.max_results:
            offers = offers[: params.max_results]
        for offer in offers:
            self._remember(self._offers, offer.id, offer)
        return offers

    async def get_offer_details(self, offer_id: str) -> FlightOffer:
        cached = self._offers.get(offer_id)
        if cached is not None:
            return cached

        # Unknown id: fabricate a stable offer under the requested id
        template = self._generate_offers(
            "JFK", "LHR", date.today() + timedelta(days=7), None, "USD", seed=offer_id
        )[0]
        offer = template.model_copy(
            update={"id": offer_id, "supplier_id": offer_id.removeprefix("mock-")}
        )
        self._remember(self._offers, offer_id, offer)
        return offer

    async def create_booking(
        self,
        offer_id: str,
        passengers: list[SupplyPassenger],
        payment: SupplyPaymentInfo,
    ) -> SupplyBooking:
        offer = await self.get_offer_details(offer_id)
        if offer.is_expired():
            raise SupplyError(
                "This offer has expired. Please search again.",
                self.name,
                SupplyErrorCode.OFFER_EXPIRED,
                410,
            )

        short = uuid.uuid4().hex[:8]
        booking = SupplyBooking(
            id=f"mock-booking-{short}",
            supplier_name=self.name,
            supplier_booking_id=f"MOCK{short[:6].upper()}",
            confirmation_code=f"MK{uuid.uuid4().hex[:6].upper()}",
            status="confirmed",
            offer=offer,
            passengers=passengers,
            total_price=_split_price(payment.amount, payment.currency),
            booked_at=datetime.now(timezone.utc).isoformat(),
        )
        self._remember(self._bookings, booking.supplier_booking_id, booking)
        logger.info(f"Mock booking {booking.supplier_booking_id} created for {offer_id}")
        return booking

    async def cancel_booking(self, booking_id: str) -> SupplyCancellationResult:
        booking = self._bookings.get(booking_id)
        if booking is not None and booking.status != "cancelled":
            self._bookings[booking_id] = booking.model_copy(update={"status": "cancelled"})
        return SupplyCancellationResult(
            success=True,
            message="Mock booking cancelled successfully",
        )

    async def get_booking(self, booking_id: str) -> SupplyBooking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise SupplyError(
                f"Mock booking {booking_id} not found",
                self.name,
                SupplyErrorCode.BOOKING_RETRIEVAL_FAILED,
                404,
            )
        return booking

    # --- Generation ---

    def _generate_offers(
        self,
        origin: str,
        destination: str,
        departure_date: date,
        cabin_class: str | None,
        currency: str,
        seed: str | None = None,
    ) -> list[FlightOffer]:
        rng = _seeded_rng(seed or origin, destination, departure_date.isoformat(), cabin_class or "")
        count = rng.randint(3, 5)
        offers: list[FlightOffer] = []

        for i in range(count):
            code, name = rng.choice(MOCK_AIRLINES)
            cabin = cabin_class or rng.choice(("economy", "premium_economy"))
            low, high = PRICE_BANDS[cabin]
            price = float(rng.randint(low, high))

            dep_time = datetime(
                departure_date.year, departure_date.month, departure_date.day,
                rng.randint(6, 22), rng.randint(0, 59), tzinfo=timezone.utc,
            )
            flight_minutes = rng.randint(180, 720)
            connecting = rng.random() > 0.6

            if connecting:
                hub = rng.choice([h for h in CONNECTING_HUBS if h not in (origin, destination)])
                first_leg = flight_minutes // 2
                layover = rng.randint(60, 180)
                hub_arrival = dep_time + timedelta(minutes=first_leg)
                hub_departure = hub_arrival + timedelta(minutes=layover)
                final_arrival = hub_departure + timedelta(minutes=flight_minutes - first_leg)
                legs = [
                    (origin, hub, dep_time, hub_arrival),
                    (hub, destination, hub_departure, final_arrival),
                ]
            else:
                final_arrival = dep_time + timedelta(minutes=flight_minutes)
                legs = [(origin, destination, dep_time, final_arrival)]

            flight_no = rng.randint(100, 9999)
            segments = [
                SupplyFlightSegment(
                    id=f"seg-{i}-{n}-{flight_no}",
                    airline=name,
                    airline_code=code,
                    flight_number=f"{code}{flight_no + n}",
                    departure=SegmentEndpoint(
                        airport=f"{seg_from} International",
                        airport_code=seg_from,
                        time=seg_dep.isoformat(),
                    ),
                    arrival=SegmentEndpoint(
                        airport=f"{seg_to} International",
                        airport_code=seg_to,
                        time=seg_arr.isoformat(),
                    ),
                    duration=format_minutes(int((seg_arr - seg_dep).total_seconds() // 60)),
                    cabin=cabin,
                )
                for n, (seg_from, seg_to, seg_dep, seg_arr) in enumerate(legs)
            ]

            offer_key = hashlib.md5(
                f"{seed or ''}{origin}{destination}{departure_date}{i}{flight_no}".encode()
            ).hexdigest()[:10]
            offers.append(
                FlightOffer(
                    id=f"mock-{offer_key}",
                    supplier_name=self.name,
                    supplier_id=offer_key,
                    segments=segments,
                    total_duration=format_minutes(int((final_arrival - dep_time).total_seconds() // 60)),
                    # one slice per mock offer
                    stops=len(segments) - 1,
                    price=_split_price(price, currency),
                    seats_remaining=rng.randint(1, 5) if rng.random() > 0.7 else None,
                    expires_at=(datetime.now(timezone.utc) + timedelta(minutes=30)).isoformat(),
                    conditions=FareConditions(changeable=True, refundable=False, change_penalty=75),
                    baggage_included=BaggageAllowance(carry_on=1, checked=1, checked_weight_kg=23),
                )
            )

        return sorted(offers, key=lambda o: o.price.total)
