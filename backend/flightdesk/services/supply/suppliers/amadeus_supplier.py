"""Amadeus adapter: GDS flat-segment search, no booking in the self-service tier."""

import logging

from flightdesk.config import Settings, settings as default_settings
from flightdesk.data.airlines import airline_name
from flightdesk.schemas.supply import (
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
from flightdesk.services.supply.durations import format_iso_duration
from flightdesk.services.supply.errors import SupplyError, SupplyErrorCode
from flightdesk.services.supply.suppliers.amadeus_client import AmadeusApiError, AmadeusClient

logger = logging.getLogger(__name__)

CABIN_MAP = {
    "FIRST": "first",
    "BUSINESS": "business",
    "PREMIUM_ECONOMY": "premium_economy",
    "ECONOMY": "economy",
}


def _parse_offer(
    offer: dict,
    carriers: dict[str, str] | None = None,
    aircraft: dict[str, str] | None = None,
) -> FlightOffer:
    """Map one Amadeus flight-offer (outbound itinerary only) to the canonical offer."""
    itinerary = offer["itineraries"][0]

    cabin_by_segment: dict[str, str] = {}
    traveler_pricings = offer.get("travelerPricings") or []
    if traveler_pricings:
        for fd in traveler_pricings[0].get("fareDetailsBySegment", []):
            cabin_by_segment[fd.get("segmentId")] = fd.get("cabin", "ECONOMY")

    segments = []
    for seg in itinerary.get("segments", []):
        code = seg["carrierCode"]
        aircraft_code = (seg.get("aircraft") or {}).get("code")
        cabin = CABIN_MAP.get(str(cabin_by_segment.get(seg.get("id"), "ECONOMY")).upper(), "economy")
        segments.append(
            SupplyFlightSegment(
                id=f"seg-{offer['id']}-{seg.get('id')}",
                airline=airline_name(code, carriers),
                airline_code=code,
                flight_number=f"{code}{seg.get('number', '')}",
                departure=SegmentEndpoint(
                    airport=seg["departure"]["iataCode"],
                    airport_code=seg["departure"]["iataCode"],
                    time=seg["departure"]["at"],
                    terminal=seg["departure"].get("terminal"),
                ),
                arrival=SegmentEndpoint(
                    airport=seg["arrival"]["iataCode"],
                    airport_code=seg["arrival"]["iataCode"],
                    time=seg["arrival"]["at"],
                    terminal=seg["arrival"].get("terminal"),
                ),
                duration=format_iso_duration(seg.get("duration")) or "0m",
                cabin=cabin,
                aircraft=(aircraft or {}).get(aircraft_code, aircraft_code) if aircraft_code else None,
            )
        )

    price = offer.get("price", {})
    total = float(price.get("grandTotal") or price.get("total") or 0)
    base = float(price.get("base") or total)

    return FlightOffer(
        id=f"amadeus-{offer['id']}",
        supplier_name="amadeus",
        supplier_id=str(offer["id"]),
        segments=segments,
        total_duration=format_iso_duration(itinerary.get("duration")) or "0m",
        stops=max(0, len(segments) - 1),
        price=PriceBreakdown(
            base_fare=base,
            taxes_and_fees=round(total - base, 2),
            total=total,
            currency=price.get("currency", "USD"),
        ),
        seats_remaining=offer.get("numberOfBookableSeats"),
    )


class AmadeusSupplier(FlightSupplier):
    name = "amadeus"

    def __init__(self, settings: Settings | None = None, client: AmadeusClient | None = None):
        self._settings = settings or default_settings
        self._client = client or AmadeusClient(self._settings)

    def is_available(self) -> bool:
        return bool(self._settings.amadeus_client_id and self._settings.amadeus_client_secret)

    def _not_supported(self, what: str) -> SupplyError:
        return SupplyError(
            f"Amadeus {what} not supported in the self-service environment",
            self.name,
            SupplyErrorCode.NOT_SUPPORTED,
            501,
        )

    def _convert(self, exc: Exception) -> SupplyError:
        if isinstance(exc, AmadeusApiError):
            message = f"{exc.message} (Amadeus {exc.code})" if exc.code else exc.message
            return SupplyError(message, self.name, SupplyErrorCode.SEARCH_FAILED, exc.status)
        return SupplyError(str(exc) or "Amadeus request failed", self.name, SupplyErrorCode.UNKNOWN, 500)

    async def search_flights(self, params: SupplySearchParams) -> list[FlightOffer]:
        query = {
            "originLocationCode": params.origin.upper(),
            "destinationLocationCode": params.destination.upper(),
            "departureDate": params.departure_date.isoformat(),
            "adults": str(params.adults),
            "max": str(params.max_results or 10),
            "currencyCode": params.currency or self._settings.default_currency,
        }
        if params.cabin_class:
            query["travelClass"] = params.cabin_class.upper()

        try:
            data = await self._client.get("/v2/shopping/flight-offers", params=query)
            dictionaries = data.get("dictionaries") or {}
            carriers = dictionaries.get("carriers")
            aircraft = dictionaries.get("aircraft")
            return [_parse_offer(o, carriers, aircraft) for o in data.get("data") or []]
        except SupplyError:
            raise
        except Exception as e:
            logger.error(f"Amadeus search {params.origin}->{params.destination} failed: {e}")
            raise self._convert(e) from e

    async def get_offer_details(self, offer_id: str) -> FlightOffer:
        raise self._not_supported("offer details")

    async def create_booking(
        self,
        offer_id: str,
        passengers: list[SupplyPassenger],
        payment: SupplyPaymentInfo,
    ) -> SupplyBooking:
        raise self._not_supported("booking")

    async def cancel_booking(self, booking_id: str) -> SupplyCancellationResult:
        raise self._not_supported("cancellation")

    async def get_booking(self, booking_id: str) -> SupplyBooking:
        raise self._not_supported("booking retrieval")

    async def close(self) -> None:
        await self._client.close()
