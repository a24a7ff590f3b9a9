"""Duffel adapter: NDC offer/order model (offer requests, instant orders)."""

import logging

from flightdesk.config import Settings, settings as default_settings
from flightdesk.schemas.supply import (
    FlightOffer,
    SupplyBooking,
    SupplyCancellationResult,
    SupplyPassenger,
    SupplyPaymentInfo,
    SupplySearchParams,
)
from flightdesk.services.supply.base import FlightSupplier
from flightdesk.services.supply.errors import SupplyError, SupplyErrorCode
from flightdesk.services.supply.suppliers.duffel_client import DuffelApiError, DuffelClient
from flightdesk.services.supply.suppliers.duffel_mapper import (
    map_offer,
    map_order_to_booking,
    map_passenger_to_duffel,
    strip_prefix,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 20


def _status_of(exc: Exception) -> int:
    return exc.status if isinstance(exc, DuffelApiError) else 500


class DuffelSupplier(FlightSupplier):
    name = "duffel"

    def __init__(self, settings: Settings | None = None, client: DuffelClient | None = None):
        self._settings = settings or default_settings
        self._client = client or DuffelClient(self._settings)

    def is_available(self) -> bool:
        return bool(self._settings.duffel_token)

    async def search_flights(self, params: SupplySearchParams) -> list[FlightOffer]:
        slices = [
            {
                "origin": params.origin.upper(),
                "destination": params.destination.upper(),
                "departure_date": params.departure_date.isoformat(),
                "departure_time": None,
                "arrival_time": None,
            }
        ]
        if params.return_date:
            slices.append(
                {
                    "origin": params.destination.upper(),
                    "destination": params.origin.upper(),
                    "departure_date": params.return_date.isoformat(),
                    "departure_time": None,
                    "arrival_time": None,
                }
            )
        passengers = [{"type": "adult"} for _ in range(params.adults)]

        try:
            offer_request = await self._client.create_offer_request(slices, passengers, params.cabin_class)
            offers = [map_offer(o) for o in offer_request.get("offers") or []]
        except Exception as e:
            logger.error(f"Duffel search {params.origin}->{params.destination} failed: {e}")
            raise SupplyError(
                str(e) or "Duffel search failed", self.name, SupplyErrorCode.SEARCH_FAILED, _status_of(e)
            ) from e

        offers.sort(key=lambda o: o.price.total)
        limit = params.max_results if params.max_results is not None else DEFAULT_MAX_RESULTS
        return offers[:limit]

    async def get_offer_details(self, offer_id: str) -> FlightOffer:
        try:
            return map_offer(await self._client.get_offer(strip_prefix(offer_id)))
        except Exception as e:
            raise SupplyError(
                str(e) or "Failed to get offer details", self.name, SupplyErrorCode.OFFER_DETAILS_FAILED, 500
            ) from e

    async def create_booking(
        self,
        offer_id: str,
        passengers: list[SupplyPassenger],
        payment: SupplyPaymentInfo,
    ) -> SupplyBooking:
        duffel_offer_id = strip_prefix(offer_id)
        try:
            # Duffel assigns passenger ids per offer and re-prices on fetch
            offer = await self._client.get_offer(duffel_offer_id)
            offer_passengers = offer.get("passengers") or []
            duffel_passengers = [
                map_passenger_to_duffel(
                    p, offer_passengers[i]["id"] if i < len(offer_passengers) else f"pas_unknown_{i}"
                )
                for i, p in enumerate(passengers)
            ]
            order = await self._client.create_order(
                {
                    "selected_offers": [duffel_offer_id],
                    "passengers": duffel_passengers,
                    "type": "instant",
                    "payments": [
                        {
                            "type": "balance",
                            "amount": offer.get("total_amount"),
                            "currency": offer.get("total_currency"),
                        }
                    ],
                }
            )
            booking = map_order_to_booking(order)
        except DuffelApiError as e:
            logger.error(f"Duffel create_booking failed for {offer_id}: {e.status} {e.errors}")
            if e.code == "offer_expired":
                raise SupplyError(
                    "This offer has expired. Please search again.",
                    self.name,
                    SupplyErrorCode.OFFER_EXPIRED,
                    410,
                ) from e
            if e.code == "offer_no_longer_available":
                raise SupplyError(
                    "This flight is no longer available.",
                    self.name,
                    SupplyErrorCode.SOLD_OUT,
                    410,
                ) from e
            raise SupplyError(
                e.message or "Booking creation failed", self.name, SupplyErrorCode.BOOKING_FAILED, e.status
            ) from e
        except Exception as e:
            logger.error(f"Duffel create_booking failed for {offer_id}: {e}")
            raise SupplyError(
                str(e) or "Booking creation failed", self.name, SupplyErrorCode.BOOKING_FAILED, 500
            ) from e

        logger.info(f"Duffel order {booking.supplier_booking_id} created for {offer_id}")
        return booking

    async def cancel_booking(self, booking_id: str) -> SupplyCancellationResult:
        try:
            cancellation = await self._client.create_order_cancellation(strip_prefix(booking_id))
            confirmed = await self._client.confirm_order_cancellation(cancellation["id"])
        except Exception as e:
            logger.error(f"Duffel cancellation of {booking_id} failed: {e}")
            raise SupplyError(
                str(e) or "Cancellation failed", self.name, SupplyErrorCode.CANCELLATION_FAILED, 500
            ) from e

        refund = confirmed.get("refund_amount")
        return SupplyCancellationResult(
            success=True,
            refund_amount=float(refund) if refund else None,
            refund_currency=confirmed.get("refund_currency"),
            message="Booking cancelled successfully",
        )

    async def get_booking(self, booking_id: str) -> SupplyBooking:
        try:
            return map_order_to_booking(await self._client.get_order(strip_prefix(booking_id)))
        except Exception as e:
            raise SupplyError(
                str(e) or "Failed to retrieve booking", self.name, SupplyErrorCode.BOOKING_RETRIEVAL_FAILED, 500
            ) from e

    async def close(self) -> None:
        await self._client.close()
