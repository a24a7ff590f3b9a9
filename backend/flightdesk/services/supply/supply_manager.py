"""Routes searches and bookings across supplier adapters."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from flightdesk.schemas.supply import (
    CompatFlightOption,
    CompatPrice,
    FlightOffer,
    PolicyView,
    SupplyBooking,
    SupplyCancellationResult,
    SupplyPassenger,
    SupplyPaymentInfo,
    SupplySearchParams,
    SupplySearchResult,
)
from flightdesk.services.supply.base import FlightSupplier
from flightdesk.services.supply.errors import SupplyError, SupplyErrorCode
from flightdesk.services.supply.pricing import PricingRule, apply_pricing_to_offer, select_pricing_rule
from flightdesk.services.supply.registry import SupplierRegistry
from flightdesk.services.supply.rules_engine import DEFAULT_RULES, SupplyRule, resolve_suppliers

logger = logging.getLogger(__name__)

# Suppliers whose create_booking actually books (not just searches)
BOOKABLE_SUPPLIERS = frozenset({"duffel", "mock"})

PricingFn = Callable[[FlightOffer], FlightOffer]


@dataclass
class OfferFreshness:
    valid: bool
    current_price_cents: int
    price_changed: bool


def to_flight_option(offer: FlightOffer) -> CompatFlightOption:
    """Flatten an offer into the legacy option shape."""
    return CompatFlightOption(
        id=offer.id,
        segments=list(offer.segments),
        total_duration=offer.total_duration,
        stops=offer.stops,
        price=CompatPrice(
            amount=offer.price.total,
            currency=offer.price.currency,
            service_fee=offer.price.service_fee,
            markup=offer.price.markup,
        ),
        seats_remaining=offer.seats_remaining,
    )


def to_policy_view(offer: FlightOffer) -> PolicyView:
    first = offer.first_segment
    last = offer.segments[-1] if offer.segments else None
    return PolicyView(
        price=offer.price.total,
        cabin=first.cabin if first else "economy",
        stops=offer.stops,
        airline_code=first.airline_code if first else "",
        departure_time=first.departure.time if first else "",
        refundable=bool(offer.conditions and offer.conditions.refundable),
        origin=first.departure.airport_code if first else "",
        destination=last.arrival.airport_code if last else "",
    )


def _dedup_key(offer: FlightOffer) -> tuple[str, str] | None:
    first = offer.first_segment
    if first is None:
        return None
    return (first.flight_number, first.departure.time)


class SupplyManager:
    """Coordinates search and booking across the registered suppliers."""

    def __init__(
        self,
        registry: SupplierRegistry,
        rules: list[SupplyRule] | tuple[SupplyRule, ...] | None = None,
        pricing: PricingFn | None = None,
        bookable_suppliers: frozenset[str] | set[str] = BOOKABLE_SUPPLIERS,
        pricing_rules: list[PricingRule] | tuple[PricingRule, ...] = (),
    ):
        self.registry = registry
        self.rules = rules if rules is not None else DEFAULT_RULES
        self.pricing = pricing or self._price_by_rule
        self.pricing_rules = tuple(pricing_rules)
        self.bookable_suppliers = frozenset(bookable_suppliers)

    def _price_by_rule(self, offer: FlightOffer) -> FlightOffer:
        return apply_pricing_to_offer(offer, select_pricing_rule(offer, self.pricing_rules))

    def _available(self, name: str) -> FlightSupplier | None:
        supplier = self.registry.get(name)
        if supplier is None or not supplier.is_available():
            return None
        return supplier

    # --- Search ---

    async def search_flights(self, params: SupplySearchParams) -> SupplySearchResult:
        """Try suppliers in rule order; the first non-empty result wins."""
        supplier_names = resolve_suppliers(params, self.rules)

        for name in supplier_names:
            supplier = self._available(name)
            if supplier is None:
                continue

            try:
                offers = await supplier.search_flights(params)
            except SupplyError as e:
                logger.warning(f"Supplier {name} search failed [{e.code}]: {e.message}")
                continue
            except Exception as e:
                logger.error(f"Supplier {name} search raised unexpectedly: {e}", exc_info=True)
                continue

            if offers:
                logger.info(f"{len(offers)} offers from {name} for {params.origin}->{params.destination}")
                return SupplySearchResult(offers=offers, source=name)

        # All suppliers exhausted
        return SupplySearchResult(
            offers=[], source=supplier_names[-1] if supplier_names else "unknown"
        )

    async def _search_one(self, name: str, params: SupplySearchParams) -> list[FlightOffer]:
        supplier = self._available(name)
        if supplier is None:
            return []
        return await supplier.search_flights(params)

    async def search_flights_parallel(
        self, params: SupplySearchParams, supplier_names: list[str]
    ) -> list[FlightOffer]:
        """Query suppliers concurrently, merge in the given order, drop duplicate flights."""
        results = await asyncio.gather(
            *(self._search_one(name, params) for name in supplier_names),
            return_exceptions=True,
        )

        all_offers: list[FlightOffer] = []
        for name, result in zip(supplier_names, results):
            if isinstance(result, BaseException):
                logger.warning(f"Supplier {name} parallel search failed: {result}")
                continue
            all_offers.extend(result)

        # Deduplicate flights (same flight_number + departure time)
        seen = set()
        unique: list[FlightOffer] = []
        for offer in all_offers:
            key = _dedup_key(offer)
            if key is not None:
                if key in seen:
                    continue
                seen.add(key)
            unique.append(offer)
        return unique

    async def search_flights_compat(
        self, params: SupplySearchParams
    ) -> tuple[list[CompatFlightOption], str]:
        result = await self.search_flights(params)
        flights = [to_flight_option(self.pricing(offer)) for offer in result.offers]
        return flights, result.source

    # --- Booking ---

    def resolve_supplier_from_offer_id(self, offer_id: str) -> str:
        """Offer ids are prefixed with the supplier name: ``duffel-off_123``."""
        prefix, sep, _ = offer_id.partition("-")
        if sep and self.registry.has(prefix):
            return prefix
        return "mock"

    def _bookable(self, supplier_name: str) -> FlightSupplier:
        supplier = self._available(supplier_name)
        if supplier is None:
            raise SupplyError(
                f'Supplier "{supplier_name}" is not available',
                supplier_name,
                SupplyErrorCode.SUPPLIER_UNAVAILABLE,
                503,
            )
        return supplier

    async def create_booking(
        self,
        offer_id: str,
        passengers: list[SupplyPassenger],
        payment: SupplyPaymentInfo,
    ) -> SupplyBooking:
        supplier_name = self.resolve_supplier_from_offer_id(offer_id)

        if supplier_name not in self.bookable_suppliers:
            raise SupplyError(
                f'Supplier "{supplier_name}" does not support booking',
                supplier_name,
                SupplyErrorCode.NOT_SUPPORTED,
                501,
            )

        supplier = self._bookable(supplier_name)
        return await supplier.create_booking(offer_id, passengers, payment)

    async def validate_offer_freshness(
        self, offer_id: str, expected_price_cents: int, currency: str
    ) -> OfferFreshness:
        """
        Pre-booking check that the offer still exists and whether its price moved.

        Expired/sold-out offers (410) raise; any other lookup failure is logged
        and the offer is treated as unchanged.
        """
        supplier_name = self.resolve_supplier_from_offer_id(offer_id)
        unchanged = OfferFreshness(valid=True, current_price_cents=expected_price_cents, price_changed=False)

        if supplier_name not in self.bookable_suppliers:
            return unchanged

        supplier = self._bookable(supplier_name)
        try:
            offer = await supplier.get_offer_details(offer_id)
        except SupplyError as e:
            if e.is_gone:
                raise
            logger.error(f"Offer validation failed for {supplier_name} ({currency}): {e.message}")
            return unchanged
        except Exception as e:
            logger.error(f"Offer validation failed for {supplier_name} ({currency}): {e}")
            return unchanged

        current = round(offer.price.total * 100)
        return OfferFreshness(
            valid=True,
            current_price_cents=current,
            price_changed=current != expected_price_cents,
        )

    async def cancel_booking(self, supplier_name: str, supplier_booking_id: str) -> SupplyCancellationResult:
        supplier = self._available(supplier_name)
        if supplier is None:
            raise SupplyError(
                f'Supplier "{supplier_name}" is not available for cancellation',
                supplier_name,
                SupplyErrorCode.SUPPLIER_UNAVAILABLE,
                503,
            )
        return await supplier.cancel_booking(supplier_booking_id)

    async def close(self) -> None:
        for supplier in self.registry.instances():
            try:
                await supplier.close()
            except Exception as e:
                logger.warning(f"Closing supplier {supplier.name} failed: {e}")
