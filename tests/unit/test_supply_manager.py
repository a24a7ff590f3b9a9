"""Tests for the supply manager: fallback, fan-out, booking routing, freshness."""

from datetime import date

import pytest

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
from flightdesk.services.supply.pricing import PricingRule
from flightdesk.services.supply.registry import SupplierRegistry
from flightdesk.services.supply.rules_engine import SupplyRule
from flightdesk.services.supply.supply_manager import SupplyManager, to_flight_option, to_policy_view

PARAMS = SupplySearchParams(origin="BLR", destination="DEL", departure_date=date(2026, 3, 2))
PASSENGER = SupplyPassenger(first_name="Asha", last_name="Rao", email="asha@example.com")
PAYMENT = SupplyPaymentInfo(type="balance", currency="INR", amount=5000)


class StubSupplier(FlightSupplier):
    """Configurable in-test supplier."""

    def __init__(self, name, offers=None, error=None, available=True, details=None):
        self.name = name
        self.offers = offers or []
        self.error = error
        self.available = available
        self.details = details
        self.search_calls = 0
        self.booked = []
        self.closed = False

    def is_available(self) -> bool:
        return self.available

    async def search_flights(self, params):
        self.search_calls += 1
        if self.error:
            raise self.error
        return list(self.offers)

    async def get_offer_details(self, offer_id):
        if isinstance(self.details, Exception):
            raise self.details
        return self.details

    async def create_booking(self, offer_id, passengers, payment) -> SupplyBooking:
        self.booked.append(offer_id)
        if self.error:
            raise self.error
        offer = self.details or self.offers[0]
        return SupplyBooking(
            id=f"{self.name}-booking",
            supplier_name=self.name,
            supplier_booking_id="B1",
            confirmation_code="CONF1",
            status="confirmed",
            offer=offer,
            passengers=passengers,
            total_price=offer.price,
            booked_at="2026-03-01T10:00:00Z",
        )

    async def cancel_booking(self, booking_id) -> SupplyCancellationResult:
        return SupplyCancellationResult(success=True, message=f"cancelled {booking_id}")

    async def get_booking(self, booking_id):
        raise NotImplementedError

    async def close(self) -> None:
        self.closed = True


def _registry(*suppliers: StubSupplier) -> SupplierRegistry:
    registry = SupplierRegistry()
    for supplier in suppliers:
        registry.register(supplier.name, lambda s=supplier: s)
    return registry


def _manager(*suppliers: StubSupplier, **kwargs) -> SupplyManager:
    names = tuple(s.name for s in suppliers)
    return SupplyManager(_registry(*suppliers), rules=(SupplyRule(suppliers=names),), **kwargs)


@pytest.mark.asyncio
async def test_fallback_skips_failures_and_empty_results(make_offer) -> None:
    a = StubSupplier("a", error=RuntimeError("boom"))
    b = StubSupplier("b")
    c = StubSupplier("c", offers=[make_offer("c-1"), make_offer("c-2", flight_number="6E999")])

    result = await _manager(a, b, c).search_flights(PARAMS)

    assert result.source == "c"
    assert [o.id for o in result.offers] == ["c-1", "c-2"]
    assert (a.search_calls, b.search_calls, c.search_calls) == (1, 1, 1)


@pytest.mark.asyncio
async def test_fallback_stops_at_first_non_empty(make_offer) -> None:
    a = StubSupplier("a", offers=[make_offer("a-1")])
    b = StubSupplier("b", offers=[make_offer("b-1")])

    result = await _manager(a, b).search_flights(PARAMS)

    assert result.source == "a"
    assert b.search_calls == 0


@pytest.mark.asyncio
async def test_fallback_skips_unavailable_and_unknown(make_offer) -> None:
    off = StubSupplier("off", offers=[make_offer("off-1")], available=False)
    on = StubSupplier("on", offers=[make_offer("on-1")])
    manager = SupplyManager(_registry(off, on), rules=(SupplyRule(suppliers=("ghost", "off", "on")),))

    result = await manager.search_flights(PARAMS)

    assert result.source == "on"
    assert off.search_calls == 0


@pytest.mark.asyncio
async def test_exhausted_search_is_tagged_with_last_supplier() -> None:
    a = StubSupplier("a", error=SupplyError("down", "a", SupplyErrorCode.SEARCH_FAILED, 503))
    b = StubSupplier("b")

    result = await _manager(a, b).search_flights(PARAMS)

    assert result.offers == []
    assert result.source == "b"


@pytest.mark.asyncio
async def test_exhausted_search_with_no_suppliers_is_unknown() -> None:
    manager = SupplyManager(SupplierRegistry(), rules=(SupplyRule(suppliers=()),))
    result = await manager.search_flights(PARAMS)
    assert result.source == "unknown"


@pytest.mark.asyncio
async def test_parallel_search_dedups_preferring_first_supplier(make_offer) -> None:
    a = StubSupplier("a", offers=[make_offer("a-1", flight_number="6E101")])
    b = StubSupplier(
        "b",
        offers=[
            make_offer("b-1", flight_number="6E101"),
            make_offer("b-2", flight_number="6E101", departure="2026-03-02T18:00:00+05:30"),
        ],
    )
    failing = StubSupplier("f", error=RuntimeError("timeout"))

    offers = await _manager(a, b, failing).search_flights_parallel(PARAMS, ["a", "f", "b"])

    assert [o.id for o in offers] == ["a-1", "b-2"]


@pytest.mark.asyncio
async def test_parallel_search_keeps_offers_without_segments(make_offer) -> None:
    bare = make_offer("a-1").model_copy(update={"segments": []})
    a = StubSupplier("a", offers=[bare, bare])

    offers = await _manager(a).search_flights_parallel(PARAMS, ["a"])

    assert len(offers) == 2


@pytest.mark.asyncio
async def test_compat_search_applies_pricing_without_mutating(make_offer) -> None:
    original = make_offer("a-1", total=1000.0)
    a = StubSupplier("a", offers=[original])

    flights, source = await _manager(a).search_flights_compat(PARAMS)

    assert source == "a"
    # 1.5% markup (15.00) + 12.00 fixed service fee
    assert flights[0].price.amount == 1027.0
    assert flights[0].price.markup == 15.0
    assert flights[0].price.service_fee == 12.0
    assert original.price.total == 1000.0


@pytest.mark.asyncio
async def test_compat_search_uses_injected_pricing(make_offer) -> None:
    a = StubSupplier("a", offers=[make_offer("a-1", total=1000.0)])

    flights, _ = await _manager(a, pricing=lambda offer: offer).search_flights_compat(PARAMS)

    assert flights[0].price.amount == 1000.0
    assert flights[0].price.markup is None


def test_resolve_supplier_from_offer_id() -> None:
    manager = _manager(StubSupplier("duffel"), StubSupplier("mock"))
    assert manager.resolve_supplier_from_offer_id("duffel-off_123") == "duffel"
    assert manager.resolve_supplier_from_offer_id("nodash") == "mock"
    assert manager.resolve_supplier_from_offer_id("unknown-123") == "mock"


@pytest.mark.asyncio
async def test_create_booking_rejects_non_bookable_supplier(make_offer) -> None:
    amadeus = StubSupplier("amadeus", offers=[make_offer("amadeus-1")])
    manager = _manager(amadeus, StubSupplier("mock"))

    with pytest.raises(SupplyError) as exc_info:
        await manager.create_booking("amadeus-1", [PASSENGER], PAYMENT)

    assert exc_info.value.code == SupplyErrorCode.NOT_SUPPORTED
    assert exc_info.value.status == 501
    assert amadeus.booked == []


@pytest.mark.asyncio
async def test_create_booking_unavailable_supplier(make_offer) -> None:
    duffel = StubSupplier("duffel", offers=[make_offer("duffel-1")], available=False)

    with pytest.raises(SupplyError) as exc_info:
        await _manager(duffel).create_booking("duffel-off_1", [PASSENGER], PAYMENT)

    assert exc_info.value.code == SupplyErrorCode.SUPPLIER_UNAVAILABLE
    assert exc_info.value.status == 503


@pytest.mark.asyncio
async def test_create_booking_delegates_and_propagates(make_offer) -> None:
    duffel = StubSupplier("duffel", offers=[make_offer("duffel-off_1")])
    booking = await _manager(duffel).create_booking("duffel-off_1", [PASSENGER], PAYMENT)
    assert booking.supplier_name == "duffel"
    assert duffel.booked == ["duffel-off_1"]

    duffel.error = SupplyError("gone", "duffel", SupplyErrorCode.SOLD_OUT, 410)
    with pytest.raises(SupplyError) as exc_info:
        await _manager(duffel).create_booking("duffel-off_1", [PASSENGER], PAYMENT)
    assert exc_info.value.code == SupplyErrorCode.SOLD_OUT


@pytest.mark.asyncio
async def test_freshness_reports_price_change(make_offer) -> None:
    duffel = StubSupplier("duffel", details=make_offer("duffel-off_1", total=5120.5))

    freshness = await _manager(duffel).validate_offer_freshness("duffel-off_1", 500000, "INR")

    assert freshness.valid is True
    assert freshness.current_price_cents == 512050
    assert freshness.price_changed is True


@pytest.mark.asyncio
async def test_freshness_unchanged_price(make_offer) -> None:
    duffel = StubSupplier("duffel", details=make_offer("duffel-off_1", total=5000.0))
    freshness = await _manager(duffel).validate_offer_freshness("duffel-off_1", 500000, "INR")
    assert freshness.price_changed is False


@pytest.mark.asyncio
async def test_freshness_non_bookable_assumed_valid() -> None:
    amadeus = StubSupplier("amadeus", details=RuntimeError("never called"))
    freshness = await _manager(amadeus).validate_offer_freshness("amadeus-1", 1234, "USD")
    assert (freshness.valid, freshness.current_price_cents, freshness.price_changed) == (True, 1234, False)


@pytest.mark.asyncio
async def test_freshness_gone_offer_raises() -> None:
    duffel = StubSupplier(
        "duffel", details=SupplyError("expired", "duffel", SupplyErrorCode.OFFER_EXPIRED, 410)
    )
    with pytest.raises(SupplyError) as exc_info:
        await _manager(duffel).validate_offer_freshness("duffel-off_1", 100, "USD")
    assert exc_info.value.code == SupplyErrorCode.OFFER_EXPIRED


@pytest.mark.asyncio
async def test_freshness_other_errors_do_not_block() -> None:
    duffel = StubSupplier(
        "duffel", details=SupplyError("net", "duffel", SupplyErrorCode.OFFER_DETAILS_FAILED, 500)
    )
    freshness = await _manager(duffel).validate_offer_freshness("duffel-off_1", 100, "USD")
    assert freshness.valid is True
    assert freshness.current_price_cents == 100


@pytest.mark.asyncio
async def test_cancel_booking_routes_by_name() -> None:
    mock = StubSupplier("mock")
    result = await _manager(mock).cancel_booking("mock", "B1")
    assert result.message == "cancelled B1"

    with pytest.raises(SupplyError) as exc_info:
        await _manager(mock).cancel_booking("duffel", "B1")
    assert exc_info.value.code == SupplyErrorCode.SUPPLIER_UNAVAILABLE


@pytest.mark.asyncio
async def test_close_closes_constructed_suppliers(make_offer) -> None:
    a = StubSupplier("a", offers=[make_offer("a-1")])
    b = StubSupplier("b")
    manager = _manager(a, b)
    await manager.search_flights(PARAMS)

    await manager.close()

    assert a.closed is True
    # never constructed, never closed
    assert b.closed is False


def test_policy_and_compat_views(make_offer) -> None:
    offer = make_offer("mock-1", total=4200.0, refundable=True)

    view = to_policy_view(offer)
    assert view.price == 4200.0
    assert view.airline_code == "6E"
    assert view.origin == "BLR"
    assert view.destination == "DEL"
    assert view.refundable is True
    assert view.stops == 0

    option = to_flight_option(offer)
    assert option.id == "mock-1"
    assert option.price.amount == 4200.0
    assert option.segments == offer.segments


def test_offers_are_immutable(make_offer) -> None:
    offer: FlightOffer = make_offer()
    with pytest.raises(Exception):
        offer.stops = 3


@pytest.mark.asyncio
async def test_compat_search_picks_pricing_rule_per_offer(make_offer) -> None:
    indigo = PricingRule(
        name="IndiGo", airlines=frozenset({"6E"}), markup_type="fixed", markup_value=100.0, markup_cap=None
    )
    a = StubSupplier(
        "a",
        offers=[
            make_offer("a-1", total=1000.0),
            make_offer("a-2", airline_code="AI", flight_number="AI501", total=1000.0),
        ],
    )

    flights, _ = await _manager(a, pricing_rules=[indigo]).search_flights_compat(PARAMS)

    assert [f.price.amount for f in flights] == [1112.0, 1027.0]
    assert [f.price.markup for f in flights] == [100.0, 15.0]
