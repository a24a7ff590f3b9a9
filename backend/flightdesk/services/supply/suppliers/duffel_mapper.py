"""Translate Duffel offer/order payloads to and from the canonical supply model."""

from datetime import datetime, timezone

from flightdesk.schemas.supply import (
    CABIN_CLASSES,
    BaggageAllowance,
    FareConditions,
    FlightOffer,
    PriceBreakdown,
    SegmentEndpoint,
    SupplyBooking,
    SupplyFlightSegment,
    SupplyPassenger,
)
from flightdesk.services.supply.durations import compute_duration, format_iso_duration

SUPPLIER = "duffel"


def strip_prefix(offer_or_order_id: str) -> str:
    return offer_or_order_id.removeprefix(f"{SUPPLIER}-")


def _amount(value) -> float:
    return float(value) if value not in (None, "") else 0.0


def map_segment(seg: dict) -> SupplyFlightSegment:
    carrier = seg.get("operating_carrier") or seg.get("marketing_carrier") or {}
    airline_code = carrier.get("iata_code") or ""

    if seg.get("operating_carrier_flight_number"):
        flight_number = f"{airline_code}{seg['operating_carrier_flight_number']}"
    elif seg.get("marketing_carrier_flight_number"):
        marketing_code = (seg.get("marketing_carrier") or {}).get("iata_code") or airline_code
        flight_number = f"{marketing_code}{seg['marketing_carrier_flight_number']}"
    else:
        flight_number = "N/A"

    cabin = "economy"
    seg_passengers = seg.get("passengers") or []
    if seg_passengers and seg_passengers[0].get("cabin_class") in CABIN_CLASSES:
        cabin = seg_passengers[0]["cabin_class"]

    origin = seg.get("origin") or {}
    destination = seg.get("destination") or {}
    duration = format_iso_duration(seg.get("duration")) or compute_duration(
        seg["departing_at"], seg["arriving_at"]
    )

    return SupplyFlightSegment(
        id=seg.get("id", ""),
        airline=carrier.get("name") or "Unknown Airline",
        airline_code=airline_code,
        flight_number=flight_number,
        departure=SegmentEndpoint(
            airport=origin.get("name") or origin.get("city_name") or "Unknown",
            airport_code=origin.get("iata_code") or "",
            time=seg["departing_at"],
            terminal=seg.get("origin_terminal"),
        ),
        arrival=SegmentEndpoint(
            airport=destination.get("name") or destination.get("city_name") or "Unknown",
            airport_code=destination.get("iata_code") or "",
            time=seg["arriving_at"],
            terminal=seg.get("destination_terminal"),
        ),
        duration=duration,
        cabin=cabin,
        aircraft=(seg.get("aircraft") or {}).get("name"),
    )


def _map_slices(slices: list[dict]) -> tuple[list[SupplyFlightSegment], int]:
    """Flatten slice segments. Returns (segments, stops) where stops = segments - slices."""
    segments = [map_segment(seg) for s in slices for seg in s.get("segments") or []]
    return segments, max(0, len(segments) - len(slices))


def _span_duration(segments: list[SupplyFlightSegment]) -> str:
    if not segments:
        return "N/A"
    return compute_duration(segments[0].departure.time, segments[-1].arrival.time)


def _map_conditions(conditions: dict | None) -> FareConditions | None:
    if not conditions:
        return None
    change = conditions.get("change_before_departure") or {}
    refund = conditions.get("refund_before_departure") or {}
    return FareConditions(
        changeable=change.get("allowed") is True,
        refundable=refund.get("allowed") is True,
        change_penalty=_amount(change["penalty_amount"])
        if change.get("allowed") and change.get("penalty_amount") else None,
        cancel_penalty=_amount(refund["penalty_amount"])
        if refund.get("allowed") and refund.get("penalty_amount") else None,
    )


def _map_baggage(slices: list[dict]) -> BaggageAllowance | None:
    # First segment's first passenger carries the allowance for the fare
    try:
        bags = slices[0]["segments"][0]["passengers"][0]["baggages"]
    except (IndexError, KeyError, TypeError):
        return None
    if not isinstance(bags, list):
        return None

    carry_on = sum(b.get("quantity", 0) for b in bags if b.get("type") == "carry_on")
    checked = sum(b.get("quantity", 0) for b in bags if b.get("type") == "checked")
    return BaggageAllowance(carry_on=carry_on, checked=checked)


def map_offer(offer: dict) -> FlightOffer:
    slices = offer.get("slices") or []
    segments, stops = _map_slices(slices)

    if len(slices) == 1 and slices[0].get("duration"):
        total_duration = format_iso_duration(slices[0]["duration"]) or "N/A"
    else:
        total_duration = _span_duration(segments)

    return FlightOffer(
        id=f"{SUPPLIER}-{offer['id']}",
        supplier_name=SUPPLIER,
        supplier_id=offer["id"],
        segments=segments,
        total_duration=total_duration,
        stops=stops,
        price=PriceBreakdown(
            base_fare=_amount(offer.get("base_amount")),
            taxes_and_fees=_amount(offer.get("tax_amount")),
            total=_amount(offer.get("total_amount")),
            currency=offer.get("total_currency") or offer.get("base_currency") or "USD",
        ),
        expires_at=offer.get("expires_at"),
        conditions=_map_conditions(offer.get("conditions")),
        baggage_included=_map_baggage(slices),
    )


def map_passenger_to_duffel(passenger: SupplyPassenger, passenger_id: str) -> dict:
    male = passenger.gender == "male"
    payload = {
        "id": passenger_id,
        "given_name": passenger.first_name,
        "family_name": passenger.last_name,
        "born_on": passenger.date_of_birth or "1990-01-01",
        "gender": "m" if male else "f",
        "title": "mr" if male else "ms",
        "email": passenger.email,
        "phone_number": passenger.phone or "+10000000000",
    }
    if passenger.passport_number and passenger.nationality:
        payload["identity_documents"] = [
            {
                "type": "passport",
                "unique_identifier": passenger.passport_number,
                "issuing_country_code": passenger.nationality,
                "expires_on": passenger.passport_expiry or "2030-01-01",
            }
        ]
    return payload


def _map_order_passenger(p: dict) -> SupplyPassenger:
    gender = {"m": "male", "f": "female"}.get(p.get("gender"))
    return SupplyPassenger(
        first_name=p.get("given_name") or "",
        last_name=p.get("family_name") or "",
        email=p.get("email") or "",
        phone=p.get("phone_number"),
        date_of_birth=p.get("born_on"),
        gender=gender,
    )


def map_order_to_booking(order: dict) -> SupplyBooking:
    segments, stops = _map_slices(order.get("slices") or [])
    price = PriceBreakdown(
        base_fare=_amount(order.get("base_amount")),
        taxes_and_fees=_amount(order.get("tax_amount")),
        total=_amount(order.get("total_amount")),
        currency=order.get("total_currency") or "USD",
    )
    booking_id = f"{SUPPLIER}-{order['id']}"

    return SupplyBooking(
        id=booking_id,
        supplier_name=SUPPLIER,
        supplier_booking_id=order["id"],
        confirmation_code=order.get("booking_reference") or order["id"],
        status="cancelled" if order.get("cancelled_at") else "confirmed",
        offer=FlightOffer(
            id=booking_id,
            supplier_name=SUPPLIER,
            supplier_id=order["id"],
            segments=segments,
            total_duration=_span_duration(segments),
            stops=stops,
            price=price,
        ),
        passengers=[_map_order_passenger(p) for p in order.get("passengers") or []],
        total_price=price,
        booked_at=order.get("created_at") or datetime.now(timezone.utc).isoformat(),
    )
