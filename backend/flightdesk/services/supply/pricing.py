"""Markup and service-fee pricing applied to supplier offers before display."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from flightdesk.schemas.supply import FlightOffer

FeeType = Literal["percentage", "fixed"]


@dataclass(frozen=True)
class PricingRule:
    name: str = "Default"
    markup_type: FeeType = "percentage"
    markup_value: float = 1.5
    markup_cap: float | None = 50.0
    service_fee_type: FeeType = "fixed"
    service_fee_value: float = 12.0
    min_total_fee: float = 5.0
    # Optional scoping; None matches everything
    airlines: frozenset[str] | None = None
    routes: frozenset[str] | None = None  # "BLR-DEL"
    cabins: frozenset[str] | None = None

    def applies_to(self, offer: FlightOffer) -> bool:
        first = offer.first_segment
        if self.airlines is not None and (first is None or first.airline_code not in self.airlines):
            return False
        if self.routes is not None:
            if first is None:
                return False
            route = f"{first.departure.airport_code}-{offer.segments[-1].arrival.airport_code}"
            if route not in self.routes:
                return False
        if self.cabins is not None and (first is None or first.cabin not in self.cabins):
            return False
        return True


DEFAULT_PRICING_RULE = PricingRule()


@dataclass(frozen=True)
class PricedResult:
    supplier_cost: float
    markup: float
    displayed_fare: float  # supplier cost + markup
    service_fee: float
    customer_total: float  # displayed fare + service fee
    currency: str


def _round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def calculate_price(supplier_total: float, currency: str, rule: PricingRule = DEFAULT_PRICING_RULE) -> PricedResult:
    if rule.markup_type == "percentage":
        markup = supplier_total * rule.markup_value / 100
    else:
        markup = rule.markup_value
    if rule.markup_cap is not None and markup > rule.markup_cap:
        markup = rule.markup_cap

    if rule.service_fee_type == "percentage":
        service_fee = supplier_total * rule.service_fee_value / 100
    else:
        service_fee = rule.service_fee_value

    # Floor on the combined fee; the service fee absorbs the difference
    if markup + service_fee < rule.min_total_fee:
        service_fee = rule.min_total_fee - markup

    markup = _round2(markup)
    service_fee = _round2(service_fee)
    displayed_fare = _round2(supplier_total + markup)

    return PricedResult(
        supplier_cost=supplier_total,
        markup=markup,
        displayed_fare=displayed_fare,
        service_fee=service_fee,
        customer_total=_round2(displayed_fare + service_fee),
        currency=currency,
    )


def select_pricing_rule(offer: FlightOffer, rules: list[PricingRule] | tuple[PricingRule, ...]) -> PricingRule:
    """First rule scoped to this offer, else the default rule."""
    for rule in rules:
        if rule.applies_to(offer):
            return rule
    return DEFAULT_PRICING_RULE


def apply_pricing_to_offer(offer: FlightOffer, rule: PricingRule = DEFAULT_PRICING_RULE) -> FlightOffer:
    """Return a copy of ``offer`` whose total includes markup and service fee."""
    priced = calculate_price(offer.price.total, offer.price.currency, rule)
    price = offer.price.model_copy(
        update={
            "total": priced.customer_total,
            "markup": priced.markup,
            "service_fee": priced.service_fee,
        }
    )
    return offer.model_copy(update={"price": price})
