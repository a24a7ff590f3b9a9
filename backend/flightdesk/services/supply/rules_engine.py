"""Supplier routing rules: maps a search request to an ordered supplier list."""

from dataclasses import dataclass

from flightdesk.schemas.supply import SupplySearchParams

CATCH_ALL_SUPPLIERS: tuple[str, ...] = ("duffel", "amadeus", "mock")


@dataclass(frozen=True)
class SupplyRule:
    """A routing rule. Unset predicates match everything."""

    suppliers: tuple[str, ...]
    airlines: frozenset[str] | None = None
    origins: frozenset[str] | None = None
    destinations: frozenset[str] | None = None
    cabin_classes: frozenset[str] | None = None


# Evaluated top-to-bottom, first match wins. Airline-specific NDC rules go
# above the catch-all, e.g.
#   SupplyRule(airlines=frozenset({"BA"}), suppliers=("ba_ndc", "duffel", "amadeus", "mock"))
DEFAULT_RULES: tuple[SupplyRule, ...] = (
    SupplyRule(suppliers=CATCH_ALL_SUPPLIERS),
)


def _matches(rule: SupplyRule, params: SupplySearchParams) -> bool:
    if rule.airlines is not None:
        # An airline rule never swallows requests that name no airline
        if not params.airline:
            return False
        if params.airline.upper() not in rule.airlines:
            return False

    if rule.origins is not None and params.origin.upper() not in rule.origins:
        return False

    if rule.destinations is not None and params.destination.upper() not in rule.destinations:
        return False

    if rule.cabin_classes is not None and params.cabin_class:
        if params.cabin_class not in rule.cabin_classes:
            return False

    return True


def resolve_suppliers(
    params: SupplySearchParams,
    rules: tuple[SupplyRule, ...] | list[SupplyRule] = DEFAULT_RULES,
) -> list[str]:
    """Return the ordered supplier names to try for this request."""
    for rule in rules:
        if _matches(rule, params):
            return list(rule.suppliers)

    return list(CATCH_ALL_SUPPLIERS)
