from flightdesk.services.supply.errors import SupplyError, SupplyErrorCode
from flightdesk.services.supply.registry import SupplierRegistry, default_registry
from flightdesk.services.supply.rules_engine import DEFAULT_RULES, SupplyRule, resolve_suppliers
from flightdesk.services.supply.supply_manager import (
    OfferFreshness,
    SupplyManager,
    to_flight_option,
    to_policy_view,
)

__all__ = [
    "DEFAULT_RULES",
    "OfferFreshness",
    "SupplierRegistry",
    "SupplyError",
    "SupplyErrorCode",
    "SupplyManager",
    "SupplyRule",
    "default_registry",
    "resolve_suppliers",
    "to_flight_option",
    "to_policy_view",
]
