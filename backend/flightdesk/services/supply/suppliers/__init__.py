from flightdesk.services.supply.suppliers.amadeus_supplier import AmadeusSupplier
from flightdesk.services.supply.suppliers.duffel_supplier import DuffelSupplier
from flightdesk.services.supply.suppliers.mock_supplier import MockSupplier

__all__ = ["AmadeusSupplier", "DuffelSupplier", "MockSupplier"]
