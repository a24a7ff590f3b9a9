from abc import ABC, abstractmethod

from flightdesk.schemas.supply import (
    FlightOffer,
    SupplyBooking,
    SupplyCancellationResult,
    SupplyPassenger,
    SupplyPaymentInfo,
    SupplySearchParams,
)


class FlightSupplier(ABC):
    """Contract every supplier adapter implements.

    Translating a backend's native response shapes and errors into the
    canonical model happens entirely inside the adapter.
    """

    name: str

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the supplier is configured. Must never raise."""
        ...

    @abstractmethod
    async def search_flights(self, params: SupplySearchParams) -> list[FlightOffer]:
        ...

    @abstractmethod
    async def get_offer_details(self, offer_id: str) -> FlightOffer:
        ...

    @abstractmethod
    async def create_booking(
        self,
        offer_id: str,
        passengers: list[SupplyPassenger],
        payment: SupplyPaymentInfo,
    ) -> SupplyBooking:
        ...

    @abstractmethod
    async def cancel_booking(self, booking_id: str) -> SupplyCancellationResult:
        ...

    @abstractmethod
    async def get_booking(self, booking_id: str) -> SupplyBooking:
        ...

    async def close(self) -> None:
        """Release network resources. Adapters without any may rely on this no-op."""
        return None
