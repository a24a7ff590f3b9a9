"""Canonical supplier error taxonomy."""


class SupplyErrorCode:
    SEARCH_FAILED = "SEARCH_FAILED"
    OFFER_EXPIRED = "OFFER_EXPIRED"
    SOLD_OUT = "SOLD_OUT"
    BOOKING_FAILED = "BOOKING_FAILED"
    NOT_SUPPORTED = "NOT_SUPPORTED"
    OFFER_DETAILS_FAILED = "OFFER_DETAILS_FAILED"
    CANCELLATION_FAILED = "CANCELLATION_FAILED"
    BOOKING_RETRIEVAL_FAILED = "BOOKING_RETRIEVAL_FAILED"
    SUPPLIER_UNAVAILABLE = "SUPPLIER_UNAVAILABLE"
    UNKNOWN = "UNKNOWN"


class SupplyError(Exception):
    """Error raised at the supplier boundary.

    Every backend-native failure is converted into one of these before it
    leaves an adapter, so callers can branch on ``code`` (and ``status`` as an
    HTTP-style hint) without knowing which backend produced it.
    """

    def __init__(self, message: str, supplier: str, code: str, status: int = 500):
        super().__init__(message)
        self.message = message
        self.supplier = supplier
        self.code = code
        self.status = status

    @property
    def is_gone(self) -> bool:
        """True when the offer can no longer be booked and a re-search is needed."""
        return self.status == 410

    def __repr__(self) -> str:
        return (
            f"SupplyError(supplier={self.supplier!r}, code={self.code!r}, "
            f"status={self.status}, message={self.message!r})"
        )
