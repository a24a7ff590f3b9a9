"""Name -> factory registry of supplier adapters with lazily built, cached instances."""

import logging
import threading
from typing import Callable

from flightdesk.config import Settings, settings as default_settings
from flightdesk.services.supply.base import FlightSupplier
from flightdesk.services.supply.suppliers import AmadeusSupplier, DuffelSupplier, MockSupplier

logger = logging.getLogger(__name__)

SupplierFactory = Callable[[], FlightSupplier]


class SupplierRegistry:
    def __init__(self) -> None:
        self._factories: dict[str, SupplierFactory] = {}
        self._instances: dict[str, FlightSupplier] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def register(self, name: str, factory: SupplierFactory) -> None:
        """Register (or replace) a supplier factory. A replaced instance is dropped."""
        with self._registry_lock:
            self._factories[name] = factory
            self._instances.pop(name, None)
            self._locks.setdefault(name, threading.Lock())

    def has(self, name: str) -> bool:
        return name in self._factories

    def names(self) -> list[str]:
        return list(self._factories)

    def get(self, name: str) -> FlightSupplier | None:
        """The supplier instance for ``name``, constructed on first use. None if unknown."""
        instance = self._instances.get(name)
        if instance is not None:
            return instance

        factory = self._factories.get(name)
        if factory is None:
            return None

        with self._locks[name]:
            instance = self._instances.get(name)
            if instance is None:
                instance = factory()
                self._instances[name] = instance
                logger.info(f"Supplier '{name}' initialised")
        return instance

    def instances(self) -> list[FlightSupplier]:
        """Instances constructed so far."""
        return list(self._instances.values())


def default_registry(settings: Settings | None = None) -> SupplierRegistry:
    cfg = settings or default_settings
    registry = SupplierRegistry()
    registry.register("duffel", lambda: DuffelSupplier(cfg))
    registry.register("amadeus", lambda: AmadeusSupplier(cfg))
    registry.register("mock", MockSupplier)
    return registry
