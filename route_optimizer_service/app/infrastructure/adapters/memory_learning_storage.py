"""In-memory implementation of learning storage.

Infrastructure adapter used when persistence is disabled and in tests.
"""

import copy
import logging

from domain.entities import DriverProfile, VehicleProfile
from domain.interfaces import ILearningStorage
from domain.value_objects import HistoricalRoute

_LOGGER = logging.getLogger(__name__)


class MemoryLearningStorage(ILearningStorage):
    """In-memory implementation of learning storage.

    Profiles are deep-copied on save and load so that stored state does not
    follow later in-place mutations of the live profiles.
    """

    def __init__(self) -> None:
        """Initialize empty storage."""
        self._routes: list[HistoricalRoute] = []
        self._drivers: dict[str, DriverProfile] = {}
        self._vehicles: dict[str, VehicleProfile] = {}
        self.save_count = 0
        _LOGGER.info("Initialized MemoryLearningStorage")

    async def load_historical_routes(self) -> list[HistoricalRoute]:
        """Load all stored historical routes."""
        return list(self._routes)

    async def save_historical_routes(self, routes: list[HistoricalRoute]) -> None:
        """Replace the stored historical routes."""
        self._routes = list(routes)
        self.save_count += 1

    async def load_driver_profiles(self) -> dict[str, DriverProfile]:
        """Load all stored driver profiles."""
        return copy.deepcopy(self._drivers)

    async def save_driver_profiles(self, profiles: dict[str, DriverProfile]) -> None:
        """Replace the stored driver profiles."""
        self._drivers = copy.deepcopy(profiles)

    async def load_vehicle_profiles(self) -> dict[str, VehicleProfile]:
        """Load all stored vehicle profiles."""
        return copy.deepcopy(self._vehicles)

    async def save_vehicle_profiles(self, profiles: dict[str, VehicleProfile]) -> None:
        """Replace the stored vehicle profiles."""
        self._vehicles = copy.deepcopy(profiles)
