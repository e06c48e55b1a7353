"""Learning storage interface.

Contract for persisting learned state: historical routes and profiles.
"""

from abc import ABC, abstractmethod

from domain.entities import DriverProfile, VehicleProfile
from domain.value_objects import HistoricalRoute


class ILearningStorage(ABC):
    """Contract for learned-state persistence operations.

    Callers treat persistence as best-effort: failures are logged by the
    caller and never roll back in-memory state.
    """

    @abstractmethod
    async def load_historical_routes(self) -> list[HistoricalRoute]:
        """Load all persisted historical routes.

        Returns:
            Historical routes, oldest first (empty if none were saved)

        Raises:
            StorageError: If loading fails
        """
        pass

    @abstractmethod
    async def save_historical_routes(self, routes: list[HistoricalRoute]) -> None:
        """Persist historical routes, replacing previously saved ones.

        Args:
            routes: Historical routes, oldest first

        Raises:
            StorageError: If saving fails
        """
        pass

    @abstractmethod
    async def load_driver_profiles(self) -> dict[str, DriverProfile]:
        """Load all persisted driver profiles.

        Returns:
            Mapping of driver id to profile

        Raises:
            StorageError: If loading fails
        """
        pass

    @abstractmethod
    async def save_driver_profiles(self, profiles: dict[str, DriverProfile]) -> None:
        """Persist driver profiles, replacing previously saved ones.

        Args:
            profiles: Mapping of driver id to profile

        Raises:
            StorageError: If saving fails
        """
        pass

    @abstractmethod
    async def load_vehicle_profiles(self) -> dict[str, VehicleProfile]:
        """Load all persisted vehicle profiles.

        Returns:
            Mapping of vehicle id to profile

        Raises:
            StorageError: If loading fails
        """
        pass

    @abstractmethod
    async def save_vehicle_profiles(self, profiles: dict[str, VehicleProfile]) -> None:
        """Persist vehicle profiles, replacing previously saved ones.

        Args:
            profiles: Mapping of vehicle id to profile

        Raises:
            StorageError: If saving fails
        """
        pass
