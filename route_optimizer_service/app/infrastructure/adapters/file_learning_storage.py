"""File-based learning storage adapter.

Infrastructure adapter that implements ILearningStorage using JSON files.
"""

import json
import logging
from pathlib import Path
from typing import Any, Callable

from domain.entities import DriverProfile, VehicleProfile
from domain.interfaces import ILearningStorage
from domain.value_objects import HistoricalRoute

from .learning_serialization import (
    driver_profile_from_dict,
    driver_profile_to_dict,
    historical_route_from_dict,
    historical_route_to_dict,
    vehicle_profile_from_dict,
    vehicle_profile_to_dict,
)

_LOGGER = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a storage operation fails."""

    pass


class FileLearningStorage(ILearningStorage):
    """File-based implementation of learning storage.

    This adapter stores each kind of learned state in its own JSON file.
    The directory is created on the first save.
    """

    HISTORICAL_ROUTES_FILE = "historical_routes.json"
    DRIVER_PROFILES_FILE = "driver_profiles.json"
    VEHICLE_PROFILES_FILE = "vehicle_profiles.json"

    def __init__(self, base_path: str | Path) -> None:
        """Initialize file-based storage.

        Args:
            base_path: Directory path for storing learned state
        """
        self._base_path = Path(base_path)

    @property
    def base_path(self) -> Path:
        """Directory holding the JSON files."""
        return self._base_path

    async def load_historical_routes(self) -> list[HistoricalRoute]:
        """Load all persisted historical routes.

        Returns:
            Historical routes, oldest first (empty if none were saved)
        """
        data = self._read(self.HISTORICAL_ROUTES_FILE, default=[])
        try:
            routes = [historical_route_from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to decode historical routes: {e}") from e
        _LOGGER.debug("Loaded %d historical routes", len(routes))
        return routes

    async def save_historical_routes(self, routes: list[HistoricalRoute]) -> None:
        """Persist historical routes, replacing previously saved ones.

        Args:
            routes: Historical routes, oldest first
        """
        self._write(
            self.HISTORICAL_ROUTES_FILE,
            [historical_route_to_dict(route) for route in routes],
        )
        _LOGGER.debug("Saved %d historical routes", len(routes))

    async def load_driver_profiles(self) -> dict[str, DriverProfile]:
        """Load all persisted driver profiles.

        Returns:
            Mapping of driver id to profile
        """
        return self._load_profiles(self.DRIVER_PROFILES_FILE, driver_profile_from_dict)

    async def save_driver_profiles(self, profiles: dict[str, DriverProfile]) -> None:
        """Persist driver profiles, replacing previously saved ones.

        Args:
            profiles: Mapping of driver id to profile
        """
        self._write(
            self.DRIVER_PROFILES_FILE,
            {driver_id: driver_profile_to_dict(p) for driver_id, p in profiles.items()},
        )
        _LOGGER.debug("Saved %d driver profiles", len(profiles))

    async def load_vehicle_profiles(self) -> dict[str, VehicleProfile]:
        """Load all persisted vehicle profiles.

        Returns:
            Mapping of vehicle id to profile
        """
        return self._load_profiles(self.VEHICLE_PROFILES_FILE, vehicle_profile_from_dict)

    async def save_vehicle_profiles(self, profiles: dict[str, VehicleProfile]) -> None:
        """Persist vehicle profiles, replacing previously saved ones.

        Args:
            profiles: Mapping of vehicle id to profile
        """
        self._write(
            self.VEHICLE_PROFILES_FILE,
            {vehicle_id: vehicle_profile_to_dict(p) for vehicle_id, p in profiles.items()},
        )
        _LOGGER.debug("Saved %d vehicle profiles", len(profiles))

    def _load_profiles(self, file_name: str, decode: Callable[[dict], Any]) -> dict[str, Any]:
        """Load a JSON object of profiles keyed by id."""
        data = self._read(file_name, default={})
        try:
            profiles = {key: decode(item) for key, item in data.items()}
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to decode {file_name}: {e}") from e
        _LOGGER.debug("Loaded %d profiles from %s", len(profiles), file_name)
        return profiles

    def _read(self, file_name: str, default: Any) -> Any:
        """Read a JSON file, returning a default when it does not exist."""
        path = self._base_path / file_name
        if not path.exists():
            return default

        try:
            with open(path) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def _write(self, file_name: str, data: Any) -> None:
        """Write a JSON file through a temporary file."""
        path = self._base_path / file_name
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            tmp_path.replace(path)
        except (OSError, TypeError) as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
