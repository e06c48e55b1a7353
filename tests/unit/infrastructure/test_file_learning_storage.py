"""Unit tests for FileLearningStorage."""

import json
from datetime import datetime

import pytest
from domain.services import (
    BaselineEstimator,
    DriverPersonalizationService,
    HistoricalRouteLearner,
    VehicleProfileOptimizer,
)
from domain.value_objects import (
    ActualResult,
    LearningConfig,
    PerformanceData,
    RouteRequest,
    VehicleData,
    VehicleStateUpdate,
)
from infrastructure.adapters import FileLearningStorage, StorageError
from infrastructure.adapters.learning_serialization import to_json_compatible

START = datetime(2024, 4, 16, 9, 30)


@pytest.fixture
def storage(tmp_path) -> FileLearningStorage:
    """Storage writing below a not yet existing directory."""
    return FileLearningStorage(tmp_path / "learning")


@pytest.fixture
def historical_route():
    """A recorded route with every optional part filled in."""
    learner = HistoricalRouteLearner()
    request = RouteRequest(distance=320.0, vehicle_type="van", driver_experience_years=4)
    prediction = BaselineEstimator(LearningConfig(baseline_jitter=0.0)).estimate(
        320.0, timestamp=START
    )
    actual = ActualResult(
        actual_savings_percent=19.0,
        actual_distance=262.0,
        route_followed=False,
        deviation_reasons=("closed road",),
        vehicle_state=VehicleStateUpdate(fuel_level=0.4, aux_equipment=("fridge",)),
    )
    return learner.record_outcome("route_abc", prediction, actual, request, START)


class TestHistoricalRoutes:
    """Tests for persisting historical routes."""

    @pytest.mark.asyncio
    async def test_missing_file_loads_empty(self, storage: FileLearningStorage) -> None:
        """Nothing saved yet means empty state."""
        assert await storage.load_historical_routes() == []
        assert await storage.load_driver_profiles() == {}
        assert await storage.load_vehicle_profiles() == {}

    @pytest.mark.asyncio
    async def test_save_creates_directory(
        self, storage: FileLearningStorage, historical_route
    ) -> None:
        """The base directory is created on first save."""
        await storage.save_historical_routes([historical_route])

        path = storage.base_path / FileLearningStorage.HISTORICAL_ROUTES_FILE
        assert path.exists()
        data = json.loads(path.read_text())
        assert data[0]["route_id"] == "route_abc"
        assert data[0]["recorded_at"] == START.isoformat()

    @pytest.mark.asyncio
    async def test_round_trip(self, storage: FileLearningStorage, historical_route) -> None:
        """Loaded routes equal the saved ones."""
        await storage.save_historical_routes([historical_route])

        loaded = await storage.load_historical_routes()

        assert loaded == [historical_route]
        assert loaded[0].actual.vehicle_state.aux_equipment == ("fridge",)

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, storage: FileLearningStorage) -> None:
        """Unreadable JSON is reported as a storage error."""
        storage.base_path.mkdir(parents=True)
        (storage.base_path / FileLearningStorage.HISTORICAL_ROUTES_FILE).write_text("{not json")

        with pytest.raises(StorageError, match="Failed to read"):
            await storage.load_historical_routes()

    @pytest.mark.asyncio
    async def test_invalid_record_raises(self, storage: FileLearningStorage) -> None:
        """Records missing fields are reported as a storage error."""
        storage.base_path.mkdir(parents=True)
        (storage.base_path / FileLearningStorage.HISTORICAL_ROUTES_FILE).write_text(
            json.dumps([{"route_id": "route_1"}])
        )

        with pytest.raises(StorageError, match="Failed to decode"):
            await storage.load_historical_routes()


class TestProfiles:
    """Tests for persisting driver and vehicle profiles."""

    @pytest.mark.asyncio
    async def test_driver_profiles_round_trip(self, storage: FileLearningStorage) -> None:
        """Driver profiles survive a save and load."""
        service = DriverPersonalizationService()
        prediction = BaselineEstimator(LearningConfig(baseline_jitter=0.0)).estimate(
            100.0, timestamp=START
        )
        service.update_from_outcome(
            "driver_1",
            RouteRequest(distance=100.0, vehicle_type="van"),
            prediction,
            ActualResult(actual_savings_percent=18.0, driver_satisfaction=5.0),
            START,
        )

        await storage.save_driver_profiles(service.profiles())
        loaded = await storage.load_driver_profiles()

        assert loaded == service.profiles()
        assert loaded["driver_1"].learning_stats.last_learning_update == START

    @pytest.mark.asyncio
    async def test_vehicle_profiles_round_trip(self, storage: FileLearningStorage) -> None:
        """Vehicle profiles survive a save and load."""
        optimizer = VehicleProfileOptimizer()
        optimizer.get_or_create(
            "truck_1",
            VehicleData(
                vehicle_type="truck",
                name="Long hauler",
                state=VehicleStateUpdate(current_load=12000.0, aux_equipment=("crane",)),
            ),
            PerformanceData(distance_km=500.0, fuel_consumed=150.0, cost=400.0),
            START,
        )

        await storage.save_vehicle_profiles(optimizer.profiles())
        loaded = await storage.load_vehicle_profiles()

        assert loaded == optimizer.profiles()
        assert loaded["truck_1"].restrictions.speed_cap_kmh == 90.0

    @pytest.mark.asyncio
    async def test_invalid_profile_raises(self, storage: FileLearningStorage) -> None:
        """Profiles with unknown fields are reported as a storage error."""
        storage.base_path.mkdir(parents=True)
        (storage.base_path / FileLearningStorage.DRIVER_PROFILES_FILE).write_text(
            json.dumps({"driver_1": {"driver_id": "driver_1", "behavior": {"unknown": 1}}})
        )

        with pytest.raises(StorageError, match="driver_profiles.json"):
            await storage.load_driver_profiles()


class TestToJsonCompatible:
    """Tests for the JSON conversion helper."""

    def test_nested_values(self) -> None:
        """Dataclasses, tuples and datetimes become JSON values."""
        value = {"when": START, "items": (1, 2), "state": VehicleStateUpdate(fuel_level=0.5)}

        converted = to_json_compatible(value)

        assert converted["when"] == START.isoformat()
        assert converted["items"] == [1, 2]
        assert converted["state"]["fuel_level"] == 0.5
        json.dumps(converted)
