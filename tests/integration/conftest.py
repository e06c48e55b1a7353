"""Pytest fixtures for integration tests.

This module provides fixtures for testing the Flask API against a real
route optimization service backed by temporary file storage.
"""

import tempfile
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import patch

import pytest

from application.services import RouteOptimizationService
from domain.value_objects import LearningConfig
from infrastructure.adapters import FileLearningStorage, MemoryPredictionLedger


@pytest.fixture
def temp_data_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for learned state."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def route_service(temp_data_dir: Path, clock: Any) -> RouteOptimizationService:
    """Create a RouteOptimizationService with file storage and a manual clock."""
    return RouteOptimizationService(
        ledger=MemoryPredictionLedger(),
        clock=clock,
        storage=FileLearningStorage(temp_data_dir),
        config=LearningConfig(baseline_jitter=0.0),
    )


@pytest.fixture
def flask_app(route_service: RouteOptimizationService, temp_data_dir: Path) -> Any:
    """Create a Flask test app with the test service.

    This fixture patches the global route_service in the server module.
    """
    # Patch the data path environment variable before importing server
    with patch.dict('os.environ', {
        'DATA_PERSISTENCE_PATH': str(temp_data_dir),
    }):
        import infrastructure.api.server as server_module

        # Patch the global route_service
        with patch.object(server_module, 'route_service', route_service):
            app = server_module.app
            app.config['TESTING'] = True
            yield app


@pytest.fixture
def client(flask_app: Any) -> Any:
    """Create a Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def sample_route_request() -> Dict[str, Any]:
    """Sample optimization request payload."""
    return {
        "distance": 450.0,
        "traffic": {"congestion": 0.4, "estimated_delay_minutes": 10},
        "weather": {"condition": "clear", "driving_score": 0.9},
        "fuel_price": 1.8,
        "driver_id": "driver_1",
        "route_type": "highway",
        "waypoints": [
            {"lat": 48.8566, "lng": 2.3522, "type": "start"},
            {"lat": 45.7640, "lng": 4.8357, "type": "end"},
        ],
    }


@pytest.fixture
def sample_actual_result() -> Dict[str, Any]:
    """Sample actual result payload."""
    return {
        "actual_savings_percent": 21.0,
        "actual_distance": 360.0,
        "actual_duration": 4.6,
        "actual_fuel_consumed": 27.0,
        "driver_satisfaction": 4.5,
        "route_followed": True,
        "arrival_delay_minutes": 5,
    }
