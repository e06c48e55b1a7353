"""Flask HTTP API Server.

HTTP API for route optimization clients.
Provides endpoints for optimization, outcome reporting and learning insights.
"""

import asyncio
import logging
import os
import sys
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Callable

from flask import Flask, Response, jsonify, request

# Add app directory to Python path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from application.services import RouteOptimizationService
from domain.value_objects import (
    ActualResult,
    LearningConfig,
    PerformanceData,
    RouteConstraints,
    RouteRequest,
    SeasonalAdjustments,
    TechnicalSpecs,
    TrafficData,
    VehicleData,
    VehicleRestrictions,
    VehicleStateUpdate,
    Waypoint,
    WeatherData,
)
from infrastructure.adapters import FileLearningStorage, MemoryPredictionLedger, SystemClock
from infrastructure.adapters.learning_serialization import to_json_compatible

# Configure logging
log_level = os.getenv("LOG_LEVEL", "info").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
_LOGGER = logging.getLogger(__name__)

# Create Flask app
app = Flask(__name__)

# Initialize services
data_path = Path(os.getenv("DATA_PERSISTENCE_PATH", "/data/route_optimizer"))
config = LearningConfig(
    local_blend_weight=float(os.getenv("ROUTE_LOCAL_BLEND_WEIGHT", "0.7")),
    similarity_threshold=float(os.getenv("ROUTE_SIMILARITY_THRESHOLD", "0.6")),
)
storage = FileLearningStorage(data_path)
route_service = RouteOptimizationService(
    ledger=MemoryPredictionLedger(),
    clock=SystemClock(),
    storage=storage,
    config=config,
)
asyncio.run(route_service.initialize())


def async_route(f: Callable) -> Callable:
    """Decorator to run async functions in Flask routes.

    Uses asyncio.run() for proper event loop lifecycle management.
    """
    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))
    return wrapper


def _optional_float(data: dict, key: str) -> float | None:
    value = data.get(key)
    return float(value) if value is not None else None


def _parse_route_request(data: dict) -> RouteRequest:
    """Build a RouteRequest from a JSON body.

    Raises:
        KeyError: If distance is missing
        ValueError: If a value is invalid
    """
    traffic = None
    if data.get("traffic") is not None:
        traffic_raw = data["traffic"]
        traffic = TrafficData(
            congestion=float(traffic_raw.get("congestion", 0.5)),
            estimated_delay_minutes=float(traffic_raw.get("estimated_delay_minutes", 0.0)),
        )

    weather = None
    if data.get("weather") is not None:
        weather_raw = data["weather"]
        weather = WeatherData(
            condition=str(weather_raw.get("condition", "clear")),
            driving_score=float(weather_raw.get("driving_score", 1.0)),
            temperature=_optional_float(weather_raw, "temperature"),
        )

    constraints = None
    if data.get("constraints") is not None:
        constraints_raw = data["constraints"]
        constraints = RouteConstraints(
            max_weight_tonnes=_optional_float(constraints_raw, "max_weight_tonnes"),
            max_height_m=_optional_float(constraints_raw, "max_height_m"),
            speed_limit_kmh=_optional_float(constraints_raw, "speed_limit_kmh"),
        )

    departure_time = None
    if data.get("departure_time"):
        departure_time = datetime.fromisoformat(data["departure_time"])

    return RouteRequest(
        distance=float(data["distance"]),
        traffic=traffic,
        weather=weather,
        fuel_price=_optional_float(data, "fuel_price"),
        driver_id=data.get("driver_id"),
        vehicle_id=data.get("vehicle_id"),
        vehicle_type=data.get("vehicle_type"),
        driver_experience_years=_optional_float(data, "driver_experience_years"),
        departure_time=departure_time,
        route_type=data.get("route_type"),
        highway_share=_optional_float(data, "highway_share"),
        constraints=constraints,
        waypoints=tuple(
            Waypoint(lat=float(wp["lat"]), lng=float(wp["lng"]), type=wp.get("type", "stop"))
            for wp in data.get("waypoints", [])
        ),
    )


def _parse_vehicle_state(data: dict | None) -> VehicleStateUpdate | None:
    if data is None:
        return None
    aux = data.get("aux_equipment")
    climate = data.get("climate_control_on")
    return VehicleStateUpdate(
        fuel_level=_optional_float(data, "fuel_level"),
        current_load=_optional_float(data, "current_load"),
        maintenance_status=data.get("maintenance_status"),
        climate_control_on=bool(climate) if climate is not None else None,
        aux_equipment=tuple(aux) if aux is not None else None,
    )


def _parse_actual_result(data: dict) -> ActualResult:
    """Build an ActualResult from a JSON body.

    Raises:
        KeyError: If actual_savings_percent is missing
        ValueError: If a value is invalid
    """
    return ActualResult(
        actual_savings_percent=float(data["actual_savings_percent"]),
        actual_distance=_optional_float(data, "actual_distance"),
        actual_duration=_optional_float(data, "actual_duration"),
        actual_fuel_consumed=_optional_float(data, "actual_fuel_consumed"),
        actual_cost=_optional_float(data, "actual_cost"),
        route_followed=bool(data.get("route_followed", True)),
        driver_satisfaction=_optional_float(data, "driver_satisfaction"),
        completed_successfully=bool(data.get("completed_successfully", True)),
        deviation_reasons=tuple(data.get("deviation_reasons", [])),
        weather_actual=data.get("weather_actual"),
        traffic_actual=_optional_float(data, "traffic_actual"),
        issues_encountered=tuple(data.get("issues_encountered", [])),
        arrival_delay_minutes=_optional_float(data, "arrival_delay_minutes"),
        vehicle_state=_parse_vehicle_state(data.get("vehicle_state")),
    )


def _parse_vehicle_update(data: dict) -> tuple[VehicleData, PerformanceData | None]:
    """Build vehicle data and optional performance from a JSON body.

    Raises:
        ValueError: If a value is invalid
    """
    vehicle_data = VehicleData(
        vehicle_type=data.get("vehicle_type"),
        name=data.get("name"),
        license_plate=data.get("license_plate"),
        state=_parse_vehicle_state(data.get("state")),
        specs=TechnicalSpecs(**data["specs"]) if data.get("specs") else None,
        restrictions=(
            VehicleRestrictions(**data["restrictions"]) if data.get("restrictions") else None
        ),
        seasonal=SeasonalAdjustments(**data["seasonal"]) if data.get("seasonal") else None,
    )

    performance = None
    if data.get("performance"):
        performance_raw = data["performance"]
        performance = PerformanceData(
            distance_km=float(performance_raw["distance_km"]),
            fuel_consumed=float(performance_raw["fuel_consumed"]),
            duration_hours=_optional_float(performance_raw, "duration_hours"),
            cost=_optional_float(performance_raw, "cost"),
        )
    return vehicle_data, performance


@app.before_request
def sweep_pending_predictions() -> None:
    """Expire stale pending predictions once the sweep interval has elapsed."""
    try:
        asyncio.run(route_service.sweep_if_due())
    except Exception:
        _LOGGER.exception("Error sweeping pending predictions")


@app.route("/health", methods=["GET"])
def health_check() -> Response:
    """Health check endpoint."""
    return jsonify({
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
    })


@app.route("/api/v1/status", methods=["GET"])
@async_route
async def get_status() -> Response:
    """Get route optimization service status."""
    try:
        status = await route_service.get_status()
        return jsonify(status)
    except Exception as e:
        _LOGGER.exception("Error getting status")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/optimize", methods=["POST"])
@async_route
async def optimize_route() -> Response:
    """Estimate the optimization of a route.

    Request body:
    {
        "distance": float (km),
        "traffic": {"congestion": float, "estimated_delay_minutes": float} (optional),
        "weather": {"condition": str, "driving_score": float} (optional),
        "fuel_price": float (optional),
        "driver_id": str (optional),
        "vehicle_id": str (optional),
        "vehicle_type": str (optional),
        "departure_time": str (ISO format, optional),
        "route_type": "highway" | "city" | "mixed" (optional),
        "constraints": {"max_weight_tonnes", "max_height_m", "speed_limit_kmh"} (optional),
        "waypoints": [{"lat": float, "lng": float, "type": str}, ...] (optional)
    }
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        route_request = _parse_route_request(data)
        result = await route_service.optimize(route_request)
        return jsonify(to_json_compatible(result))

    except KeyError as e:
        _LOGGER.warning("Missing field in optimization request: %s", e)
        return jsonify({"error": f"Missing required field: {e}"}), 400
    except (TypeError, ValueError) as e:
        _LOGGER.warning("Invalid optimization request: %s", e)
        return jsonify({"error": f"Invalid data: {e}"}), 400
    except Exception as e:
        _LOGGER.exception("Error optimizing route")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/routes/<tracking_id>/actual", methods=["POST"])
@async_route
async def report_actual_result(tracking_id: str) -> Response:
    """Report the actual outcome of a predicted route.

    Request body:
    {
        "actual_savings_percent": float,
        "actual_distance": float (optional),
        "actual_duration": float (hours, optional),
        "actual_fuel_consumed": float (optional),
        "driver_satisfaction": float (1-5, optional),
        "route_followed": bool (optional),
        "vehicle_state": {...} (optional),
        "driver_id": str (optional),
        "vehicle_id": str (optional)
    }
    """
    try:
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        actual = _parse_actual_result(data)
        learned = await route_service.report_actual_result(
            tracking_id,
            actual,
            driver_id=data.get("driver_id"),
            vehicle_id=data.get("vehicle_id"),
        )
        if not learned:
            return jsonify({
                "success": False,
                "error": f"Unknown or expired tracking id: {tracking_id}",
            }), 404

        return jsonify({"success": True, "tracking_id": tracking_id})

    except KeyError as e:
        _LOGGER.warning("Missing field in actual result: %s", e)
        return jsonify({"error": f"Missing required field: {e}"}), 400
    except (TypeError, ValueError) as e:
        _LOGGER.warning("Invalid actual result: %s", e)
        return jsonify({"error": f"Invalid data: {e}"}), 400
    except Exception as e:
        _LOGGER.exception("Error reporting actual result")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/drivers/compare", methods=["GET"])
@async_route
async def compare_drivers() -> Response:
    """Compare two drivers given as driver_a and driver_b query parameters."""
    driver_a = request.args.get("driver_a")
    driver_b = request.args.get("driver_b")
    if not driver_a or not driver_b:
        return jsonify({"error": "driver_a and driver_b are required"}), 400

    try:
        comparison = await route_service.compare_drivers(driver_a, driver_b)
        if comparison is None:
            return jsonify({"error": "Driver not found"}), 404
        return jsonify(to_json_compatible(comparison))
    except Exception as e:
        _LOGGER.exception("Error comparing drivers")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/drivers/<driver_id>", methods=["GET"])
@async_route
async def get_driver_profile(driver_id: str) -> Response:
    """Get the learned profile of a driver."""
    try:
        profile = await route_service.get_driver_profile(driver_id)
        if profile is None:
            return jsonify({"error": "Driver not found"}), 404
        return jsonify(to_json_compatible(profile))
    except Exception as e:
        _LOGGER.exception("Error getting driver profile")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/drivers/<driver_id>/coaching", methods=["GET"])
@async_route
async def get_driver_coaching(driver_id: str) -> Response:
    """Get coaching insights for a driver."""
    try:
        insights = await route_service.get_driver_coaching_insights(driver_id)
        if insights is None:
            return jsonify({"error": "Not enough data for coaching insights"}), 404
        return jsonify(to_json_compatible(insights))
    except Exception as e:
        _LOGGER.exception("Error getting coaching insights")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/vehicles/<vehicle_id>", methods=["GET"])
@async_route
async def get_vehicle_profile(vehicle_id: str) -> Response:
    """Get the profile of a vehicle."""
    try:
        profile = await route_service.get_vehicle_profile(vehicle_id)
        if profile is None:
            return jsonify({"error": "Vehicle not found"}), 404
        return jsonify(to_json_compatible(profile))
    except Exception as e:
        _LOGGER.exception("Error getting vehicle profile")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/vehicles/<vehicle_id>", methods=["PUT"])
@async_route
async def update_vehicle_profile(vehicle_id: str) -> Response:
    """Create or update a vehicle profile.

    Request body:
    {
        "vehicle_type": str (used on creation, optional),
        "name": str (optional),
        "license_plate": str (optional),
        "state": {"fuel_level", "current_load", "maintenance_status", ...} (optional),
        "specs": {...} (optional),
        "restrictions": {...} (optional),
        "seasonal": {...} (optional),
        "performance": {"distance_km", "fuel_consumed", "duration_hours", "cost"} (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        vehicle_data, performance = _parse_vehicle_update(data)
        profile = await route_service.update_vehicle_profile(
            vehicle_id, vehicle_data, performance
        )
        return jsonify(to_json_compatible(profile))

    except KeyError as e:
        _LOGGER.warning("Missing field in vehicle update: %s", e)
        return jsonify({"error": f"Missing required field: {e}"}), 400
    except (TypeError, ValueError) as e:
        _LOGGER.warning("Invalid vehicle update: %s", e)
        return jsonify({"error": f"Invalid data: {e}"}), 400
    except Exception as e:
        _LOGGER.exception("Error updating vehicle profile")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/insights", methods=["GET"])
@async_route
async def get_learning_insights() -> Response:
    """Get learning metrics and insights."""
    try:
        insights = await route_service.get_learning_insights()
        return jsonify(to_json_compatible(insights))
    except Exception as e:
        _LOGGER.exception("Error getting learning insights")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/patterns", methods=["GET"])
@async_route
async def get_patterns() -> Response:
    """Get the historical pattern analysis."""
    try:
        analysis = await route_service.analyze_patterns()
        if analysis is None:
            return jsonify({
                "available": False,
                "message": (
                    f"Need more data for pattern analysis "
                    f"(minimum {route_service.config.min_pattern_corpus} routes)"
                ),
            })
        return jsonify({"available": True, "analysis": to_json_compatible(analysis)})
    except Exception as e:
        _LOGGER.exception("Error analyzing patterns")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/fleet/analytics", methods=["GET"])
@async_route
async def get_fleet_analytics() -> Response:
    """Get fleet-wide driver and vehicle analytics."""
    try:
        analytics = await route_service.get_fleet_analytics()
        return jsonify(to_json_compatible(analytics))
    except Exception as e:
        _LOGGER.exception("Error getting fleet analytics")
        return jsonify({"error": str(e)}), 500


@app.route("/api/v1/maintenance/cleanup", methods=["POST"])
@async_route
async def cleanup_pending_predictions() -> Response:
    """Remove expired pending predictions."""
    try:
        removed = await route_service.cleanup_pending_predictions()
        return jsonify({"success": True, "removed": removed})
    except Exception as e:
        _LOGGER.exception("Error cleaning up pending predictions")
        return jsonify({"error": str(e)}), 500


def main() -> None:
    """Main entry point for the server."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "5000"))

    _LOGGER.info("Starting Route Optimizer API server on %s:%d", host, port)
    _LOGGER.info("Learning data path: %s", data_path)

    # Single-threaded so each request runs its own event loop turn
    app.run(host=host, port=port, debug=False, threaded=False)


if __name__ == "__main__":
    main()
