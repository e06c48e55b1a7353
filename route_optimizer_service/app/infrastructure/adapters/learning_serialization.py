"""JSON conversion of learned state.

Converts historical routes and profiles to JSON-compatible dictionaries and
back. Timestamps are stored as ISO 8601 strings.
"""

from dataclasses import asdict
from datetime import datetime
from typing import Any

from domain.entities import (
    DriverProfile,
    DrivingBehavior,
    HistoricalPerformance,
    LearningStats,
    OptimizationWeights,
    PerformanceMetrics,
    RiskProfile,
    VehicleProfile,
    VehicleState,
)
from domain.value_objects import (
    AccuracyMetrics,
    ActualResult,
    HistoricalRoute,
    PatternKeys,
    PredictionSnapshot,
    RouteFeatures,
    SeasonalAdjustments,
    TechnicalSpecs,
    VehicleRestrictions,
    VehicleStateUpdate,
)


def to_json_compatible(value: Any) -> Any:
    """Convert a dataclass tree into JSON-compatible values.

    Args:
        value: Dataclass instance, container or scalar

    Returns:
        Value made of dicts, lists, strings, numbers, booleans and None
    """
    if hasattr(value, "__dataclass_fields__"):
        value = asdict(value)
    if isinstance(value, dict):
        return {str(key): to_json_compatible(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_compatible(item) for item in value]
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def historical_route_to_dict(route: HistoricalRoute) -> dict[str, Any]:
    """Convert a historical route to a dictionary."""
    return to_json_compatible(route)


def historical_route_from_dict(data: dict[str, Any]) -> HistoricalRoute:
    """Rebuild a historical route from a dictionary.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a value is invalid
    """
    actual = dict(data["actual"])
    vehicle_state = actual.pop("vehicle_state", None)
    if vehicle_state is not None:
        aux = vehicle_state.get("aux_equipment")
        vehicle_state = VehicleStateUpdate(
            **{**vehicle_state, "aux_equipment": tuple(aux) if aux is not None else None}
        )
    actual["deviation_reasons"] = tuple(actual.get("deviation_reasons", ()))
    actual["issues_encountered"] = tuple(actual.get("issues_encountered", ()))

    prediction = dict(data["prediction"])
    prediction["key_factors"] = tuple(prediction.get("key_factors", ()))

    return HistoricalRoute(
        route_id=data["route_id"],
        recorded_at=datetime.fromisoformat(data["recorded_at"]),
        features=RouteFeatures(**data["features"]),
        prediction=PredictionSnapshot(**prediction),
        actual=ActualResult(**actual, vehicle_state=vehicle_state),
        accuracy=AccuracyMetrics(**data["accuracy"]),
        patterns=PatternKeys(**data["patterns"]),
    )


def driver_profile_to_dict(profile: DriverProfile) -> dict[str, Any]:
    """Convert a driver profile to a dictionary."""
    return to_json_compatible(profile)


def driver_profile_from_dict(data: dict[str, Any]) -> DriverProfile:
    """Rebuild a driver profile from a dictionary.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a value is invalid
    """
    stats = dict(data.get("learning_stats", {}))
    stats["last_learning_update"] = _parse_datetime(stats.get("last_learning_update"))

    return DriverProfile(
        driver_id=data["driver_id"],
        created_at=datetime.fromisoformat(data["created_at"]),
        last_updated=datetime.fromisoformat(data["last_updated"]),
        total_routes_completed=data.get("total_routes_completed", 0),
        experience_years=data.get("experience_years"),
        behavior=DrivingBehavior(**data.get("behavior", {})),
        performance=PerformanceMetrics(**data.get("performance", {})),
        weights=OptimizationWeights(**data.get("weights", {})),
        risk=RiskProfile(**data.get("risk", {})),
        vehicle_history=dict(data.get("vehicle_history", {})),
        learning_stats=LearningStats(**stats),
    )


def vehicle_profile_to_dict(profile: VehicleProfile) -> dict[str, Any]:
    """Convert a vehicle profile to a dictionary."""
    return to_json_compatible(profile)


def vehicle_profile_from_dict(data: dict[str, Any]) -> VehicleProfile:
    """Rebuild a vehicle profile from a dictionary.

    Raises:
        KeyError: If a required field is missing
        ValueError: If a value is invalid
    """
    return VehicleProfile(
        vehicle_id=data["vehicle_id"],
        vehicle_type=data["vehicle_type"],
        created_at=datetime.fromisoformat(data["created_at"]),
        last_updated=datetime.fromisoformat(data["last_updated"]),
        technical_specs=TechnicalSpecs(**data["technical_specs"]),
        current_state=VehicleState(**data.get("current_state", {})),
        restrictions=VehicleRestrictions(**data.get("restrictions", {})),
        seasonal=SeasonalAdjustments(**data.get("seasonal", {})),
        performance=HistoricalPerformance(**data.get("performance", {})),
        optimization_potential=data.get("optimization_potential", 0.15),
        name=data.get("name"),
        license_plate=data.get("license_plate"),
    )
