"""Actual result value objects.

Immutable data structures for outcomes reported after a route was driven.
"""

from dataclasses import dataclass

MAINTENANCE_STATUSES = ("excellent", "good", "fair", "needs_service", "critical")


@dataclass(frozen=True)
class VehicleStateUpdate:
    """Partial update of a vehicle's current state.

    Only the fields that are set are merged into the profile.

    Attributes:
        fuel_level: Tank (or battery) level as a fraction (0.0-1.0)
        current_load: Current load in kg
        maintenance_status: One of excellent, good, fair, needs_service, critical
        climate_control_on: Whether air conditioning or heating is running
        aux_equipment: Auxiliary equipment currently running
    """

    fuel_level: float | None = None
    current_load: float | None = None
    maintenance_status: str | None = None
    climate_control_on: bool | None = None
    aux_equipment: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        """Validate state values."""
        if self.fuel_level is not None and not 0.0 <= self.fuel_level <= 1.0:
            raise ValueError(f"fuel_level must be between 0.0 and 1.0, got {self.fuel_level}")
        if self.current_load is not None and self.current_load < 0:
            raise ValueError(f"current_load must be non-negative, got {self.current_load}")
        if (
            self.maintenance_status is not None
            and self.maintenance_status not in MAINTENANCE_STATUSES
        ):
            raise ValueError(
                f"maintenance_status must be one of {', '.join(MAINTENANCE_STATUSES)}, "
                f"got {self.maintenance_status}"
            )


@dataclass(frozen=True)
class ActualResult:
    """Outcome reported for a previously predicted route.

    Attributes:
        actual_savings_percent: Savings actually achieved, in percent (0-100)
        actual_distance: Distance actually driven in km
        actual_duration: Actual driving time in hours
        actual_fuel_consumed: Fuel (or energy) actually consumed
        actual_cost: Actual cost of the route
        route_followed: Whether the driver followed the recommended route
        driver_satisfaction: Driver rating of the route (1-5)
        completed_successfully: Whether the route was completed
        deviation_reasons: Reasons given for leaving the recommended route
        weather_actual: Weather actually encountered
        traffic_actual: Congestion actually encountered (0.0-1.0)
        issues_encountered: Free-form issues reported by the driver
        arrival_delay_minutes: Minutes late (positive) or early (negative)
        vehicle_state: Vehicle state observed at the end of the route
    """

    actual_savings_percent: float
    actual_distance: float | None = None
    actual_duration: float | None = None
    actual_fuel_consumed: float | None = None
    actual_cost: float | None = None
    route_followed: bool = True
    driver_satisfaction: float | None = None
    completed_successfully: bool = True
    deviation_reasons: tuple[str, ...] = ()
    weather_actual: str | None = None
    traffic_actual: float | None = None
    issues_encountered: tuple[str, ...] = ()
    arrival_delay_minutes: float | None = None
    vehicle_state: VehicleStateUpdate | None = None

    def __post_init__(self) -> None:
        """Validate reported values."""
        if not 0.0 <= self.actual_savings_percent <= 100.0:
            raise ValueError(
                f"actual_savings_percent must be between 0 and 100, "
                f"got {self.actual_savings_percent}"
            )
        if self.actual_distance is not None and self.actual_distance <= 0:
            raise ValueError(f"actual_distance must be positive, got {self.actual_distance}")
        if self.actual_duration is not None and self.actual_duration <= 0:
            raise ValueError(f"actual_duration must be positive, got {self.actual_duration}")
        if self.actual_fuel_consumed is not None and self.actual_fuel_consumed < 0:
            raise ValueError(
                f"actual_fuel_consumed must be non-negative, got {self.actual_fuel_consumed}"
            )
        if self.actual_cost is not None and self.actual_cost < 0:
            raise ValueError(f"actual_cost must be non-negative, got {self.actual_cost}")
        if self.driver_satisfaction is not None and not 1.0 <= self.driver_satisfaction <= 5.0:
            raise ValueError(
                f"driver_satisfaction must be between 1 and 5, got {self.driver_satisfaction}"
            )
        if self.traffic_actual is not None and not 0.0 <= self.traffic_actual <= 1.0:
            raise ValueError(
                f"traffic_actual must be between 0.0 and 1.0, got {self.traffic_actual}"
            )
