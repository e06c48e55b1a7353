"""Vehicle Profile entity.

Per-vehicle aggregate of static specs, dynamic state and learned consumption.
"""

from dataclasses import dataclass, field
from datetime import datetime

from domain.value_objects import (
    SeasonalAdjustments,
    TechnicalSpecs,
    VehicleRestrictions,
    VehicleStateUpdate,
)


@dataclass
class VehicleState:
    """Dynamic state of a vehicle.

    Attributes:
        fuel_level: Tank (or battery) level as a fraction (0.0-1.0)
        current_load: Current payload in kg
        maintenance_status: excellent, good, fair, needs_service or critical
        climate_control_on: Whether air conditioning or heating is running
        aux_equipment: Auxiliary equipment currently running
    """

    fuel_level: float = 1.0
    current_load: float = 0.0
    maintenance_status: str = "good"
    climate_control_on: bool = False
    aux_equipment: list[str] = field(default_factory=list)

    def merge(self, update: VehicleStateUpdate) -> None:
        """Merge the fields that are set in an update."""
        if update.fuel_level is not None:
            self.fuel_level = update.fuel_level
        if update.current_load is not None:
            self.current_load = update.current_load
        if update.maintenance_status is not None:
            self.maintenance_status = update.maintenance_status
        if update.climate_control_on is not None:
            self.climate_control_on = update.climate_control_on
        if update.aux_equipment is not None:
            self.aux_equipment = list(update.aux_equipment)


@dataclass
class HistoricalPerformance:
    """Real-world performance learned from completed routes.

    Attributes:
        real_world_consumption: EMA of observed consumption per 100 km
        total_distance_km: Distance driven across reported routes
        total_fuel_consumed: Fuel consumed across reported routes
        total_cost: Cost across reported routes
        total_routes: Number of reported routes
        data_completeness: How much performance data is known (0.0-1.0)
    """

    real_world_consumption: float | None = None
    total_distance_km: float = 0.0
    total_fuel_consumed: float = 0.0
    total_cost: float = 0.0
    total_routes: int = 0
    data_completeness: float = 0.0

    @property
    def average_cost_per_km(self) -> float | None:
        """Mean cost per km, when any cost was reported."""
        if self.total_distance_km <= 0 or self.total_cost <= 0:
            return None
        return self.total_cost / self.total_distance_km


@dataclass
class VehicleProfile:
    """Represents a vehicle and what has been learned about it.

    Attributes:
        vehicle_id: Vehicle identifier
        vehicle_type: One of standard, van, truck, electric, motorcycle
        created_at: When the profile was created
        last_updated: When the profile was last updated
        technical_specs: Static specification
        current_state: Dynamic state
        restrictions: Legal limits
        seasonal: Seasonal consumption increases
        performance: Learned real-world performance
        optimization_potential: Expected optimization headroom (0.0-0.4)
        name: Display name
        license_plate: License plate
    """

    vehicle_id: str
    vehicle_type: str
    created_at: datetime
    last_updated: datetime
    technical_specs: TechnicalSpecs
    current_state: VehicleState = field(default_factory=VehicleState)
    restrictions: VehicleRestrictions = field(default_factory=VehicleRestrictions)
    seasonal: SeasonalAdjustments = field(default_factory=SeasonalAdjustments)
    performance: HistoricalPerformance = field(default_factory=HistoricalPerformance)
    optimization_potential: float = 0.15
    name: str | None = None
    license_plate: str | None = None

    def __post_init__(self) -> None:
        """Validate vehicle profile values."""
        if not self.vehicle_id:
            raise ValueError("vehicle_id cannot be empty")
        if self.vehicle_type != self.technical_specs.vehicle_type:
            raise ValueError(
                f"vehicle_type {self.vehicle_type} does not match technical specs "
                f"({self.technical_specs.vehicle_type})"
            )

    @property
    def gross_weight_tonnes(self) -> float:
        """Empty weight plus current load, in tonnes."""
        return (self.technical_specs.empty_weight + self.current_state.current_load) / 1000.0

    @property
    def current_fuel(self) -> float:
        """Fuel (or energy) currently available."""
        return self.current_state.fuel_level * self.technical_specs.tank_capacity
