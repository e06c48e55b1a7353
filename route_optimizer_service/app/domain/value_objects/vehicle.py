"""Vehicle value objects.

Immutable data structures for vehicle specifications and the results of
vehicle-specific optimization.
"""

from dataclasses import dataclass

from .actual_result import VehicleStateUpdate

VEHICLE_TYPES = ("standard", "van", "truck", "electric", "motorcycle")
WARNING_SEVERITIES = ("low", "medium", "high", "critical")

# Manufacturer figures per vehicle type. Consumption is per 100 km
# (liters, or kWh for electric), capacities in liters/kWh, weights in kg.
_TYPE_SPECS: dict[str, dict[str, float | str]] = {
    "standard": {
        "fuel_type": "diesel",
        "city_consumption": 7.5,
        "highway_consumption": 5.5,
        "combined_consumption": 6.3,
        "tank_capacity": 60.0,
        "reserve_capacity": 8.0,
        "max_load_capacity": 500.0,
        "empty_weight": 1400.0,
        "height_m": 1.5,
        "max_speed_kmh": 180.0,
        "cruise_speed_kmh": 90.0,
    },
    "van": {
        "fuel_type": "diesel",
        "city_consumption": 8.5,
        "highway_consumption": 6.8,
        "combined_consumption": 7.4,
        "tank_capacity": 80.0,
        "reserve_capacity": 10.0,
        "max_load_capacity": 1300.0,
        "empty_weight": 1900.0,
        "height_m": 2.5,
        "max_speed_kmh": 160.0,
        "cruise_speed_kmh": 85.0,
    },
    "truck": {
        "fuel_type": "diesel",
        "city_consumption": 35.0,
        "highway_consumption": 28.0,
        "combined_consumption": 32.0,
        "tank_capacity": 400.0,
        "reserve_capacity": 50.0,
        "max_load_capacity": 31500.0,
        "empty_weight": 8500.0,
        "height_m": 4.0,
        "max_speed_kmh": 90.0,
        "cruise_speed_kmh": 80.0,
    },
    "electric": {
        "fuel_type": "electric",
        "city_consumption": 14.7,
        "highway_consumption": 18.1,
        "combined_consumption": 16.1,
        "tank_capacity": 75.0,
        "reserve_capacity": 5.0,
        "max_load_capacity": 385.0,
        "empty_weight": 1847.0,
        "height_m": 1.44,
        "max_speed_kmh": 200.0,
        "cruise_speed_kmh": 95.0,
    },
    "motorcycle": {
        "fuel_type": "petrol",
        "city_consumption": 5.2,
        "highway_consumption": 4.1,
        "combined_consumption": 4.5,
        "tank_capacity": 18.0,
        "reserve_capacity": 3.0,
        "max_load_capacity": 266.0,
        "empty_weight": 249.0,
        "height_m": 1.3,
        "max_speed_kmh": 200.0,
        "cruise_speed_kmh": 95.0,
    },
}


def _validate_vehicle_type(vehicle_type: str) -> None:
    if vehicle_type not in VEHICLE_TYPES:
        raise ValueError(
            f"vehicle_type must be one of {', '.join(VEHICLE_TYPES)}, got {vehicle_type}"
        )


@dataclass(frozen=True)
class TechnicalSpecs:
    """Static technical specification of a vehicle.

    Attributes:
        vehicle_type: One of standard, van, truck, electric, motorcycle
        fuel_type: diesel, petrol or electric
        city_consumption: Consumption per 100 km in city driving
        highway_consumption: Consumption per 100 km on highways
        combined_consumption: Manufacturer combined consumption per 100 km
        tank_capacity: Tank (or battery) capacity in liters (or kWh)
        reserve_capacity: Amount that should never be planned into a route
        max_load_capacity: Maximum payload in kg
        empty_weight: Unladen weight in kg
        height_m: Vehicle height in meters
        max_speed_kmh: Top speed the vehicle may be planned with
        cruise_speed_kmh: Typical cruising speed
    """

    vehicle_type: str
    fuel_type: str
    city_consumption: float
    highway_consumption: float
    combined_consumption: float
    tank_capacity: float
    reserve_capacity: float
    max_load_capacity: float
    empty_weight: float
    height_m: float
    max_speed_kmh: float
    cruise_speed_kmh: float

    def __post_init__(self) -> None:
        """Validate specification values."""
        _validate_vehicle_type(self.vehicle_type)
        if (
            self.city_consumption <= 0
            or self.highway_consumption <= 0
            or self.combined_consumption <= 0
        ):
            raise ValueError("consumption figures must be positive")
        if self.tank_capacity <= 0:
            raise ValueError(f"tank_capacity must be positive, got {self.tank_capacity}")
        if not 0 <= self.reserve_capacity < self.tank_capacity:
            raise ValueError(
                f"reserve_capacity must be between 0 and tank_capacity, "
                f"got {self.reserve_capacity}"
            )
        if self.max_load_capacity <= 0:
            raise ValueError(
                f"max_load_capacity must be positive, got {self.max_load_capacity}"
            )
        if self.empty_weight <= 0:
            raise ValueError(f"empty_weight must be positive, got {self.empty_weight}")
        if self.height_m <= 0:
            raise ValueError(f"height_m must be positive, got {self.height_m}")
        if self.cruise_speed_kmh <= 0 or self.max_speed_kmh < self.cruise_speed_kmh:
            raise ValueError("speeds must be positive and max_speed >= cruise_speed")

    @property
    def is_electric(self) -> bool:
        """Whether consumption is measured in kWh."""
        return self.fuel_type == "electric"

    @classmethod
    def for_vehicle_type(cls, vehicle_type: str) -> "TechnicalSpecs":
        """Build the default specification for a vehicle type.

        Args:
            vehicle_type: One of standard, van, truck, electric, motorcycle

        Returns:
            Technical specs with manufacturer defaults

        Raises:
            ValueError: If the vehicle type is unknown
        """
        _validate_vehicle_type(vehicle_type)
        return cls(vehicle_type=vehicle_type, **_TYPE_SPECS[vehicle_type])


@dataclass(frozen=True)
class VehicleRestrictions:
    """Legal limits that apply to a vehicle.

    Attributes:
        max_driving_hours: Longest continuous working day allowed
        speed_cap_kmh: Legal speed cap for the vehicle (optional)
        rest_break_interval_hours: Driving time after which a break is mandatory
        rest_break_minutes: Length of a mandatory break
    """

    max_driving_hours: float = 10.0
    speed_cap_kmh: float | None = None
    rest_break_interval_hours: float | None = None
    rest_break_minutes: float = 45.0

    def __post_init__(self) -> None:
        """Validate restriction values."""
        if self.max_driving_hours <= 0:
            raise ValueError(
                f"max_driving_hours must be positive, got {self.max_driving_hours}"
            )
        if self.speed_cap_kmh is not None and self.speed_cap_kmh <= 0:
            raise ValueError(f"speed_cap_kmh must be positive, got {self.speed_cap_kmh}")
        if self.rest_break_interval_hours is not None and self.rest_break_interval_hours <= 0:
            raise ValueError(
                f"rest_break_interval_hours must be positive, "
                f"got {self.rest_break_interval_hours}"
            )

    @classmethod
    def for_vehicle_type(cls, vehicle_type: str) -> "VehicleRestrictions":
        """Build the default restrictions for a vehicle type."""
        _validate_vehicle_type(vehicle_type)
        if vehicle_type == "truck":
            return cls(max_driving_hours=9.0, speed_cap_kmh=90.0, rest_break_interval_hours=4.5)
        return cls()


@dataclass(frozen=True)
class SeasonalAdjustments:
    """Seasonal consumption increases for a vehicle, as fractions."""

    winter_increase: float = 0.15
    summer_increase: float = 0.05

    def __post_init__(self) -> None:
        """Validate seasonal values."""
        if not 0.0 <= self.winter_increase <= 1.0:
            raise ValueError(
                f"winter_increase must be between 0.0 and 1.0, got {self.winter_increase}"
            )
        if not 0.0 <= self.summer_increase <= 1.0:
            raise ValueError(
                f"summer_increase must be between 0.0 and 1.0, got {self.summer_increase}"
            )

    @classmethod
    def for_vehicle_type(cls, vehicle_type: str) -> "SeasonalAdjustments":
        """Build the default seasonal adjustments for a vehicle type."""
        _validate_vehicle_type(vehicle_type)
        if vehicle_type == "electric":
            return cls(winter_increase=0.30, summer_increase=0.05)
        return cls()


@dataclass(frozen=True)
class VehicleData:
    """Caller-supplied data used to create or update a vehicle profile.

    Attributes:
        vehicle_type: Vehicle type, only used when the profile is created
        name: Display name (optional)
        license_plate: License plate (optional)
        state: Current state fields to merge (optional)
        specs: Full technical specification override (optional)
        restrictions: Restriction override (optional)
        seasonal: Seasonal adjustment override (optional)
    """

    vehicle_type: str | None = None
    name: str | None = None
    license_plate: str | None = None
    state: VehicleStateUpdate | None = None
    specs: TechnicalSpecs | None = None
    restrictions: VehicleRestrictions | None = None
    seasonal: SeasonalAdjustments | None = None

    def __post_init__(self) -> None:
        """Validate vehicle data values."""
        if self.vehicle_type is not None:
            _validate_vehicle_type(self.vehicle_type)


@dataclass(frozen=True)
class PerformanceData:
    """Measured performance of one completed route.

    Attributes:
        distance_km: Distance driven
        fuel_consumed: Fuel (or energy) consumed over the distance
        duration_hours: Driving time (optional)
        cost: Total cost of the route (optional)
    """

    distance_km: float
    fuel_consumed: float
    duration_hours: float | None = None
    cost: float | None = None

    def __post_init__(self) -> None:
        """Validate performance values."""
        if self.distance_km <= 0:
            raise ValueError(f"distance_km must be positive, got {self.distance_km}")
        if self.fuel_consumed <= 0:
            raise ValueError(f"fuel_consumed must be positive, got {self.fuel_consumed}")
        if self.duration_hours is not None and self.duration_hours <= 0:
            raise ValueError(f"duration_hours must be positive, got {self.duration_hours}")
        if self.cost is not None and self.cost < 0:
            raise ValueError(f"cost must be non-negative, got {self.cost}")

    @property
    def consumption_per_100km(self) -> float:
        """Observed consumption per 100 km."""
        return self.fuel_consumed / self.distance_km * 100.0


@dataclass(frozen=True)
class FactorBreakdown:
    """Multipliers that produced an estimated consumption."""

    base_consumption: float
    load_factor: float
    maintenance_factor: float
    seasonal_factor: float
    special_conditions_factor: float


@dataclass(frozen=True)
class FuelAnalysis:
    """Fuel (or energy) analysis of a route for one vehicle.

    Attributes:
        estimated_consumption: Adjusted consumption per 100 km
        fuel_needed: Fuel needed for the whole distance
        current_fuel: Fuel currently in the tank
        usable_fuel: Fuel available above the reserve
        can_complete_with_current_fuel: Whether no stop is required
        recommended_refuel_stops: Number of refuel (or charging) stops
        factor_breakdown: Multipliers behind estimated_consumption
        unit: "L" or "kWh"
    """

    estimated_consumption: float
    fuel_needed: float
    current_fuel: float
    usable_fuel: float
    can_complete_with_current_fuel: bool
    recommended_refuel_stops: int
    factor_breakdown: FactorBreakdown
    unit: str = "L"


@dataclass(frozen=True)
class ViabilityReport:
    """Whether a vehicle can legally and physically complete a route.

    Attributes:
        can_complete: False when any hard constraint is violated
        score: Viability score (0.0-1.0)
        reasons: Violated constraints and soft issues
        suggestions: Mitigations (split route, schedule refuel stop, ...)
    """

    can_complete: bool
    score: float
    reasons: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate viability values."""
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be between 0.0 and 1.0, got {self.score}")


@dataclass(frozen=True)
class OperatingCost:
    """Operating cost of a route for one vehicle."""

    total_cost: float
    fuel_cost: float
    maintenance_cost: float
    tire_cost: float
    depreciation_cost: float
    cost_per_km: float


@dataclass(frozen=True)
class VehicleWarning:
    """A warning about the current vehicle state."""

    type: str
    severity: str
    message: str
    actionable: bool = False

    def __post_init__(self) -> None:
        """Validate warning values."""
        if self.severity not in WARNING_SEVERITIES:
            raise ValueError(
                f"severity must be one of {', '.join(WARNING_SEVERITIES)}, got {self.severity}"
            )


@dataclass(frozen=True)
class VehicleOptimizationResult:
    """Vehicle-specific refinement of a prediction.

    Every vehicle type produces this same shape.

    Attributes:
        vehicle_id: Vehicle the refinement was computed for
        vehicle_type: Type used to select the refinement
        optimization_factor: Refined optimization factor
        distance: Projected distance in km
        duration: Projected duration in hours, including stops and breaks
        fuel_analysis: Fuel or energy analysis
        viability: Viability report
        operating_cost: Operating cost estimate
        warnings: Warnings about the vehicle state
        recommendations: Vehicle-specific recommendations
        charging_stops: Charging stops inserted (electric only)
        rest_breaks: Mandatory rest breaks inserted (truck only)
        time_saved: Driving time saved in hours
        fuel_saved: Fuel (or energy) saved
        cost_saved: Fuel cost saved
    """

    vehicle_id: str
    vehicle_type: str
    optimization_factor: float
    distance: float
    duration: float
    fuel_analysis: FuelAnalysis
    viability: ViabilityReport
    operating_cost: OperatingCost
    warnings: tuple[VehicleWarning, ...] = ()
    recommendations: tuple[str, ...] = ()
    charging_stops: int = 0
    rest_breaks: int = 0
    time_saved: float = 0.0
    fuel_saved: float = 0.0
    cost_saved: float = 0.0
