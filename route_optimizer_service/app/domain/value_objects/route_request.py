"""Route request value object.

Immutable data structure for route optimization inputs.
"""

from dataclasses import dataclass
from datetime import datetime

ROUTE_TYPES = ("highway", "city", "mixed")


@dataclass(frozen=True)
class TrafficData:
    """Traffic hint for a route.

    Attributes:
        congestion: Congestion level (0.0 = free flow, 1.0 = gridlock)
        estimated_delay_minutes: Expected delay caused by traffic
    """

    congestion: float = 0.5
    estimated_delay_minutes: float = 0.0

    def __post_init__(self) -> None:
        """Validate traffic values."""
        if not 0.0 <= self.congestion <= 1.0:
            raise ValueError(f"congestion must be between 0.0 and 1.0, got {self.congestion}")
        if self.estimated_delay_minutes < 0:
            raise ValueError(
                f"estimated_delay_minutes must be non-negative, "
                f"got {self.estimated_delay_minutes}"
            )


@dataclass(frozen=True)
class WeatherData:
    """Weather hint for a route.

    Attributes:
        condition: Weather condition label (clear, rain, snow, ...)
        driving_score: How favourable the weather is for driving (0.0-1.0)
        temperature: Air temperature in °C (optional)
    """

    condition: str = "clear"
    driving_score: float = 1.0
    temperature: float | None = None

    def __post_init__(self) -> None:
        """Validate weather values."""
        if not self.condition:
            raise ValueError("condition cannot be empty")
        if not 0.0 <= self.driving_score <= 1.0:
            raise ValueError(
                f"driving_score must be between 0.0 and 1.0, got {self.driving_score}"
            )


@dataclass(frozen=True)
class RouteConstraints:
    """Physical and legal limits along a route.

    Attributes:
        max_weight_tonnes: Lowest bridge weight limit on the route
        max_height_m: Lowest tunnel or underpass clearance on the route
        speed_limit_kmh: Typical speed limit the route is planned with
    """

    max_weight_tonnes: float | None = None
    max_height_m: float | None = None
    speed_limit_kmh: float | None = None

    def __post_init__(self) -> None:
        """Validate constraint values."""
        if self.max_weight_tonnes is not None and self.max_weight_tonnes <= 0:
            raise ValueError(
                f"max_weight_tonnes must be positive, got {self.max_weight_tonnes}"
            )
        if self.max_height_m is not None and self.max_height_m <= 0:
            raise ValueError(f"max_height_m must be positive, got {self.max_height_m}")
        if self.speed_limit_kmh is not None and self.speed_limit_kmh <= 0:
            raise ValueError(f"speed_limit_kmh must be positive, got {self.speed_limit_kmh}")


@dataclass(frozen=True)
class Waypoint:
    """A stop or via point on the route."""

    lat: float
    lng: float
    type: str = "stop"

    def __post_init__(self) -> None:
        """Validate coordinates."""
        if not -90 <= self.lat <= 90:
            raise ValueError(f"lat must be between -90 and 90, got {self.lat}")
        if not -180 <= self.lng <= 180:
            raise ValueError(f"lng must be between -180 and 180, got {self.lng}")


@dataclass(frozen=True)
class RouteRequest:
    """Request for a route optimization estimate.

    Attributes:
        distance: Planned route distance in km
        traffic: Traffic hint (optional)
        weather: Weather hint (optional)
        fuel_price: Fuel price per liter (optional)
        driver_id: Driver identifier for personalization (optional)
        vehicle_id: Vehicle identifier for vehicle-specific optimization (optional)
        vehicle_type: Vehicle type label used for historical matching (optional)
        driver_experience_years: Driving experience in years (optional)
        departure_time: Planned departure (optional, defaults to now)
        route_type: One of highway, city, mixed (optional)
        highway_share: Fraction of the distance driven on highways (optional)
        constraints: Bridge, tunnel and speed limits on the route (optional)
        waypoints: Ordered stops on the route
    """

    distance: float
    traffic: TrafficData | None = None
    weather: WeatherData | None = None
    fuel_price: float | None = None
    driver_id: str | None = None
    vehicle_id: str | None = None
    vehicle_type: str | None = None
    driver_experience_years: float | None = None
    departure_time: datetime | None = None
    route_type: str | None = None
    highway_share: float | None = None
    constraints: RouteConstraints | None = None
    waypoints: tuple[Waypoint, ...] = ()

    def __post_init__(self) -> None:
        """Validate route request values."""
        if self.distance <= 0:
            raise ValueError(f"distance must be positive, got {self.distance}")
        if self.fuel_price is not None and self.fuel_price <= 0:
            raise ValueError(f"fuel_price must be positive, got {self.fuel_price}")
        if self.driver_id is not None and not self.driver_id:
            raise ValueError("driver_id cannot be empty")
        if self.vehicle_id is not None and not self.vehicle_id:
            raise ValueError("vehicle_id cannot be empty")
        if self.driver_experience_years is not None and self.driver_experience_years < 0:
            raise ValueError(
                f"driver_experience_years must be non-negative, "
                f"got {self.driver_experience_years}"
            )
        if self.route_type is not None and self.route_type not in ROUTE_TYPES:
            raise ValueError(
                f"route_type must be one of {', '.join(ROUTE_TYPES)}, got {self.route_type}"
            )
        if self.highway_share is not None and not 0.0 <= self.highway_share <= 1.0:
            raise ValueError(
                f"highway_share must be between 0.0 and 1.0, got {self.highway_share}"
            )

    @property
    def congestion(self) -> float:
        """Congestion level, neutral when no traffic hint was given."""
        return self.traffic.congestion if self.traffic else 0.5

    @property
    def weather_condition(self) -> str:
        """Weather condition, clear when no weather hint was given."""
        return self.weather.condition if self.weather else "clear"

    @property
    def weather_score(self) -> float:
        """Weather driving score, 1.0 when no weather hint was given."""
        return self.weather.driving_score if self.weather else 1.0

    @property
    def effective_highway_share(self) -> float:
        """Highway share of the distance, derived from route_type if not explicit."""
        if self.highway_share is not None:
            return self.highway_share
        if self.route_type == "highway":
            return 0.8
        if self.route_type == "city":
            return 0.2
        return 0.5
