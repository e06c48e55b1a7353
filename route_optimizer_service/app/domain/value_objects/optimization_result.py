"""Optimization result value objects.

Immutable data structures for route optimization estimates and the pending
ledger entries that track them until an outcome is reported.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .personalization import PersonalizationResult
from .route_request import RouteRequest, Waypoint
from .vehicle import VehicleOptimizationResult

MIN_OPTIMIZATION_FACTOR = 0.05
MAX_OPTIMIZATION_FACTOR = 0.40


def clamp_factor(value: float) -> float:
    """Clamp an optimization factor into the allowed range."""
    return max(MIN_OPTIMIZATION_FACTOR, min(MAX_OPTIMIZATION_FACTOR, value))


@dataclass(frozen=True)
class Savings:
    """Savings breakdown of an optimization estimate.

    Attributes:
        distance_km: Distance saved
        time_hours: Driving time saved
        fuel_liters: Fuel saved
        cost: Money saved
        percentage_saved: Savings in percent (optimization factor x 100)
    """

    distance_km: float
    time_hours: float
    fuel_liters: float
    cost: float
    percentage_saved: float


@dataclass(frozen=True)
class SeasonalFactors:
    """Seasonal adjustments attached to historically enhanced results."""

    season: str
    fuel_consumption: float
    traffic_multiplier: float
    safety_margin: float


@dataclass(frozen=True)
class LearningData:
    """Learning context attached when the historical blend fired.

    Attributes:
        recommended_actions: Hints drawn from highly accurate similar routes
        confidence_factors: Named components of the blended confidence
        seasonal_adjustments: Adjustments for the season of departure
    """

    recommended_actions: tuple[str, ...] = ()
    confidence_factors: dict[str, float] = field(default_factory=dict)
    seasonal_adjustments: SeasonalFactors | None = None


@dataclass(frozen=True)
class OptimizationResult:
    """Result of a route optimization estimate.

    Attributes:
        optimization_factor: Fraction of distance/cost expected to be saved
        confidence: Confidence in the estimate (0.0-1.0)
        original_distance: Requested distance in km
        distance: Projected optimized distance in km
        duration: Projected optimized duration in hours
        savings: Savings breakdown
        model_version: Versions of the scoring functions that produced it
        timestamp: When the estimate was produced
        tracking_id: Identifier assigned once per prediction (optional)
        waypoints: Waypoints of the request
        historically_enhanced: Whether the historical blend fired
        based_on_similar_routes: Number of similar routes that contributed
        historical_accuracy: Mean accuracy of those routes (optional)
        personalized_for_driver: Driver id when personalization fired
        driver_personalization: Personalization details (optional)
        vehicle_optimized: Whether the vehicle stage fired
        vehicle_id: Vehicle id when the vehicle stage fired
        vehicle_optimization: Vehicle optimization details (optional)
        learning_data: Learning context when the historical blend fired
        fallback: Whether this is a degraded answer
    """

    optimization_factor: float
    confidence: float
    original_distance: float
    distance: float
    duration: float
    savings: Savings
    model_version: str
    timestamp: datetime
    tracking_id: str | None = None
    waypoints: tuple[Waypoint, ...] = ()
    historically_enhanced: bool = False
    based_on_similar_routes: int = 0
    historical_accuracy: float | None = None
    personalized_for_driver: str | None = None
    driver_personalization: PersonalizationResult | None = None
    vehicle_optimized: bool = False
    vehicle_id: str | None = None
    vehicle_optimization: VehicleOptimizationResult | None = None
    learning_data: LearningData | None = None
    fallback: bool = False

    def __post_init__(self) -> None:
        """Validate optimization result values."""
        if not MIN_OPTIMIZATION_FACTOR <= self.optimization_factor <= MAX_OPTIMIZATION_FACTOR:
            raise ValueError(
                f"optimization_factor must be between {MIN_OPTIMIZATION_FACTOR} and "
                f"{MAX_OPTIMIZATION_FACTOR}, got {self.optimization_factor}"
            )
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")
        if self.original_distance <= 0:
            raise ValueError(
                f"original_distance must be positive, got {self.original_distance}"
            )
        if self.distance <= 0:
            raise ValueError(f"distance must be positive, got {self.distance}")
        if self.duration < 0:
            raise ValueError(f"duration must be non-negative, got {self.duration}")
        if self.based_on_similar_routes < 0:
            raise ValueError(
                f"based_on_similar_routes must be non-negative, "
                f"got {self.based_on_similar_routes}"
            )

    @property
    def predicted_savings_percent(self) -> float:
        """Predicted savings in percent."""
        return self.optimization_factor * 100.0


@dataclass(frozen=True)
class PendingPrediction:
    """A prediction awaiting its reported outcome.

    Attributes:
        tracking_id: Identifier of the prediction
        request: Request the prediction was made for
        result: The prediction returned to the caller
        created_at: When the prediction was stored
    """

    tracking_id: str
    request: RouteRequest
    result: OptimizationResult
    created_at: datetime

    def __post_init__(self) -> None:
        """Validate pending prediction values."""
        if not self.tracking_id:
            raise ValueError("tracking_id cannot be empty")
