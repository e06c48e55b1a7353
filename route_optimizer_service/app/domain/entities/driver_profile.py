"""Driver Profile entity.

Per-driver behavioral aggregate learned from reported route outcomes.
"""

from dataclasses import dataclass, field
from datetime import datetime

MAX_DEVIATION_REASONS = 10


@dataclass
class DrivingBehavior:
    """Behavioral tendencies of a driver.

    Attributes:
        average_speed_deviation: Relative deviation of actual from predicted
            duration (positive means slower than predicted)
        speed_consistency: How consistent the driver's speed is (0.0-1.0)
        prefers_highways: Highway preference (0 = avoid, 1 = prefer)
        tolerates_traffic: Tolerance for heavy traffic (0.0-1.0)
        avoids_toll_roads: Cost sensitivity towards toll roads (0.0-1.0)
        fuel_efficiency_ratio: Predicted over actual fuel consumption
            (1.0 = exactly as predicted, above 1.0 = more efficient)
        punctuality_score: Share of on-time arrivals (0.0-1.0)
        average_delay_minutes: Average arrival delay
    """

    average_speed_deviation: float = 0.0
    speed_consistency: float = 0.7
    prefers_highways: float = 0.5
    tolerates_traffic: float = 0.5
    avoids_toll_roads: float = 0.7
    fuel_efficiency_ratio: float = 1.0
    punctuality_score: float = 0.8
    average_delay_minutes: float = 5.0


@dataclass
class PerformanceMetrics:
    """Recommendation adherence and satisfaction of a driver."""

    route_adherence: float = 0.8
    deviation_reasons: list[str] = field(default_factory=list)
    fuel_efficiency_rating: float = 3.0
    average_satisfaction: float = 4.0

    def add_deviation_reasons(self, reasons: tuple[str, ...]) -> None:
        """Append deviation reasons, keeping only the most recent ones."""
        self.deviation_reasons.extend(reasons)
        if len(self.deviation_reasons) > MAX_DEVIATION_REASONS:
            self.deviation_reasons = self.deviation_reasons[-MAX_DEVIATION_REASONS:]


@dataclass
class OptimizationWeights:
    """Relative importance of optimization goals for a driver."""

    time: float = 0.4
    cost: float = 0.3
    comfort: float = 0.2
    safety: float = 0.1

    def dominant(self) -> str:
        """Name of the highest weight (first one wins on ties)."""
        weights = self.as_dict()
        return max(weights, key=lambda name: weights[name])

    def as_dict(self) -> dict[str, float]:
        """Weights keyed by goal name."""
        return {
            "time": self.time,
            "cost": self.cost,
            "comfort": self.comfort,
            "safety": self.safety,
        }


@dataclass
class RiskProfile:
    """Risk tolerance of a driver."""

    accepts_aggressive_optimization: bool = False
    tolerates_experimental_routes: bool = True
    prefers_proven_routes: bool = True


@dataclass
class LearningStats:
    """How much learning data underlies a profile."""

    profile_completeness: float = 0.1
    confidence_level: float = 0.3
    last_learning_update: datetime | None = None


@dataclass
class DriverProfile:
    """Represents what has been learned about a driver.

    Created on the first reported outcome for a driver id, mutated after
    every later one, never deleted.

    Attributes:
        driver_id: Driver identifier
        created_at: When the profile was created
        last_updated: When the profile was last updated
        total_routes_completed: Number of reported routes
        experience_years: Driving experience, when known
        behavior: Learned behavioral tendencies
        performance: Adherence and satisfaction metrics
        weights: Optimization weights
        risk: Risk tolerance
        vehicle_history: Number of routes per vehicle type
        learning_stats: Completeness and confidence
    """

    driver_id: str
    created_at: datetime
    last_updated: datetime
    total_routes_completed: int = 0
    experience_years: float | None = None
    behavior: DrivingBehavior = field(default_factory=DrivingBehavior)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    weights: OptimizationWeights = field(default_factory=OptimizationWeights)
    risk: RiskProfile = field(default_factory=RiskProfile)
    vehicle_history: dict[str, int] = field(default_factory=dict)
    learning_stats: LearningStats = field(default_factory=LearningStats)

    def __post_init__(self) -> None:
        """Validate driver profile values."""
        if not self.driver_id:
            raise ValueError("driver_id cannot be empty")

    def record_vehicle_type(self, vehicle_type: str) -> None:
        """Count one more route driven with a vehicle type."""
        self.vehicle_history[vehicle_type] = self.vehicle_history.get(vehicle_type, 0) + 1

    def vehicle_usage(self) -> dict[str, float]:
        """Share of routes per vehicle type."""
        total = sum(self.vehicle_history.values())
        if total == 0:
            return {}
        return {name: count / total for name, count in self.vehicle_history.items()}
