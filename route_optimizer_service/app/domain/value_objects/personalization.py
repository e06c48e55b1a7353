"""Driver personalization value objects.

Immutable data structures describing how a driver profile adjusts a prediction.
"""

from dataclasses import dataclass

RISK_LEVELS = ("low", "medium", "high")
EFFICIENCY_FOCUSES = ("time", "cost", "comfort", "balanced")
RECOMMENDATION_IMPACTS = ("low", "medium", "high")


@dataclass(frozen=True)
class DriverRecommendation:
    """A human-readable coaching recommendation for a driver.

    Attributes:
        type: Recommendation category (fuel_efficiency, route_adherence, ...)
        message: Text shown to the driver
        impact: Expected impact (low, medium, high)
        actionable: Whether the driver can act on it directly
    """

    type: str
    message: str
    impact: str
    actionable: bool = True

    def __post_init__(self) -> None:
        """Validate recommendation values."""
        if not self.type:
            raise ValueError("type cannot be empty")
        if self.impact not in RECOMMENDATION_IMPACTS:
            raise ValueError(
                f"impact must be one of {', '.join(RECOMMENDATION_IMPACTS)}, got {self.impact}"
            )

    @property
    def priority(self) -> int:
        """Sort key, higher impact first."""
        return RECOMMENDATION_IMPACTS.index(self.impact)


@dataclass(frozen=True)
class PersonalizedWeights:
    """Optimization weights derived from a driver profile."""

    time_importance: float
    cost_importance: float
    comfort_importance: float
    safety_importance: float
    traffic_sensitivity: float
    speed_optimization: float
    fuel_priority: float


@dataclass(frozen=True)
class PersonalizationResult:
    """Outcome of personalizing a prediction for one driver.

    Attributes:
        driver_id: Driver the adjustment was derived for
        risk_level: Risk tolerance (low, medium, high)
        efficiency_focus: Dominant focus (time, cost, comfort, balanced)
        factor_multiplier: Multiplier applied to the optimization factor
        profile_confidence: Confidence of the underlying profile (0.0-1.0)
        fuel_efficiency_multiplier: Learned actual-vs-predicted fuel efficiency
        route_adherence: Learned share of routes followed as recommended
        speed_adjustment: Learned average speed deviation
        weights: Personalized optimization weights
        recommendations: Up to three recommendations, highest impact first
    """

    driver_id: str
    risk_level: str
    efficiency_focus: str
    factor_multiplier: float
    profile_confidence: float
    fuel_efficiency_multiplier: float
    route_adherence: float
    speed_adjustment: float
    weights: PersonalizedWeights
    recommendations: tuple[DriverRecommendation, ...] = ()

    def __post_init__(self) -> None:
        """Validate personalization values."""
        if self.risk_level not in RISK_LEVELS:
            raise ValueError(
                f"risk_level must be one of {', '.join(RISK_LEVELS)}, got {self.risk_level}"
            )
        if self.efficiency_focus not in EFFICIENCY_FOCUSES:
            raise ValueError(
                f"efficiency_focus must be one of {', '.join(EFFICIENCY_FOCUSES)}, "
                f"got {self.efficiency_focus}"
            )
        if self.factor_multiplier <= 0:
            raise ValueError(
                f"factor_multiplier must be positive, got {self.factor_multiplier}"
            )
        if not 0.0 <= self.profile_confidence <= 1.0:
            raise ValueError(
                f"profile_confidence must be between 0.0 and 1.0, "
                f"got {self.profile_confidence}"
            )
        if len(self.recommendations) > 3:
            raise ValueError(
                f"at most 3 recommendations allowed, got {len(self.recommendations)}"
            )
