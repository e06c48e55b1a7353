"""Historical route value objects.

Immutable records of completed optimizations used for similarity learning.
"""

from dataclasses import dataclass
from datetime import datetime

from .actual_result import ActualResult

SEASONS = ("spring", "summer", "autumn", "winter")
TIME_BUCKETS = ("morning-rush", "midday", "evening-rush", "night")


def get_season(month: int) -> str:
    """Get the season of a calendar month.

    Args:
        month: Month (1-12)

    Returns:
        spring (3-5), summer (6-8), autumn (9-11) or winter
    """
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "autumn"
    return "winter"


def get_time_bucket(hour: int) -> str:
    """Get the time-of-day bucket of an hour.

    Args:
        hour: Hour of day (0-23)

    Returns:
        morning-rush (7-9), midday (10-16), evening-rush (17-19) or night
    """
    if 7 <= hour <= 9:
        return "morning-rush"
    if 10 <= hour <= 16:
        return "midday"
    if 17 <= hour <= 19:
        return "evening-rush"
    return "night"


def get_driver_bucket(experience_years: float | None) -> str:
    """Get the driver-experience bucket for a number of years."""
    if experience_years is None:
        return "unknown"
    if experience_years < 2:
        return "novice"
    if experience_years < 5:
        return "intermediate"
    if experience_years < 10:
        return "experienced"
    return "veteran"


def get_distance_cluster(distance: float) -> str:
    """Group distances into 100 km clusters."""
    return f"cluster_{int(distance // 100)}"


@dataclass(frozen=True)
class RouteFeatures:
    """Normalized features of a route used for similarity matching.

    Attributes:
        distance: Requested distance in km
        vehicle_type: Vehicle type (standard when unknown)
        hour_of_day: Departure hour (0-23)
        month: Departure month (1-12)
        day_of_week: Departure weekday (0 = Monday)
        congestion: Traffic congestion at prediction time (0.0-1.0)
        weather_condition: Weather condition label
        weather_score: Weather driving score (0.0-1.0)
        driver_id: Driver of the route (optional)
        driver_experience_years: Driver experience (optional)
        route_type: highway, city or mixed (optional)
    """

    distance: float
    vehicle_type: str
    hour_of_day: int
    month: int
    day_of_week: int
    congestion: float = 0.5
    weather_condition: str = "clear"
    weather_score: float = 1.0
    driver_id: str | None = None
    driver_experience_years: float | None = None
    route_type: str | None = None

    def __post_init__(self) -> None:
        """Validate route feature values."""
        if self.distance <= 0:
            raise ValueError(f"distance must be positive, got {self.distance}")
        if not 0 <= self.hour_of_day <= 23:
            raise ValueError(f"hour_of_day must be between 0 and 23, got {self.hour_of_day}")
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be between 1 and 12, got {self.month}")
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        if not 0.0 <= self.congestion <= 1.0:
            raise ValueError(f"congestion must be between 0.0 and 1.0, got {self.congestion}")
        if not 0.0 <= self.weather_score <= 1.0:
            raise ValueError(
                f"weather_score must be between 0.0 and 1.0, got {self.weather_score}"
            )

    @property
    def season(self) -> str:
        """Season of the departure month."""
        return get_season(self.month)


@dataclass(frozen=True)
class PredictionSnapshot:
    """The original prediction a historical route was compared against.

    Attributes:
        optimization_factor: Predicted optimization factor
        confidence: Confidence of the prediction
        predicted_savings_percent: Predicted savings in percent
        predicted_distance: Projected distance in km
        predicted_duration: Projected duration in hours
        model_version: Version string of the prediction
        predicted_fuel: Vehicle fuel estimate (optional)
        predicted_cost: Vehicle cost estimate (optional)
        key_factors: Stages that shaped the prediction
    """

    optimization_factor: float
    confidence: float
    predicted_savings_percent: float
    predicted_distance: float
    predicted_duration: float
    model_version: str
    predicted_fuel: float | None = None
    predicted_cost: float | None = None
    key_factors: tuple[str, ...] = ()


@dataclass(frozen=True)
class AccuracyMetrics:
    """Accuracy of a prediction against its reported outcome.

    Each field is 1 minus the normalized absolute error, clamped to [0, 1].
    Fields whose actual value was not reported are None.
    """

    savings_accuracy: float
    overall_accuracy: float
    distance_accuracy: float | None = None
    duration_accuracy: float | None = None
    fuel_accuracy: float | None = None
    cost_accuracy: float | None = None

    def __post_init__(self) -> None:
        """Validate accuracy values."""
        for name in (
            "savings_accuracy",
            "overall_accuracy",
            "distance_accuracy",
            "duration_accuracy",
            "fuel_accuracy",
            "cost_accuracy",
        ):
            value = getattr(self, name)
            if value is not None and not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")


@dataclass(frozen=True)
class PatternKeys:
    """Pattern buckets a historical route belongs to."""

    distance_cluster: str
    season: str
    time_bucket: str
    driver_bucket: str
    vehicle_bucket: str


@dataclass(frozen=True)
class HistoricalRoute:
    """An immutable record of one completed optimization.

    Attributes:
        route_id: Tracking id of the original prediction
        recorded_at: When the outcome was recorded
        features: Normalized features used for matching
        prediction: The original prediction
        actual: The reported outcome
        accuracy: Derived accuracy metrics
        patterns: Pattern buckets of the route
    """

    route_id: str
    recorded_at: datetime
    features: RouteFeatures
    prediction: PredictionSnapshot
    actual: ActualResult
    accuracy: AccuracyMetrics
    patterns: PatternKeys

    def __post_init__(self) -> None:
        """Validate historical route values."""
        if not self.route_id:
            raise ValueError("route_id cannot be empty")
