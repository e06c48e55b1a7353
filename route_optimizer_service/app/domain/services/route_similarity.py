"""Route similarity scoring.

Versioned, deterministic similarity between a new request and a
historical route.
"""

from datetime import datetime

from domain.value_objects import RouteFeatures, RouteRequest


def extract_features(request: RouteRequest, when: datetime) -> RouteFeatures:
    """Normalize a route request into matching features.

    Args:
        request: The route request
        when: Departure time used when the request carries none

    Returns:
        Route features
    """
    departure = request.departure_time or when
    return RouteFeatures(
        distance=request.distance,
        vehicle_type=request.vehicle_type or "standard",
        hour_of_day=departure.hour,
        month=departure.month,
        day_of_week=departure.weekday(),
        congestion=request.congestion,
        weather_condition=request.weather_condition,
        weather_score=request.weather_score,
        driver_id=request.driver_id,
        driver_experience_years=request.driver_experience_years,
        route_type=request.route_type,
    )


class RouteSimilarityScorer:
    """Weighted similarity over route features.

    Each dimension yields a closeness in [0, 1]; the score is the weighted
    sum of the closenesses, with weights summing to 1.

    - distance: 1 - |d1 - d2| / max(d1, d2)
    - vehicle type: exact match
    - time of day: 1 - circular hour difference / 12
    - season: exact match
    - traffic: 1 - |c1 - c2|
    - weather: 1 on the same condition, else half the driving-score closeness
    """

    VERSION = "similarity-1.0"

    DEFAULT_WEIGHTS = {
        "distance": 0.30,
        "vehicle_type": 0.15,
        "time_of_day": 0.15,
        "season": 0.15,
        "traffic": 0.10,
        "weather": 0.15,
    }

    def __init__(self, weights: dict[str, float] | None = None) -> None:
        """Initialize the scorer.

        Args:
            weights: Per-dimension weights. If None, uses DEFAULT_WEIGHTS.

        Raises:
            ValueError: If dimensions are missing or weights do not sum to 1
        """
        weights = dict(weights or self.DEFAULT_WEIGHTS)
        if set(weights) != set(self.DEFAULT_WEIGHTS):
            raise ValueError(
                f"weights must define exactly {', '.join(sorted(self.DEFAULT_WEIGHTS))}"
            )
        if any(value < 0 for value in weights.values()):
            raise ValueError("weights must be non-negative")
        if abs(sum(weights.values()) - 1.0) > 1e-9:
            raise ValueError(f"weights must sum to 1, got {sum(weights.values())}")
        self._weights = weights

    @property
    def weights(self) -> dict[str, float]:
        """Per-dimension weights."""
        return dict(self._weights)

    def score(self, candidate: RouteFeatures, reference: RouteFeatures) -> float:
        """Score how closely a candidate route matches a reference route.

        Args:
            candidate: Features of the new request
            reference: Features of a historical route

        Returns:
            Similarity in [0, 1]
        """
        closeness = self.dimension_scores(candidate, reference)
        total = sum(self._weights[name] * value for name, value in closeness.items())
        return max(0.0, min(1.0, total))

    def dimension_scores(
        self, candidate: RouteFeatures, reference: RouteFeatures
    ) -> dict[str, float]:
        """Closeness per dimension, each in [0, 1]."""
        hour_diff = abs(candidate.hour_of_day - reference.hour_of_day)
        hour_diff = min(hour_diff, 24 - hour_diff)

        if candidate.weather_condition == reference.weather_condition:
            weather = 1.0
        else:
            weather = 0.5 * (1.0 - abs(candidate.weather_score - reference.weather_score))

        return {
            "distance": 1.0
            - abs(candidate.distance - reference.distance)
            / max(candidate.distance, reference.distance),
            "vehicle_type": 1.0 if candidate.vehicle_type == reference.vehicle_type else 0.0,
            "time_of_day": 1.0 - hour_diff / 12.0,
            "season": 1.0 if candidate.season == reference.season else 0.0,
            "traffic": 1.0 - abs(candidate.congestion - reference.congestion),
            "weather": weather,
        }
