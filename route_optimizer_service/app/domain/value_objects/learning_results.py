"""Learning result value objects.

Immutable outputs of the historical similarity learner.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class HistoricalHint:
    """A recommendation drawn from a highly accurate similar route."""

    factor: str
    impact: float
    confidence: float


@dataclass(frozen=True)
class SimilarRoutePrediction:
    """Prediction derived from the most similar historical routes.

    Attributes:
        optimization_factor: Similarity and accuracy weighted factor
        confidence: 0.7 x mean accuracy + 0.3 x mean similarity
        support_count: Number of matched routes
        average_accuracy: Mean overall accuracy of the matches
        average_similarity: Mean similarity of the matches
        recommendations: Up to three hints from highly accurate matches
        model_version: Version of the similarity scorer
    """

    optimization_factor: float
    confidence: float
    support_count: int
    average_accuracy: float
    average_similarity: float
    recommendations: tuple[HistoricalHint, ...] = ()
    model_version: str = "similarity-1.0"

    def __post_init__(self) -> None:
        """Validate prediction values."""
        if self.support_count < 1:
            raise ValueError(f"support_count must be at least 1, got {self.support_count}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be between 0.0 and 1.0, got {self.confidence}")


@dataclass(frozen=True)
class PatternStatistics:
    """Descriptive statistics of one pattern bucket.

    Attributes:
        route_count: Routes in the bucket
        average_accuracy: Mean overall accuracy
        best_accuracy: Highest overall accuracy
        worst_accuracy: Lowest overall accuracy
        average_actual_savings: Mean actual savings in percent
        performance: optimal_performance, good_performance or improvement_needed
    """

    route_count: int
    average_accuracy: float
    best_accuracy: float
    worst_accuracy: float
    average_actual_savings: float
    performance: str


@dataclass(frozen=True)
class ConditionSnapshot:
    """Conditions of the best or worst predicted route."""

    season: str
    hour_of_day: int
    weather_condition: str
    accuracy: float


@dataclass(frozen=True)
class PatternAnalysis:
    """Pattern aggregates over the historical corpus.

    Attributes:
        seasonal: Statistics per season
        temporal: Statistics per time-of-day bucket
        driver: Statistics per driver-experience bucket
        vehicle: Statistics per vehicle type
        clusters: Statistics per 100 km distance cluster
        total_routes: Size of the corpus
        average_accuracy: Long-run mean accuracy
        best_conditions: Conditions of the most accurate route
        worst_conditions: Conditions of the least accurate route
        model_revision: Revision of the pattern aggregates
    """

    seasonal: dict[str, PatternStatistics]
    temporal: dict[str, PatternStatistics]
    driver: dict[str, PatternStatistics]
    vehicle: dict[str, PatternStatistics]
    clusters: dict[str, PatternStatistics]
    total_routes: int
    average_accuracy: float
    best_conditions: ConditionSnapshot | None = None
    worst_conditions: ConditionSnapshot | None = None
    model_revision: int = 0


@dataclass(frozen=True)
class LearningMetrics:
    """Long-run accuracy statistics of the learner.

    Attributes:
        total_routes: Routes currently retained
        average_accuracy: Mean overall accuracy of retained routes
        rolling_accuracy: Exponential moving average of overall accuracy
        improvement_trend: improving, declining or stable
        model_revision: Number of times patterns were re-derived
        routes_since_improvement: Routes recorded since the last re-derivation
        last_model_update: When patterns were last re-derived (optional)
        last_retraining_reason: accuracy_decline or volume (optional)
        accuracy_by_field: Mean accuracy per reported field
    """

    total_routes: int
    average_accuracy: float
    rolling_accuracy: float
    improvement_trend: str
    model_revision: int
    routes_since_improvement: int
    last_model_update: datetime | None = None
    last_retraining_reason: str | None = None
    accuracy_by_field: dict[str, float] = field(default_factory=dict)
