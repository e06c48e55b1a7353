"""Historical route learner service.

Domain service that records completed optimizations, predicts from the most
similar prior routes and tracks long-run accuracy.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import numpy as np

from domain.services.route_similarity import RouteSimilarityScorer, extract_features
from domain.value_objects import (
    AccuracyMetrics,
    ActualResult,
    ConditionSnapshot,
    HistoricalHint,
    HistoricalRoute,
    LearningConfig,
    LearningMetrics,
    OptimizationResult,
    PatternAnalysis,
    PatternKeys,
    PatternStatistics,
    PredictionSnapshot,
    RouteFeatures,
    RouteRequest,
    SimilarRoutePrediction,
    clamp_factor,
    get_distance_cluster,
    get_driver_bucket,
    get_time_bucket,
)

logger = logging.getLogger(__name__)

ACCURACY_WEIGHTS = {"savings": 0.5, "distance": 0.3, "duration": 0.2}
PATTERN_DIMENSIONS = ("season", "time_bucket", "driver_bucket", "vehicle_bucket", "distance_cluster")
TREND_WINDOW = 20
TREND_MIN_ROUTES = 10
TREND_MARGIN = 0.05
HINT_ACCURACY_THRESHOLD = 0.9
MAX_HINTS = 3


def _relative_accuracy(predicted: float, actual: float) -> float:
    """1 - |p - a| / p, clamped to [0, 1]."""
    if predicted <= 0:
        return 1.0 if actual <= 0 else 0.0
    return max(0.0, min(1.0, 1.0 - abs(predicted - actual) / predicted))


def calculate_accuracy(prediction: PredictionSnapshot, actual: ActualResult) -> AccuracyMetrics:
    """Compare a prediction with its reported outcome.

    Savings accuracy is 1 - |p - a| / max(p, a); distance, duration, fuel and
    cost accuracy are 1 - |p - a| / p. Overall accuracy weights savings,
    distance and duration 0.5 / 0.3 / 0.2; fields that were not reported are
    left out and the remaining weights renormalized.

    Args:
        prediction: The original prediction
        actual: The reported outcome

    Returns:
        Accuracy metrics, each in [0, 1]
    """
    predicted_savings = prediction.predicted_savings_percent
    actual_savings = actual.actual_savings_percent
    largest = max(predicted_savings, actual_savings)
    if largest <= 0:
        savings_accuracy = 1.0
    else:
        savings_accuracy = 1.0 - abs(predicted_savings - actual_savings) / largest
    savings_accuracy = max(0.0, min(1.0, savings_accuracy))

    distance_accuracy = None
    if actual.actual_distance is not None:
        distance_accuracy = _relative_accuracy(
            prediction.predicted_distance, actual.actual_distance
        )

    duration_accuracy = None
    if actual.actual_duration is not None:
        duration_accuracy = _relative_accuracy(
            prediction.predicted_duration, actual.actual_duration
        )

    fuel_accuracy = None
    if prediction.predicted_fuel is not None and actual.actual_fuel_consumed is not None:
        fuel_accuracy = _relative_accuracy(prediction.predicted_fuel, actual.actual_fuel_consumed)

    cost_accuracy = None
    if prediction.predicted_cost is not None and actual.actual_cost is not None:
        cost_accuracy = _relative_accuracy(prediction.predicted_cost, actual.actual_cost)

    components = {
        "savings": savings_accuracy,
        "distance": distance_accuracy,
        "duration": duration_accuracy,
    }
    present = {name: value for name, value in components.items() if value is not None}
    total_weight = sum(ACCURACY_WEIGHTS[name] for name in present)
    overall = sum(ACCURACY_WEIGHTS[name] * value for name, value in present.items()) / total_weight

    return AccuracyMetrics(
        savings_accuracy=savings_accuracy,
        overall_accuracy=max(0.0, min(1.0, overall)),
        distance_accuracy=distance_accuracy,
        duration_accuracy=duration_accuracy,
        fuel_accuracy=fuel_accuracy,
        cost_accuracy=cost_accuracy,
    )


def performance_label(average_accuracy: float) -> str:
    """Label a bucket by its mean accuracy."""
    if average_accuracy > 0.9:
        return "optimal_performance"
    if average_accuracy > 0.8:
        return "good_performance"
    return "improvement_needed"


@dataclass
class _BucketAggregate:
    """Accuracies and actual savings of the routes in one pattern bucket."""

    accuracies: list[float] = field(default_factory=list)
    savings: list[float] = field(default_factory=list)

    def statistics(self) -> PatternStatistics:
        accuracies = np.asarray(self.accuracies, dtype=float)
        average = float(accuracies.mean())
        return PatternStatistics(
            route_count=int(accuracies.size),
            average_accuracy=average,
            best_accuracy=float(accuracies.max()),
            worst_accuracy=float(accuracies.min()),
            average_actual_savings=float(np.mean(self.savings)),
            performance=performance_label(average),
        )


class HistoricalRouteLearner:
    """Learns from completed routes.

    Keeps a bounded, append-only corpus of historical routes (oldest evicted
    first), a rolling accuracy estimate and per-dimension pattern aggregates.
    New requests are matched against the corpus with a versioned similarity
    scorer; the learner never trains a model, it only averages.
    """

    def __init__(
        self,
        config: LearningConfig | None = None,
        scorer: RouteSimilarityScorer | None = None,
    ) -> None:
        """Initialize the learner.

        Args:
            config: Learning configuration. If None, uses default values.
            scorer: Similarity scorer. If None, uses default weights.
        """
        self._config = config or LearningConfig()
        self._scorer = scorer or RouteSimilarityScorer()
        self._routes: deque[HistoricalRoute] = deque(maxlen=self._config.max_history_size)
        self._rolling_accuracy: float | None = None
        self._patterns: dict[str, dict[str, _BucketAggregate]] = {}
        self._model_revision = 0
        self._routes_since_improvement = 0
        self._last_model_update: datetime | None = None
        self._last_retraining_reason: str | None = None
        self._reset_patterns()
        logger.info(
            "Initialized HistoricalRouteLearner with "
            f"max_history={self._config.max_history_size}, "
            f"threshold={self._config.similarity_threshold}, "
            f"top_k={self._config.similarity_top_k}"
        )

    @property
    def route_count(self) -> int:
        """Number of retained historical routes."""
        return len(self._routes)

    @property
    def model_revision(self) -> int:
        """Number of times the pattern aggregates were re-derived."""
        return self._model_revision

    def routes(self) -> tuple[HistoricalRoute, ...]:
        """Snapshot of the retained routes, oldest first."""
        return tuple(self._routes)

    def record_outcome(
        self,
        tracking_id: str,
        prediction: OptimizationResult,
        actual_result: ActualResult,
        request: RouteRequest | None = None,
        now: datetime | None = None,
    ) -> HistoricalRoute:
        """Record the reported outcome of a prediction.

        Args:
            tracking_id: Tracking id of the prediction
            prediction: The prediction that was returned to the caller
            actual_result: The reported outcome
            request: The request the prediction was made for (optional)
            now: Time of recording (defaults to now)

        Returns:
            The appended historical route
        """
        now = now or datetime.now()
        features = self._features_for(prediction, request)
        snapshot = self._snapshot_for(prediction)
        accuracy = calculate_accuracy(snapshot, actual_result)

        route = HistoricalRoute(
            route_id=tracking_id,
            recorded_at=now,
            features=features,
            prediction=snapshot,
            actual=actual_result,
            accuracy=accuracy,
            patterns=PatternKeys(
                distance_cluster=get_distance_cluster(features.distance),
                season=features.season,
                time_bucket=get_time_bucket(features.hour_of_day),
                driver_bucket=get_driver_bucket(features.driver_experience_years),
                vehicle_bucket=features.vehicle_type,
            ),
        )
        self._append(route)
        self._routes_since_improvement += 1
        self._check_retraining_needs(now)

        logger.info(
            f"Recorded outcome {tracking_id}: accuracy={accuracy.overall_accuracy:.3f}, "
            f"rolling={self._rolling_accuracy:.3f}, corpus={len(self._routes)}"
        )
        return route

    def predict_from_similar(
        self, request: RouteRequest, now: datetime | None = None
    ) -> SimilarRoutePrediction | None:
        """Predict an optimization factor from the most similar prior routes.

        Args:
            request: The new route request
            now: Departure time used when the request carries none

        Returns:
            Prediction, or None if the corpus is too small or nothing matches
        """
        config = self._config
        if len(self._routes) < config.min_similarity_corpus:
            logger.debug(
                f"Not enough history for similarity prediction "
                f"({len(self._routes)} < {config.min_similarity_corpus})"
            )
            return None

        features = extract_features(request, now or datetime.now())
        scored = [
            (self._scorer.score(features, route.features), index, route)
            for index, route in enumerate(self._routes)
        ]
        matches = [item for item in scored if item[0] > config.similarity_threshold]
        if not matches:
            logger.debug("No historical route above similarity threshold")
            return None

        # Equal scores: most recent first
        matches.sort(key=lambda item: (item[0], item[2].recorded_at, item[1]), reverse=True)
        top = matches[: config.similarity_top_k]

        similarities = np.array([item[0] for item in top], dtype=float)
        accuracies = np.array(
            [item[2].accuracy.overall_accuracy for item in top], dtype=float
        )
        factors = np.array(
            [item[2].prediction.optimization_factor for item in top], dtype=float
        )
        weights = similarities * accuracies
        if weights.sum() > 0:
            factor = float(np.average(factors, weights=weights))
        else:
            factor = float(np.average(factors, weights=similarities))

        average_accuracy = float(accuracies.mean())
        average_similarity = float(similarities.mean())
        confidence = 0.7 * average_accuracy + 0.3 * average_similarity

        hints = [
            HistoricalHint(
                factor=route.prediction.key_factors[0]
                if route.prediction.key_factors
                else "optimization",
                impact=route.prediction.predicted_savings_percent,
                confidence=route.accuracy.overall_accuracy,
            )
            for _, _, route in top
            if route.accuracy.overall_accuracy > HINT_ACCURACY_THRESHOLD
        ]

        return SimilarRoutePrediction(
            optimization_factor=clamp_factor(factor),
            confidence=max(0.0, min(1.0, confidence)),
            support_count=len(top),
            average_accuracy=average_accuracy,
            average_similarity=average_similarity,
            recommendations=tuple(hints[:MAX_HINTS]),
            model_version=self._scorer.VERSION,
        )

    def analyze_patterns(self) -> PatternAnalysis | None:
        """Describe accuracy per season, time, driver, vehicle and distance.

        Returns:
            Pattern analysis, or None if the corpus is too small
        """
        if len(self._routes) < self._config.min_pattern_corpus:
            logger.debug(
                f"Not enough history for pattern analysis "
                f"({len(self._routes)} < {self._config.min_pattern_corpus})"
            )
            return None

        stats = {
            dimension: {
                bucket: aggregate.statistics()
                for bucket, aggregate in sorted(buckets.items())
                if aggregate.accuracies
            }
            for dimension, buckets in self._patterns.items()
        }
        accuracies = np.array([r.accuracy.overall_accuracy for r in self._routes])
        routes = list(self._routes)

        return PatternAnalysis(
            seasonal=stats["season"],
            temporal=stats["time_bucket"],
            driver=stats["driver_bucket"],
            vehicle=stats["vehicle_bucket"],
            clusters=stats["distance_cluster"],
            total_routes=len(routes),
            average_accuracy=float(accuracies.mean()),
            best_conditions=self._conditions(routes[int(np.argmax(accuracies))]),
            worst_conditions=self._conditions(routes[int(np.argmin(accuracies))]),
            model_revision=self._model_revision,
        )

    def learning_metrics(self) -> LearningMetrics:
        """Long-run accuracy statistics.

        Returns:
            Learning metrics
        """
        by_field: dict[str, float] = {}
        for name in ("savings", "distance", "duration", "fuel", "cost"):
            values = [
                getattr(route.accuracy, f"{name}_accuracy")
                for route in self._routes
                if getattr(route.accuracy, f"{name}_accuracy") is not None
            ]
            if values:
                by_field[name] = float(np.mean(values))

        return LearningMetrics(
            total_routes=len(self._routes),
            average_accuracy=self._average_accuracy(),
            rolling_accuracy=self._rolling_accuracy or 0.0,
            improvement_trend=self.improvement_trend(),
            model_revision=self._model_revision,
            routes_since_improvement=self._routes_since_improvement,
            last_model_update=self._last_model_update,
            last_retraining_reason=self._last_retraining_reason,
            accuracy_by_field=by_field,
        )

    def improvement_trend(self) -> str:
        """Compare the last 20 routes with the 20 before them.

        Returns:
            improving, declining or stable
        """
        routes = list(self._routes)
        recent = routes[-TREND_WINDOW:]
        older = routes[-2 * TREND_WINDOW : -TREND_WINDOW]
        if len(recent) < TREND_MIN_ROUTES or len(older) < TREND_MIN_ROUTES:
            return "stable"

        improvement = np.mean([r.accuracy.overall_accuracy for r in recent]) - np.mean(
            [r.accuracy.overall_accuracy for r in older]
        )
        if improvement > TREND_MARGIN:
            return "improving"
        if improvement < -TREND_MARGIN:
            return "declining"
        return "stable"

    def learning_insights(self) -> dict | None:
        """Summarize what the corpus says about prediction quality.

        Returns:
            Insights dictionary, or None if the corpus is too small
        """
        analysis = self.analyze_patterns()
        if analysis is None:
            return None

        recommendations = []
        if analysis.temporal:
            best_slot = max(analysis.temporal, key=lambda k: analysis.temporal[k].average_accuracy)
            recommendations.append(
                {
                    "category": "timing",
                    "recommendation": f"Schedule routes during {best_slot} for best accuracy",
                    "average_accuracy": analysis.temporal[best_slot].average_accuracy,
                }
            )
        weak_seasons = [
            season
            for season, stat in analysis.seasonal.items()
            if stat.performance == "improvement_needed"
        ]
        for season in weak_seasons:
            recommendations.append(
                {
                    "category": "seasonal",
                    "recommendation": f"Add a safety margin to {season} predictions",
                    "average_accuracy": analysis.seasonal[season].average_accuracy,
                }
            )
        if analysis.clusters:
            worst_cluster = min(
                analysis.clusters, key=lambda k: analysis.clusters[k].average_accuracy
            )
            if analysis.clusters[worst_cluster].performance != "optimal_performance":
                recommendations.append(
                    {
                        "category": "distance",
                        "recommendation": f"Collect more outcomes for {worst_cluster} routes",
                        "average_accuracy": analysis.clusters[worst_cluster].average_accuracy,
                    }
                )

        return {
            "total_routes": analysis.total_routes,
            "average_accuracy": analysis.average_accuracy,
            "improvement_trend": self.improvement_trend(),
            "best_performing_conditions": analysis.best_conditions,
            "worst_performing_conditions": analysis.worst_conditions,
            "recommendations": recommendations,
        }

    def load(self, routes: list[HistoricalRoute]) -> None:
        """Replace the corpus with persisted routes and rebuild derived state.

        Args:
            routes: Historical routes, oldest first
        """
        self._routes.clear()
        self._rolling_accuracy = None
        self._reset_patterns()
        for route in routes:
            self._append(route)
        self._routes_since_improvement = 0
        logger.info(f"Loaded {len(self._routes)} historical routes")

    def _append(self, route: HistoricalRoute) -> None:
        if len(self._routes) == self._routes.maxlen:
            self._remove_from_patterns(self._routes[0])
        self._routes.append(route)
        self._add_to_patterns(route)
        self._update_rolling_accuracy(route.accuracy.overall_accuracy)

    def _update_rolling_accuracy(self, accuracy: float) -> None:
        if self._rolling_accuracy is None:
            self._rolling_accuracy = accuracy
            return
        rate = self._config.accuracy_ema_rate
        self._rolling_accuracy = self._rolling_accuracy * (1 - rate) + accuracy * rate

    def _average_accuracy(self) -> float:
        if not self._routes:
            return 0.0
        return float(np.mean([r.accuracy.overall_accuracy for r in self._routes]))

    def _check_retraining_needs(self, now: datetime) -> None:
        config = self._config
        window_start = now - timedelta(days=config.retraining_window_days)
        recent = [
            r.accuracy.overall_accuracy for r in self._routes if r.recorded_at >= window_start
        ]

        reason = None
        if len(recent) >= config.retraining_min_recent:
            recent_accuracy = float(np.mean(recent))
            if recent_accuracy < self._average_accuracy() - config.retraining_margin:
                reason = "accuracy_decline"
        if reason is None and self._routes_since_improvement >= config.retraining_volume:
            reason = "volume"

        if reason is not None:
            self._improve_model(reason, now)

    def _improve_model(self, reason: str, now: datetime) -> None:
        """Re-derive the pattern aggregates from the corpus."""
        self._reset_patterns()
        for route in self._routes:
            self._add_to_patterns(route)
        self._model_revision += 1
        self._routes_since_improvement = 0
        self._last_model_update = now
        self._last_retraining_reason = reason
        logger.info(
            f"Pattern aggregates re-derived (reason={reason}, "
            f"revision={self._model_revision}, corpus={len(self._routes)})"
        )

    def _reset_patterns(self) -> None:
        self._patterns = {dimension: {} for dimension in PATTERN_DIMENSIONS}

    def _add_to_patterns(self, route: HistoricalRoute) -> None:
        for dimension in PATTERN_DIMENSIONS:
            bucket = getattr(route.patterns, dimension)
            aggregate = self._patterns[dimension].setdefault(bucket, _BucketAggregate())
            aggregate.accuracies.append(route.accuracy.overall_accuracy)
            aggregate.savings.append(route.actual.actual_savings_percent)

    def _remove_from_patterns(self, route: HistoricalRoute) -> None:
        for dimension in PATTERN_DIMENSIONS:
            bucket = getattr(route.patterns, dimension)
            aggregate = self._patterns[dimension].get(bucket)
            if aggregate is None or not aggregate.accuracies:
                continue
            aggregate.accuracies.remove(route.accuracy.overall_accuracy)
            aggregate.savings.remove(route.actual.actual_savings_percent)
            if not aggregate.accuracies:
                del self._patterns[dimension][bucket]

    @staticmethod
    def _features_for(
        prediction: OptimizationResult, request: RouteRequest | None
    ) -> RouteFeatures:
        if request is not None:
            return extract_features(request, prediction.timestamp)
        departure = prediction.timestamp
        return RouteFeatures(
            distance=prediction.original_distance,
            vehicle_type="standard",
            hour_of_day=departure.hour,
            month=departure.month,
            day_of_week=departure.weekday(),
            driver_id=prediction.personalized_for_driver,
        )

    @staticmethod
    def _snapshot_for(prediction: OptimizationResult) -> PredictionSnapshot:
        key_factors = []
        if prediction.historically_enhanced:
            key_factors.append("historical_similarity")
        if prediction.vehicle_optimized:
            key_factors.append("vehicle_profile")
        if prediction.personalized_for_driver:
            key_factors.append("driver_personalization")
        key_factors.append("distance_baseline")

        predicted_fuel = None
        predicted_cost = None
        if prediction.vehicle_optimization is not None:
            predicted_fuel = prediction.vehicle_optimization.fuel_analysis.fuel_needed
            predicted_cost = prediction.vehicle_optimization.operating_cost.total_cost

        return PredictionSnapshot(
            optimization_factor=prediction.optimization_factor,
            confidence=prediction.confidence,
            predicted_savings_percent=prediction.predicted_savings_percent,
            predicted_distance=prediction.distance,
            predicted_duration=prediction.duration,
            model_version=prediction.model_version,
            predicted_fuel=predicted_fuel,
            predicted_cost=predicted_cost,
            key_factors=tuple(key_factors),
        )

    @staticmethod
    def _conditions(route: HistoricalRoute) -> ConditionSnapshot:
        return ConditionSnapshot(
            season=route.features.season,
            hour_of_day=route.features.hour_of_day,
            weather_condition=route.features.weather_condition,
            accuracy=route.accuracy.overall_accuracy,
        )
