"""Driver personalization service.

Domain service that keeps per-driver behavioral profiles, updates them from
reported outcomes and personalizes predictions.
"""

import logging
from dataclasses import replace
from datetime import datetime

import numpy as np

from domain.entities import DriverProfile
from domain.services.baseline_estimator import project_route
from domain.value_objects import (
    ActualResult,
    DriverRecommendation,
    LearningConfig,
    OptimizationResult,
    PersonalizationResult,
    PersonalizedWeights,
    RouteRequest,
    clamp_factor,
)

logger = logging.getLogger(__name__)

SPEED_LEARNING_RATE = 0.1
PREFERENCE_LEARNING_RATE = 0.05
FUEL_LEARNING_RATE = 0.08
PUNCTUALITY_LEARNING_RATE = 0.1
PERFORMANCE_LEARNING_RATE = 0.1

SATISFIED_RATING = 4.0
ON_TIME_TOLERANCE_MINUTES = 10.0
DOMINANT_WEIGHT_GROWTH = 1.02
DOMINANT_WEIGHT_CAP = 0.8
COMPLETENESS_ROUTES = 20
MIN_COACHING_ROUTES = 5
MAX_RECOMMENDATIONS = 3

# Used for relative performance while the fleet has a single driver
REFERENCE_FLEET_AVERAGES = {
    "fuel_efficiency": 1.0,
    "punctuality": 0.8,
    "route_adherence": 0.75,
    "satisfaction": 4.0,
}


def _ema(current: float, observed: float, rate: float) -> float:
    return current * (1 - rate) + observed * rate


class DriverPersonalizationService:
    """Per-driver profile store and personalization rules.

    Profiles are created on first reference and never deleted. Every update
    is a small-step exponential moving average, so one unusual route never
    dominates a profile.
    """

    def __init__(self, config: LearningConfig | None = None) -> None:
        """Initialize the personalization service.

        Args:
            config: Learning configuration. If None, uses default values.
        """
        self._config = config or LearningConfig()
        self._profiles: dict[str, DriverProfile] = {}

    def get_profile(self, driver_id: str) -> DriverProfile | None:
        """Get a driver profile without creating it."""
        return self._profiles.get(driver_id)

    def get_or_create(self, driver_id: str, now: datetime | None = None) -> DriverProfile:
        """Get a driver profile, creating a neutral one on first reference.

        Args:
            driver_id: Driver identifier
            now: Creation time (defaults to now)

        Returns:
            The driver profile
        """
        profile = self._profiles.get(driver_id)
        if profile is None:
            now = now or datetime.now()
            profile = DriverProfile(driver_id=driver_id, created_at=now, last_updated=now)
            self._profiles[driver_id] = profile
            logger.info(f"Created driver profile {driver_id}")
        return profile

    def profiles(self) -> dict[str, DriverProfile]:
        """All driver profiles keyed by driver id."""
        return dict(self._profiles)

    def load(self, profiles: dict[str, DriverProfile]) -> None:
        """Replace all profiles with persisted ones."""
        self._profiles = dict(profiles)
        logger.info(f"Loaded {len(self._profiles)} driver profiles")

    def update_from_outcome(
        self,
        driver_id: str,
        prior_request: RouteRequest | None,
        prediction: OptimizationResult,
        actual: ActualResult,
        now: datetime | None = None,
    ) -> DriverProfile:
        """Get or create a driver profile and learn from one outcome."""
        profile = self.get_or_create(driver_id, now)
        return self.apply_to_profile(profile, prior_request, prediction, actual, now)

    def apply_to_profile(
        self,
        profile: DriverProfile,
        prior_request: RouteRequest | None,
        prediction: OptimizationResult,
        actual: ActualResult,
        now: datetime | None = None,
    ) -> DriverProfile:
        """Update a driver profile from a completed route.

        Args:
            profile: Profile to update in place
            prior_request: Request the prediction was made for (optional)
            prediction: The prediction returned for the route
            actual: The reported outcome
            now: Update time (defaults to now)

        Returns:
            The updated profile
        """
        now = now or datetime.now()
        behavior = profile.behavior
        performance = profile.performance
        satisfied = (
            actual.driver_satisfaction is not None
            and actual.driver_satisfaction >= SATISFIED_RATING
        )

        if actual.actual_duration is not None and prediction.duration > 0:
            deviation = (actual.actual_duration - prediction.duration) / prediction.duration
            behavior.average_speed_deviation = _ema(
                behavior.average_speed_deviation, deviation, SPEED_LEARNING_RATE
            )
            behavior.speed_consistency = _ema(
                behavior.speed_consistency, 1.0 - min(1.0, abs(deviation)), SPEED_LEARNING_RATE
            )

        if satisfied and prior_request is not None:
            if prior_request.route_type == "highway":
                behavior.prefers_highways = _ema(
                    behavior.prefers_highways, 1.0, PREFERENCE_LEARNING_RATE
                )
            elif prior_request.route_type == "city":
                behavior.prefers_highways = _ema(
                    behavior.prefers_highways, 0.0, PREFERENCE_LEARNING_RATE
                )
            if prior_request.congestion > 0.7:
                behavior.tolerates_traffic = _ema(
                    behavior.tolerates_traffic, 1.0, PREFERENCE_LEARNING_RATE
                )

        predicted_fuel = self._predicted_fuel(prediction)
        if actual.actual_fuel_consumed:
            efficiency = predicted_fuel / actual.actual_fuel_consumed
            behavior.fuel_efficiency_ratio = _ema(
                behavior.fuel_efficiency_ratio, efficiency, FUEL_LEARNING_RATE
            )

        if actual.arrival_delay_minutes is not None:
            delay = actual.arrival_delay_minutes
            behavior.average_delay_minutes = _ema(
                behavior.average_delay_minutes, delay, PUNCTUALITY_LEARNING_RATE
            )
            on_time = 1.0 if abs(delay) <= ON_TIME_TOLERANCE_MINUTES else 0.0
            behavior.punctuality_score = _ema(
                behavior.punctuality_score, on_time, PUNCTUALITY_LEARNING_RATE
            )

        performance.route_adherence = _ema(
            performance.route_adherence,
            1.0 if actual.route_followed else 0.0,
            PERFORMANCE_LEARNING_RATE,
        )
        if not actual.route_followed and actual.deviation_reasons:
            performance.add_deviation_reasons(actual.deviation_reasons)

        if actual.driver_satisfaction is not None:
            performance.average_satisfaction = _ema(
                performance.average_satisfaction,
                actual.driver_satisfaction,
                PERFORMANCE_LEARNING_RATE,
            )
        if behavior.fuel_efficiency_ratio > 1.1:
            performance.fuel_efficiency_rating = min(5.0, performance.fuel_efficiency_rating + 0.1)

        if satisfied:
            dominant = profile.weights.dominant()
            grown = getattr(profile.weights, dominant) * DOMINANT_WEIGHT_GROWTH
            setattr(profile.weights, dominant, min(DOMINANT_WEIGHT_CAP, grown))

        if actual.route_followed and satisfied:
            profile.risk.tolerates_experimental_routes = True
        elif not actual.route_followed:
            profile.risk.prefers_proven_routes = True

        vehicle_type = self._vehicle_type_for(prior_request, prediction)
        if vehicle_type is not None:
            profile.record_vehicle_type(vehicle_type)
        if prior_request is not None and prior_request.driver_experience_years is not None:
            profile.experience_years = prior_request.driver_experience_years

        profile.total_routes_completed += 1
        self._update_learning_stats(profile, now)
        profile.last_updated = now

        logger.info(
            f"Driver profile {profile.driver_id} updated: "
            f"routes={profile.total_routes_completed}, "
            f"completeness={profile.learning_stats.profile_completeness:.2f}, "
            f"confidence={profile.learning_stats.confidence_level:.2f}"
        )
        return profile

    def personalize(
        self,
        profile: DriverProfile,
        result: OptimizationResult,
        request: RouteRequest,
    ) -> PersonalizationResult:
        """Derive a personalization adjustment from a driver profile.

        Args:
            profile: The driver profile
            result: The prediction to personalize
            request: The route request

        Returns:
            Personalization result
        """
        behavior = profile.behavior
        weights = profile.weights

        if profile.risk.accepts_aggressive_optimization:
            risk_level = "high"
        elif profile.risk.tolerates_experimental_routes:
            risk_level = "medium"
        else:
            risk_level = "low"

        if weights.time > 0.4:
            focus = "time"
        elif weights.cost > 0.4:
            focus = "cost"
        elif weights.comfort > 0.3:
            focus = "comfort"
        else:
            focus = "balanced"

        multiplier = 1.0
        if behavior.fuel_efficiency_ratio > 1.1:
            multiplier *= 1.1
        if profile.performance.route_adherence < 0.7:
            multiplier *= 0.9

        return PersonalizationResult(
            driver_id=profile.driver_id,
            risk_level=risk_level,
            efficiency_focus=focus,
            factor_multiplier=multiplier,
            profile_confidence=profile.learning_stats.confidence_level,
            fuel_efficiency_multiplier=behavior.fuel_efficiency_ratio,
            route_adherence=profile.performance.route_adherence,
            speed_adjustment=behavior.average_speed_deviation,
            weights=PersonalizedWeights(
                time_importance=weights.time,
                cost_importance=weights.cost,
                comfort_importance=weights.comfort,
                safety_importance=weights.safety,
                traffic_sensitivity=1.0 - behavior.tolerates_traffic,
                speed_optimization=behavior.speed_consistency,
                fuel_priority=1.2 if behavior.fuel_efficiency_ratio > 1.1 else 1.0,
            ),
            recommendations=self.generate_recommendations(profile, request),
        )

    def apply_personalization(
        self,
        result: OptimizationResult,
        personalization: PersonalizationResult,
        fuel_price: float | None = None,
    ) -> OptimizationResult:
        """Apply a personalization adjustment to a prediction.

        Args:
            result: The prediction to adjust
            personalization: Adjustment derived from the driver profile
            fuel_price: Fuel price per liter used for the savings (optional)

        Returns:
            New result with the adjusted factor, clamped to [0.05, 0.40]
        """
        factor = clamp_factor(result.optimization_factor * personalization.factor_multiplier)
        distance, duration, savings = project_route(
            result.original_distance, factor, self._config, fuel_price
        )
        return replace(
            result,
            optimization_factor=factor,
            confidence=max(
                0.0, min(1.0, result.confidence * personalization.profile_confidence)
            ),
            distance=distance,
            duration=duration,
            savings=savings,
            personalized_for_driver=personalization.driver_id,
            driver_personalization=personalization,
        )

    def generate_recommendations(
        self, profile: DriverProfile, request: RouteRequest
    ) -> tuple[DriverRecommendation, ...]:
        """Pick up to three coaching recommendations, highest impact first."""
        behavior = profile.behavior
        recommendations = []

        if behavior.fuel_efficiency_ratio < 0.9:
            recommendations.append(
                DriverRecommendation(
                    type="fuel_efficiency",
                    message="Keep a smoother, more constant speed to improve consumption by 8-12%",
                    impact="medium",
                )
            )
        if profile.performance.route_adherence < 0.7:
            recommendations.append(
                DriverRecommendation(
                    type="route_adherence",
                    message="Following the recommended route could save another 5-8% time and fuel",
                    impact="high",
                )
            )
        if behavior.punctuality_score < 0.7:
            recommendations.append(
                DriverRecommendation(
                    type="time_management",
                    message="Depart 10-15 minutes earlier to avoid rushing and save fuel",
                    impact="medium",
                )
            )
        if behavior.prefers_highways > 0.7 and request.effective_highway_share < 0.5:
            recommendations.append(
                DriverRecommendation(
                    type="route_preference",
                    message="An alternative with more highway driving may suit your preferences",
                    impact="low",
                    actionable=False,
                )
            )

        recommendations.sort(key=lambda r: r.priority, reverse=True)
        return tuple(recommendations[:MAX_RECOMMENDATIONS])

    def coaching_insights(self, driver_id: str) -> dict | None:
        """Build coaching insights for a driver.

        Args:
            driver_id: Driver identifier

        Returns:
            Insights dictionary, or None if the driver has fewer than 5 routes
        """
        profile = self._profiles.get(driver_id)
        if profile is None or profile.total_routes_completed < MIN_COACHING_ROUTES:
            return None

        behavior = profile.behavior
        performance = profile.performance

        strengths = []
        if behavior.fuel_efficiency_ratio > 1.1:
            strengths.append("Excellent fuel economy, 10%+ more efficient than predicted")
        if behavior.punctuality_score > 0.9:
            strengths.append("Very punctual, on time in more than 90% of routes")
        if performance.route_adherence > 0.8:
            strengths.append("Follows recommendations closely")
        if performance.average_satisfaction > 4.5:
            strengths.append("Highly satisfied with optimized routes")

        improvement_areas = []
        if behavior.fuel_efficiency_ratio < 0.9:
            improvement_areas.append(
                {
                    "area": "fuel_efficiency",
                    "current_score": behavior.fuel_efficiency_ratio,
                    "improvement_potential": "8-15% additional savings",
                    "actions": ["Constant speed", "Gentler acceleration", "Anticipate traffic"],
                }
            )
        if performance.route_adherence < 0.7:
            improvement_areas.append(
                {
                    "area": "route_adherence",
                    "current_score": performance.route_adherence,
                    "improvement_potential": "5-12% additional savings",
                    "actions": ["Try suggested routes", "Report routes that do not work"],
                }
            )

        coaching = []
        if behavior.fuel_efficiency_ratio < 1.0:
            coaching.append(
                {
                    "category": "fuel_efficiency",
                    "title": "Improve fuel economy",
                    "actions": [
                        "Hold a constant speed on highways",
                        "Avoid sudden acceleration",
                        "Use cruise control where possible",
                    ],
                    "expected_improvement": "10-15% fuel savings",
                }
            )
        if performance.route_adherence < 0.8:
            coaching.append(
                {
                    "category": "route_adherence",
                    "title": "Follow recommended routes more often",
                    "actions": [
                        "Test suggested routes at least once",
                        "Give feedback when a route does not work",
                        "Compare actual times with the estimates",
                    ],
                    "expected_improvement": "8-12% time and cost savings",
                }
            )

        return {
            "driver_id": driver_id,
            "total_routes": profile.total_routes_completed,
            "profile_completeness": profile.learning_stats.profile_completeness,
            "strengths": strengths,
            "improvement_areas": improvement_areas,
            "performance_trends": {
                "fuel_efficiency": "improving" if behavior.fuel_efficiency_ratio > 1.0 else "stable",
                "punctuality": "excellent" if behavior.punctuality_score > 0.8 else "good",
                "satisfaction": "positive"
                if performance.average_satisfaction > 4.0
                else "neutral",
            },
            "coaching_recommendations": coaching,
            "relative_performance": self._relative_performance(profile),
        }

    def compare_drivers(self, driver_a: str, driver_b: str) -> dict | None:
        """Compare the learned metrics of two drivers.

        Returns:
            Comparison dictionary, or None if either profile is missing
        """
        profile_a = self._profiles.get(driver_a)
        profile_b = self._profiles.get(driver_b)
        if profile_a is None or profile_b is None:
            return None

        metrics_a = self._metrics(profile_a)
        metrics_b = self._metrics(profile_b)
        comparison = {
            name: {
                driver_a: metrics_a[name],
                driver_b: metrics_b[name],
                "difference": metrics_a[name] - metrics_b[name],
            }
            for name in metrics_a
        }
        score_a = self._composite_score(profile_a)
        score_b = self._composite_score(profile_b)
        return {
            "drivers": [driver_a, driver_b],
            "metrics": comparison,
            "better_overall": driver_a if score_a >= score_b else driver_b,
        }

    def fleet_analytics(self) -> dict:
        """Aggregate metrics over all driver profiles."""
        profiles = list(self._profiles.values())
        if not profiles:
            return {"total_drivers": 0, "total_routes": 0, "averages": {}, "top_performers": []}

        metrics = [self._metrics(profile) for profile in profiles]
        averages = {
            name: float(np.mean([m[name] for m in metrics])) for name in metrics[0]
        }
        ranked = sorted(profiles, key=self._composite_score, reverse=True)
        return {
            "total_drivers": len(profiles),
            "total_routes": sum(p.total_routes_completed for p in profiles),
            "averages": averages,
            "top_performers": [
                {"driver_id": p.driver_id, "score": self._composite_score(p)}
                for p in ranked[:3]
            ],
        }

    def _update_learning_stats(self, profile: DriverProfile, now: datetime) -> None:
        """Recompute completeness and confidence; neither ever decreases."""
        routes = profile.total_routes_completed
        completeness = min(1.0, routes / COMPLETENESS_ROUTES)
        if profile.performance.deviation_reasons:
            completeness += 0.1
        if profile.vehicle_history:
            completeness += 0.1
        if routes >= 10:
            completeness += 0.1
        completeness = min(1.0, completeness)
        confidence = min(1.0, completeness * 0.8 + min(0.2, routes * 0.04))

        stats = profile.learning_stats
        stats.profile_completeness = max(stats.profile_completeness, completeness)
        stats.confidence_level = max(stats.confidence_level, confidence)
        stats.last_learning_update = now

    def _predicted_fuel(self, prediction: OptimizationResult) -> float:
        if prediction.vehicle_optimization is not None:
            return prediction.vehicle_optimization.fuel_analysis.fuel_needed
        return prediction.distance * self._config.reference_consumption_per_km

    @staticmethod
    def _vehicle_type_for(
        request: RouteRequest | None, prediction: OptimizationResult
    ) -> str | None:
        if prediction.vehicle_optimization is not None:
            return prediction.vehicle_optimization.vehicle_type
        if request is not None:
            return request.vehicle_type
        return None

    @staticmethod
    def _metrics(profile: DriverProfile) -> dict[str, float]:
        return {
            "fuel_efficiency": profile.behavior.fuel_efficiency_ratio,
            "punctuality": profile.behavior.punctuality_score,
            "route_adherence": profile.performance.route_adherence,
            "satisfaction": profile.performance.average_satisfaction,
            "completeness": profile.learning_stats.profile_completeness,
        }

    @staticmethod
    def _composite_score(profile: DriverProfile) -> float:
        return (
            0.4 * profile.behavior.fuel_efficiency_ratio
            + 0.2 * profile.behavior.punctuality_score
            + 0.2 * profile.performance.route_adherence
            + 0.2 * profile.performance.average_satisfaction / 5.0
        )

    def _relative_performance(self, profile: DriverProfile) -> dict[str, float]:
        if len(self._profiles) > 1:
            fleet = self.fleet_analytics()["averages"]
        else:
            fleet = REFERENCE_FLEET_AVERAGES
        own = self._metrics(profile)
        return {
            f"{name}_vs_fleet": own[name] / fleet[name] if fleet[name] else 1.0
            for name in REFERENCE_FLEET_AVERAGES
        }
