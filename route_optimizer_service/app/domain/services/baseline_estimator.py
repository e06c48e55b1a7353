"""Baseline estimator service.

Domain service producing a heuristic optimization estimate from route
distance alone.
"""

import logging
import random
from datetime import datetime

from domain.value_objects import (
    LearningConfig,
    OptimizationResult,
    Savings,
    Waypoint,
)

logger = logging.getLogger(__name__)


def project_route(
    original_distance: float,
    optimization_factor: float,
    config: LearningConfig,
    fuel_price: float | None = None,
) -> tuple[float, float, Savings]:
    """Project distance, duration and savings for an optimization factor.

    Args:
        original_distance: Requested distance in km
        optimization_factor: Fraction of the distance expected to be saved
        config: Learning configuration (speed, fuel rate, default price)
        fuel_price: Fuel price per liter (optional)

    Returns:
        Tuple of (projected distance, projected duration, savings)
    """
    price = fuel_price if fuel_price is not None else config.default_fuel_price
    projected_distance = original_distance * (1 - optimization_factor)
    distance_saved = original_distance - projected_distance
    fuel_saved = distance_saved * config.fuel_saving_per_km

    savings = Savings(
        distance_km=distance_saved,
        time_hours=distance_saved / config.average_speed_kmh,
        fuel_liters=fuel_saved,
        cost=fuel_saved * price,
        percentage_saved=optimization_factor * 100.0,
    )
    return projected_distance, projected_distance / config.average_speed_kmh, savings


class BaselineEstimator:
    """Heuristic distance-based optimization estimate.

    factor = clamp(base + min(distance / 1000, cap) + jitter, min, max)

    The jitter is drawn from an injected random generator so estimates are
    reproducible; a jitter width of 0 makes the estimate deterministic.
    """

    MODEL_VERSION = "baseline-1.0"
    FALLBACK_MODEL_VERSION = "baseline-fallback-1.0"

    def __init__(
        self,
        config: LearningConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the baseline estimator.

        Args:
            config: Learning configuration. If None, uses default values.
            rng: Random generator for the jitter. If None, a fresh one is used.
        """
        self._config = config or LearningConfig()
        self._rng = rng or random.Random()

    def calculate_factor(self, distance: float) -> float:
        """Calculate the baseline optimization factor for a distance.

        Args:
            distance: Route distance in km

        Returns:
            Optimization factor within the baseline clamp

        Raises:
            ValueError: If distance is not positive
        """
        if distance <= 0:
            raise ValueError(f"distance must be positive, got {distance}")

        config = self._config
        jitter = 0.0
        if config.baseline_jitter > 0:
            jitter = self._rng.uniform(-config.baseline_jitter, config.baseline_jitter)

        factor = (
            config.baseline_base_factor
            + min(distance / 1000.0, config.baseline_distance_cap)
            + jitter
        )
        return max(config.baseline_min_factor, min(config.baseline_max_factor, factor))

    def estimate(
        self,
        distance: float,
        fuel_price: float | None = None,
        timestamp: datetime | None = None,
        waypoints: tuple[Waypoint, ...] = (),
    ) -> OptimizationResult:
        """Produce a baseline optimization estimate.

        Args:
            distance: Route distance in km
            fuel_price: Fuel price per liter (optional)
            timestamp: Time of the estimate (defaults to now)
            waypoints: Waypoints carried onto the result

        Returns:
            Baseline optimization result

        Raises:
            ValueError: If distance is not positive
        """
        factor = self.calculate_factor(distance)
        logger.debug(f"Baseline factor for {distance:.1f} km: {factor:.4f}")
        return self._build_result(
            distance,
            factor,
            self._config.baseline_confidence,
            self.MODEL_VERSION,
            fuel_price,
            timestamp,
            waypoints,
            fallback=False,
        )

    def fallback_estimate(
        self,
        distance: float,
        fuel_price: float | None = None,
        timestamp: datetime | None = None,
        waypoints: tuple[Waypoint, ...] = (),
    ) -> OptimizationResult:
        """Produce the fixed degraded estimate used when richer stages fail.

        Args:
            distance: Route distance in km
            fuel_price: Fuel price per liter (optional)
            timestamp: Time of the estimate (defaults to now)
            waypoints: Waypoints carried onto the result

        Returns:
            Optimization result tagged with fallback=True
        """
        if distance <= 0:
            raise ValueError(f"distance must be positive, got {distance}")
        return self._build_result(
            distance,
            self._config.fallback_factor,
            self._config.fallback_confidence,
            self.FALLBACK_MODEL_VERSION,
            fuel_price,
            timestamp,
            waypoints,
            fallback=True,
        )

    def _build_result(
        self,
        distance: float,
        factor: float,
        confidence: float,
        model_version: str,
        fuel_price: float | None,
        timestamp: datetime | None,
        waypoints: tuple[Waypoint, ...],
        fallback: bool,
    ) -> OptimizationResult:
        projected_distance, duration, savings = project_route(
            distance, factor, self._config, fuel_price
        )
        return OptimizationResult(
            optimization_factor=factor,
            confidence=confidence,
            original_distance=distance,
            distance=projected_distance,
            duration=duration,
            savings=savings,
            model_version=model_version,
            timestamp=timestamp or datetime.now(),
            waypoints=waypoints,
            fallback=fallback,
        )
