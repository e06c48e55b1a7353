"""Unit tests for the baseline estimator."""

import random
from datetime import datetime

import pytest
from domain.services import BaselineEstimator, project_route
from domain.value_objects import LearningConfig, Waypoint


@pytest.fixture
def deterministic_config() -> LearningConfig:
    """Configuration without jitter."""
    return LearningConfig(baseline_jitter=0.0)


class TestCalculateFactor:
    """Tests for the baseline factor formula."""

    @pytest.mark.parametrize(
        "distance,expected",
        [(50.0, 0.13), (100.0, 0.18), (450.0, 0.23), (5000.0, 0.23)],
    )
    def test_factor_without_jitter(
        self, deterministic_config: LearningConfig, distance: float, expected: float
    ) -> None:
        """Factor is base plus the capped distance term."""
        estimator = BaselineEstimator(deterministic_config)
        assert estimator.calculate_factor(distance) == pytest.approx(expected)

    def test_factor_stays_in_baseline_range_with_jitter(self) -> None:
        """Jittered factors never leave [0.05, 0.25]."""
        estimator = BaselineEstimator(rng=random.Random(42))
        for distance in (1.0, 10.0, 150.0, 450.0, 2000.0):
            for _ in range(50):
                factor = estimator.calculate_factor(distance)
                assert 0.05 <= factor <= 0.25

    def test_same_seed_gives_same_factor(self) -> None:
        """Estimates are reproducible with a seeded generator."""
        first = BaselineEstimator(rng=random.Random(7)).calculate_factor(300.0)
        second = BaselineEstimator(rng=random.Random(7)).calculate_factor(300.0)
        assert first == second

    @pytest.mark.parametrize("distance", [0.0, -10.0])
    def test_non_positive_distance_raises(self, distance: float) -> None:
        """Distance must be positive."""
        with pytest.raises(ValueError, match="distance must be positive"):
            BaselineEstimator().calculate_factor(distance)


class TestEstimate:
    """Tests for the baseline estimate."""

    def test_estimate_projects_route(self, deterministic_config: LearningConfig) -> None:
        """Distance, duration and savings follow from the factor."""
        estimator = BaselineEstimator(deterministic_config)
        timestamp = datetime(2024, 4, 16, 9, 30)

        result = estimator.estimate(100.0, fuel_price=2.0, timestamp=timestamp)

        assert result.optimization_factor == pytest.approx(0.18)
        assert result.confidence == 0.75
        assert result.original_distance == 100.0
        assert result.distance == pytest.approx(82.0)
        assert result.duration == pytest.approx(82.0 / 80.0)
        assert result.savings.distance_km == pytest.approx(18.0)
        assert result.savings.fuel_liters == pytest.approx(18.0 * 0.08)
        assert result.savings.cost == pytest.approx(18.0 * 0.08 * 2.0)
        assert result.savings.percentage_saved == pytest.approx(18.0)
        assert result.model_version == BaselineEstimator.MODEL_VERSION
        assert result.timestamp == timestamp
        assert result.fallback is False

    def test_estimate_uses_default_fuel_price(self, deterministic_config: LearningConfig) -> None:
        """Without a fuel price the configured default is used."""
        result = BaselineEstimator(deterministic_config).estimate(100.0)
        assert result.savings.cost == pytest.approx(result.savings.fuel_liters * 1.50)

    def test_estimate_carries_waypoints(self, deterministic_config: LearningConfig) -> None:
        """Waypoints of the request are echoed on the result."""
        waypoints = (Waypoint(lat=48.85, lng=2.35), Waypoint(lat=45.76, lng=4.84, type="end"))
        result = BaselineEstimator(deterministic_config).estimate(460.0, waypoints=waypoints)
        assert result.waypoints == waypoints

    def test_estimate_has_no_provenance(self, deterministic_config: LearningConfig) -> None:
        """A baseline estimate is not enhanced by any other stage."""
        result = BaselineEstimator(deterministic_config).estimate(450.0)

        assert result.historically_enhanced is False
        assert result.personalized_for_driver is None
        assert result.vehicle_optimized is False


class TestProjectRoute:
    """Tests for the shared route projection."""

    def test_project_route(self) -> None:
        """Projection scales distance and savings with the factor."""
        distance, duration, savings = project_route(200.0, 0.1, LearningConfig())

        assert distance == pytest.approx(180.0)
        assert duration == pytest.approx(180.0 / 80.0)
        assert savings.distance_km == pytest.approx(20.0)
        assert savings.time_hours == pytest.approx(20.0 / 80.0)


class TestFallbackEstimate:
    """Tests for the degraded fallback estimate."""

    def test_fallback_is_fixed_and_tagged(self) -> None:
        """Fallback uses the fixed factor and confidence."""
        result = BaselineEstimator().fallback_estimate(300.0)

        assert result.optimization_factor == pytest.approx(0.08)
        assert result.confidence == pytest.approx(0.5)
        assert result.fallback is True
        assert result.model_version == BaselineEstimator.FALLBACK_MODEL_VERSION
        assert result.distance == pytest.approx(276.0)
