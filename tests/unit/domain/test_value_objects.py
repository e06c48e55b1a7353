"""Tests for domain value objects.

These tests verify that value objects are immutable and properly validated.
"""

from dataclasses import FrozenInstanceError, replace
from datetime import datetime

import pytest
from domain.value_objects import (
    ActualResult,
    DriverRecommendation,
    LearningConfig,
    OptimizationResult,
    PersonalizationResult,
    PersonalizedWeights,
    RouteFeatures,
    RouteRequest,
    Savings,
    SeasonalAdjustments,
    TechnicalSpecs,
    TrafficData,
    VehicleData,
    VehicleRestrictions,
    VehicleStateUpdate,
    Waypoint,
    WeatherData,
    clamp_factor,
    get_distance_cluster,
    get_driver_bucket,
    get_season,
    get_time_bucket,
)


def _savings() -> Savings:
    return Savings(
        distance_km=10.0, time_hours=0.125, fuel_liters=0.8, cost=1.2, percentage_saved=10.0
    )


class TestRouteRequest:
    """Tests for RouteRequest value object."""

    def test_minimal_request_uses_neutral_defaults(self) -> None:
        """A request with only a distance has neutral traffic and weather."""
        request = RouteRequest(distance=450.0)

        assert request.congestion == 0.5
        assert request.weather_condition == "clear"
        assert request.weather_score == 1.0
        assert request.effective_highway_share == 0.5
        assert request.waypoints == ()

    def test_hints_are_exposed_through_properties(self) -> None:
        """Traffic and weather hints drive the derived properties."""
        request = RouteRequest(
            distance=120.0,
            traffic=TrafficData(congestion=0.8),
            weather=WeatherData(condition="rain", driving_score=0.6),
        )

        assert request.congestion == 0.8
        assert request.weather_condition == "rain"
        assert request.weather_score == 0.6

    @pytest.mark.parametrize(
        "route_type,expected",
        [("highway", 0.8), ("city", 0.2), ("mixed", 0.5)],
    )
    def test_highway_share_derived_from_route_type(
        self, route_type: str, expected: float
    ) -> None:
        """Route type determines the highway share when none is given."""
        request = RouteRequest(distance=100.0, route_type=route_type)
        assert request.effective_highway_share == expected

    def test_explicit_highway_share_wins(self) -> None:
        """An explicit highway share overrides the route type."""
        request = RouteRequest(distance=100.0, route_type="city", highway_share=0.9)
        assert request.effective_highway_share == 0.9

    @pytest.mark.parametrize("distance", [0.0, -5.0])
    def test_non_positive_distance_raises(self, distance: float) -> None:
        """Distance must be positive."""
        with pytest.raises(ValueError, match="distance must be positive"):
            RouteRequest(distance=distance)

    def test_invalid_route_type_raises(self) -> None:
        """Unknown route types are rejected."""
        with pytest.raises(ValueError, match="route_type"):
            RouteRequest(distance=100.0, route_type="offroad")

    def test_invalid_congestion_raises(self) -> None:
        """Congestion must be within [0, 1]."""
        with pytest.raises(ValueError, match="congestion"):
            TrafficData(congestion=1.5)

    def test_invalid_waypoint_raises(self) -> None:
        """Waypoint latitude must be valid."""
        with pytest.raises(ValueError, match="lat"):
            Waypoint(lat=95.0, lng=2.0)

    def test_request_is_immutable(self) -> None:
        """Requests cannot be modified after creation."""
        request = RouteRequest(distance=100.0)
        with pytest.raises(FrozenInstanceError):
            request.distance = 200.0  # type: ignore[misc]


class TestActualResult:
    """Tests for ActualResult value object."""

    def test_valid_actual_result(self) -> None:
        """Test creating a valid actual result with optional fields."""
        actual = ActualResult(
            actual_savings_percent=16.0,
            actual_distance=380.0,
            driver_satisfaction=4.5,
            vehicle_state=VehicleStateUpdate(fuel_level=0.4),
        )

        assert actual.actual_savings_percent == 16.0
        assert actual.route_followed is True
        assert actual.completed_successfully is True
        assert actual.vehicle_state.fuel_level == 0.4

    @pytest.mark.parametrize("savings", [-1.0, 101.0])
    def test_savings_out_of_range_raises(self, savings: float) -> None:
        """Actual savings must be a percentage."""
        with pytest.raises(ValueError, match="actual_savings_percent"):
            ActualResult(actual_savings_percent=savings)

    def test_invalid_satisfaction_raises(self) -> None:
        """Satisfaction is a 1-5 rating."""
        with pytest.raises(ValueError, match="driver_satisfaction"):
            ActualResult(actual_savings_percent=10.0, driver_satisfaction=6.0)

    def test_invalid_maintenance_status_raises(self) -> None:
        """Maintenance status must be a known label."""
        with pytest.raises(ValueError, match="maintenance_status"):
            VehicleStateUpdate(maintenance_status="broken")


class TestOptimizationResult:
    """Tests for OptimizationResult value object."""

    def test_valid_result(self) -> None:
        """Test creating a valid optimization result."""
        result = OptimizationResult(
            optimization_factor=0.1,
            confidence=0.75,
            original_distance=100.0,
            distance=90.0,
            duration=1.125,
            savings=_savings(),
            model_version="baseline-1.0",
            timestamp=datetime(2024, 4, 16, 9, 30),
        )

        assert result.predicted_savings_percent == pytest.approx(10.0)
        assert result.historically_enhanced is False
        assert result.fallback is False
        assert result.tracking_id is None

    @pytest.mark.parametrize("factor", [0.04, 0.41])
    def test_factor_out_of_bounds_raises(self, factor: float) -> None:
        """Optimization factor must stay in [0.05, 0.40]."""
        with pytest.raises(ValueError, match="optimization_factor"):
            OptimizationResult(
                optimization_factor=factor,
                confidence=0.5,
                original_distance=100.0,
                distance=90.0,
                duration=1.0,
                savings=_savings(),
                model_version="baseline-1.0",
                timestamp=datetime(2024, 4, 16, 9, 30),
            )

    def test_confidence_out_of_bounds_raises(self) -> None:
        """Confidence must stay in [0, 1]."""
        with pytest.raises(ValueError, match="confidence"):
            OptimizationResult(
                optimization_factor=0.1,
                confidence=1.2,
                original_distance=100.0,
                distance=90.0,
                duration=1.0,
                savings=_savings(),
                model_version="baseline-1.0",
                timestamp=datetime(2024, 4, 16, 9, 30),
            )

    @pytest.mark.parametrize(
        "value,expected",
        [(0.01, 0.05), (0.2, 0.2), (0.9, 0.40)],
    )
    def test_clamp_factor(self, value: float, expected: float) -> None:
        """Factors are clamped into [0.05, 0.40]."""
        assert clamp_factor(value) == expected


class TestBuckets:
    """Tests for the pattern bucket helpers."""

    @pytest.mark.parametrize(
        "month,season",
        [(1, "winter"), (3, "spring"), (5, "spring"), (7, "summer"), (10, "autumn"), (12, "winter")],
    )
    def test_get_season(self, month: int, season: str) -> None:
        """Months map to meteorological seasons."""
        assert get_season(month) == season

    @pytest.mark.parametrize(
        "hour,bucket",
        [(8, "morning-rush"), (12, "midday"), (18, "evening-rush"), (23, "night"), (3, "night")],
    )
    def test_get_time_bucket(self, hour: int, bucket: str) -> None:
        """Hours map to time-of-day buckets."""
        assert get_time_bucket(hour) == bucket

    @pytest.mark.parametrize(
        "years,bucket",
        [(None, "unknown"), (1, "novice"), (3, "intermediate"), (7, "experienced"), (15, "veteran")],
    )
    def test_get_driver_bucket(self, years: float | None, bucket: str) -> None:
        """Experience maps to driver buckets."""
        assert get_driver_bucket(years) == bucket

    def test_get_distance_cluster(self) -> None:
        """Distances are clustered per 100 km."""
        assert get_distance_cluster(450.0) == "cluster_4"
        assert get_distance_cluster(99.0) == "cluster_0"

    def test_route_features_season(self) -> None:
        """Route features expose the season of their month."""
        features = RouteFeatures(
            distance=100.0, vehicle_type="standard", hour_of_day=8, month=1, day_of_week=0
        )
        assert features.season == "winter"

    def test_route_features_invalid_hour_raises(self) -> None:
        """Hours must be within a day."""
        with pytest.raises(ValueError, match="hour_of_day"):
            RouteFeatures(
                distance=100.0, vehicle_type="standard", hour_of_day=24, month=1, day_of_week=0
            )


class TestLearningConfig:
    """Tests for LearningConfig value object."""

    def test_defaults(self) -> None:
        """Default configuration matches the documented constants."""
        config = LearningConfig()

        assert config.local_blend_weight == 0.7
        assert config.historical_blend_weight == pytest.approx(0.3)
        assert config.similarity_threshold == 0.6
        assert config.similarity_top_k == 10
        assert config.min_similarity_corpus == 5
        assert config.max_history_size == 1000
        assert config.pending_retention_hours == 24.0

    def test_invalid_blend_weight_raises(self) -> None:
        """Blend weight must be a fraction."""
        with pytest.raises(ValueError, match="local_blend_weight"):
            LearningConfig(local_blend_weight=1.5)

    def test_baseline_max_factor_cannot_exceed_global_clamp(self) -> None:
        """The baseline clamp must stay inside the global clamp."""
        with pytest.raises(ValueError, match="baseline_max_factor"):
            LearningConfig(baseline_max_factor=0.5)

    def test_negative_jitter_raises(self) -> None:
        """Jitter width cannot be negative."""
        with pytest.raises(ValueError, match="baseline_jitter"):
            LearningConfig(baseline_jitter=-0.01)


class TestVehicleValueObjects:
    """Tests for vehicle value objects."""

    def test_specs_for_each_vehicle_type(self) -> None:
        """Every vehicle type has default specs."""
        for vehicle_type in ("standard", "van", "truck", "electric", "motorcycle"):
            specs = TechnicalSpecs.for_vehicle_type(vehicle_type)
            assert specs.vehicle_type == vehicle_type
            assert specs.reserve_capacity < specs.tank_capacity

    def test_electric_specs_are_electric(self) -> None:
        """Electric vehicles consume kWh."""
        assert TechnicalSpecs.for_vehicle_type("electric").is_electric
        assert not TechnicalSpecs.for_vehicle_type("truck").is_electric

    def test_non_positive_consumption_rejected(self) -> None:
        """Every consumption figure must be positive."""
        specs = TechnicalSpecs.for_vehicle_type("standard")

        for field_name in ("city_consumption", "highway_consumption", "combined_consumption"):
            for value in (0.0, -6.0):
                with pytest.raises(ValueError, match="consumption"):
                    replace(specs, **{field_name: value})

    def test_unknown_vehicle_type_raises(self) -> None:
        """Unknown vehicle types are rejected."""
        with pytest.raises(ValueError, match="vehicle_type"):
            TechnicalSpecs.for_vehicle_type("spaceship")
        with pytest.raises(ValueError, match="vehicle_type"):
            VehicleData(vehicle_type="spaceship")

    def test_truck_restrictions(self) -> None:
        """Trucks get driving-time and rest-break limits."""
        restrictions = VehicleRestrictions.for_vehicle_type("truck")

        assert restrictions.max_driving_hours == 9.0
        assert restrictions.speed_cap_kmh == 90.0
        assert restrictions.rest_break_interval_hours == 4.5

    def test_electric_winter_increase(self) -> None:
        """Electric vehicles lose more range in winter."""
        assert SeasonalAdjustments.for_vehicle_type("electric").winter_increase == 0.30
        assert SeasonalAdjustments.for_vehicle_type("standard").winter_increase == 0.15


class TestPersonalizationResult:
    """Tests for PersonalizationResult value object."""

    def _weights(self) -> PersonalizedWeights:
        return PersonalizedWeights(
            time_importance=0.4,
            cost_importance=0.3,
            comfort_importance=0.2,
            safety_importance=0.1,
            traffic_sensitivity=0.5,
            speed_optimization=0.7,
            fuel_priority=1.0,
        )

    def test_more_than_three_recommendations_raises(self) -> None:
        """At most three recommendations are attached."""
        recommendation = DriverRecommendation(type="tip", message="Drive smoothly", impact="low")
        with pytest.raises(ValueError, match="at most 3"):
            PersonalizationResult(
                driver_id="driver_1",
                risk_level="medium",
                efficiency_focus="balanced",
                factor_multiplier=1.0,
                profile_confidence=0.3,
                fuel_efficiency_multiplier=1.0,
                route_adherence=0.8,
                speed_adjustment=0.0,
                weights=self._weights(),
                recommendations=(recommendation,) * 4,
            )

    def test_recommendation_priority_follows_impact(self) -> None:
        """High impact sorts before low impact."""
        high = DriverRecommendation(type="a", message="m", impact="high")
        low = DriverRecommendation(type="b", message="m", impact="low")
        assert high.priority > low.priority
