"""Unit tests for the vehicle profile optimizer."""

from datetime import datetime

import pytest
from domain.services import BaselineEstimator, VehicleProfileOptimizer
from domain.value_objects import (
    LearningConfig,
    PerformanceData,
    RouteConstraints,
    RouteRequest,
    TechnicalSpecs,
    TrafficData,
    VehicleData,
    VehicleStateUpdate,
)

START = datetime(2024, 4, 16, 9, 30)
WINTER = datetime(2024, 1, 16, 9, 30)


@pytest.fixture
def optimizer() -> VehicleProfileOptimizer:
    """Vehicle optimizer with default configuration."""
    return VehicleProfileOptimizer()


@pytest.fixture
def estimator() -> BaselineEstimator:
    """Deterministic baseline estimator."""
    return BaselineEstimator(LearningConfig(baseline_jitter=0.0))


def _profile(optimizer: VehicleProfileOptimizer, vehicle_type: str = "standard", **state):
    update = VehicleStateUpdate(**state) if state else None
    return optimizer.get_or_create(
        f"{vehicle_type}_1", VehicleData(vehicle_type=vehicle_type, state=update), now=START
    )


class TestProfileStore:
    """Tests for vehicle profile creation and updates."""

    def test_defaults_to_standard(self, optimizer: VehicleProfileOptimizer) -> None:
        """Profiles without a type are standard vehicles."""
        profile = optimizer.get_or_create("vehicle_1", now=START)

        assert profile.vehicle_type == "standard"
        assert profile.technical_specs.tank_capacity == 60.0
        assert profile.restrictions.speed_cap_kmh is None
        assert profile.optimization_potential == pytest.approx(0.15 * 0.95)
        assert optimizer.get_profile("vehicle_1") is profile

    def test_truck_gets_truck_restrictions(self, optimizer: VehicleProfileOptimizer) -> None:
        """Trucks get driving-time, speed and rest-break limits."""
        profile = _profile(optimizer, "truck")

        assert profile.restrictions.max_driving_hours == 9.0
        assert profile.restrictions.speed_cap_kmh == 90.0
        assert profile.restrictions.rest_break_interval_hours == 4.5

    def test_state_is_merged(self, optimizer: VehicleProfileOptimizer) -> None:
        """Only the fields set in an update change."""
        _profile(optimizer, fuel_level=0.4)
        profile = optimizer.get_or_create(
            "standard_1", VehicleData(state=VehicleStateUpdate(current_load=200.0))
        )

        assert profile.current_state.fuel_level == 0.4
        assert profile.current_state.current_load == 200.0
        assert profile.current_fuel == pytest.approx(24.0)
        assert profile.gross_weight_tonnes == pytest.approx(1.6)

    def test_specs_of_another_type_are_rejected(self, optimizer: VehicleProfileOptimizer) -> None:
        """Specs must match the type of the vehicle."""
        _profile(optimizer, "van")

        with pytest.raises(ValueError, match="specs are for truck"):
            optimizer.get_or_create(
                "van_1", VehicleData(specs=TechnicalSpecs.for_vehicle_type("truck"))
            )

    def test_performance_is_learned_by_ema(self, optimizer: VehicleProfileOptimizer) -> None:
        """The first observation is taken as is, later ones move by 20%."""
        optimizer.get_or_create(
            "vehicle_1", performance=PerformanceData(distance_km=100.0, fuel_consumed=8.0, cost=20.0)
        )
        profile = optimizer.get_or_create(
            "vehicle_1", performance=PerformanceData(distance_km=100.0, fuel_consumed=10.0)
        )

        performance = profile.performance
        assert performance.real_world_consumption == pytest.approx(8.4)
        assert performance.total_routes == 2
        assert performance.total_distance_km == pytest.approx(200.0)
        assert performance.total_fuel_consumed == pytest.approx(18.0)
        assert performance.average_cost_per_km == pytest.approx(0.1)
        assert performance.data_completeness == pytest.approx(0.1)

    def test_better_real_world_consumption_raises_potential(
        self, optimizer: VehicleProfileOptimizer
    ) -> None:
        """Consuming less than specified adds at most 5% potential."""
        profile = optimizer.get_or_create(
            "vehicle_1", performance=PerformanceData(distance_km=100.0, fuel_consumed=5.0)
        )
        assert profile.optimization_potential == pytest.approx(0.15 * 0.95 + 0.05)


class TestFuelConsumption:
    """Tests for the consumption model."""

    def test_base_consumption(self, optimizer: VehicleProfileOptimizer) -> None:
        """Base consumption mixes city and highway figures."""
        profile = _profile(optimizer)
        request = RouteRequest(distance=200.0, highway_share=0.5, departure_time=START)

        analysis = optimizer.compute_fuel_consumption(request, profile, 200.0)

        assert analysis.estimated_consumption == pytest.approx(6.5)
        assert analysis.fuel_needed == pytest.approx(13.0)
        assert analysis.usable_fuel == pytest.approx(52.0)
        assert analysis.can_complete_with_current_fuel is True
        assert analysis.recommended_refuel_stops == 0
        assert analysis.unit == "L"

    def test_all_factors_multiply(self, optimizer: VehicleProfileOptimizer) -> None:
        """Load, maintenance, season and equipment all raise consumption."""
        profile = _profile(
            optimizer,
            current_load=250.0,
            maintenance_status="needs_service",
            climate_control_on=True,
            aux_equipment=("fridge", "lift"),
        )
        request = RouteRequest(distance=100.0, highway_share=0.5, departure_time=WINTER)

        analysis = optimizer.compute_fuel_consumption(request, profile, 100.0)

        breakdown = analysis.factor_breakdown
        assert breakdown.load_factor == pytest.approx(1.125)
        assert breakdown.maintenance_factor == pytest.approx(1.1)
        assert breakdown.seasonal_factor == pytest.approx(1.15)
        assert breakdown.special_conditions_factor == pytest.approx(1.09)
        assert analysis.estimated_consumption == pytest.approx(6.5 * 1.125 * 1.1 * 1.15 * 1.09)

    def test_refuel_stops(self, optimizer: VehicleProfileOptimizer) -> None:
        """A shortfall is covered by full tanks above the reserve."""
        profile = _profile(optimizer, fuel_level=0.2)
        request = RouteRequest(distance=1000.0, highway_share=0.5, departure_time=START)

        analysis = optimizer.compute_fuel_consumption(request, profile, 1000.0)

        assert analysis.usable_fuel == pytest.approx(4.0)
        assert analysis.can_complete_with_current_fuel is False
        assert analysis.recommended_refuel_stops == 2

    def test_learned_consumption_scales_base(self, optimizer: VehicleProfileOptimizer) -> None:
        """Real-world consumption rescales the manufacturer figures."""
        profile = optimizer.get_or_create(
            "vehicle_1", performance=PerformanceData(distance_km=100.0, fuel_consumed=8.0)
        )
        request = RouteRequest(distance=100.0, highway_share=0.5, departure_time=START)

        analysis = optimizer.compute_fuel_consumption(request, profile, 100.0)

        assert analysis.factor_breakdown.base_consumption == pytest.approx(6.5 * 8.0 / 6.3)

    def test_operating_cost(self, optimizer: VehicleProfileOptimizer) -> None:
        """Operating cost adds fuel, maintenance, tires and depreciation."""
        profile = _profile(optimizer)
        request = RouteRequest(distance=100.0, highway_share=0.5, departure_time=START)

        cost = optimizer.compute_operating_cost(request, profile, 100.0)

        assert cost.fuel_cost == pytest.approx(6.5 * 1.5)
        assert cost.maintenance_cost == pytest.approx(5.0)
        assert cost.tire_cost == pytest.approx(1.0)
        assert cost.depreciation_cost == pytest.approx(10.0)
        assert cost.total_cost == pytest.approx(25.75)
        assert cost.cost_per_km == pytest.approx(0.2575)


class TestViability:
    """Tests for the viability check."""

    def test_unconstrained_route_is_viable(self, optimizer: VehicleProfileOptimizer) -> None:
        """No limits means a full score."""
        profile = _profile(optimizer)
        report = optimizer.check_viability(RouteRequest(distance=100.0), profile, 1.5)

        assert report.can_complete is True
        assert report.score == pytest.approx(1.0)
        assert report.reasons == ()

    def test_hard_constraints(self, optimizer: VehicleProfileOptimizer) -> None:
        """Bridge weight and tunnel height block the route."""
        profile = _profile(optimizer, "truck", current_load=5000.0)
        request = RouteRequest(
            distance=300.0,
            constraints=RouteConstraints(max_weight_tonnes=10.0, max_height_m=3.5),
        )

        report = optimizer.check_viability(request, profile, 4.0)

        assert report.can_complete is False
        assert report.score == pytest.approx(0.4)
        assert len(report.reasons) == 2

    def test_driving_time_limit(self, optimizer: VehicleProfileOptimizer) -> None:
        """Exceeding the driving time limit blocks the route."""
        profile = _profile(optimizer, "truck")
        report = optimizer.check_viability(RouteRequest(distance=900.0), profile, 10.0)

        assert report.can_complete is False
        assert report.score == pytest.approx(0.7)
        assert "Split the route" in report.suggestions[0]

    def test_soft_issues_only_lower_score(self, optimizer: VehicleProfileOptimizer) -> None:
        """A speed cap and a fuel shortfall keep the route viable."""
        profile = _profile(optimizer, "truck")
        request = RouteRequest(
            distance=300.0, constraints=RouteConstraints(speed_limit_kmh=110.0)
        )
        low_fuel = _profile(optimizer, fuel_level=0.2)
        fuel_request = RouteRequest(distance=1000.0, highway_share=0.5, departure_time=START)
        fuel = optimizer.compute_fuel_consumption(fuel_request, low_fuel, 1000.0)

        capped = optimizer.check_viability(request, profile, 4.0)
        short = optimizer.check_viability(fuel_request, low_fuel, 10.0, fuel)

        assert capped.can_complete is True
        assert capped.score == pytest.approx(0.9)
        assert short.can_complete is True
        assert short.score == pytest.approx(0.9)
        assert short.suggestions == ("Schedule 2 refuel stop(s)",)


class TestWarnings:
    """Tests for vehicle warnings."""

    def test_no_warnings_for_healthy_vehicle(self, optimizer: VehicleProfileOptimizer) -> None:
        """A full, well maintained vehicle has no warnings."""
        assert optimizer.generate_warnings(_profile(optimizer)) == ()

    def test_warnings_sorted_by_severity(self, optimizer: VehicleProfileOptimizer) -> None:
        """Critical maintenance comes before low fuel."""
        profile = _profile(optimizer, fuel_level=0.1, maintenance_status="critical")

        warnings = optimizer.generate_warnings(profile)

        assert [w.severity for w in warnings] == ["critical", "high"]
        assert [w.type for w in warnings] == ["maintenance", "low_fuel"]

    def test_needs_service_is_medium(self, optimizer: VehicleProfileOptimizer) -> None:
        """Overdue service is a medium warning."""
        profile = _profile(optimizer, maintenance_status="needs_service")
        warnings = optimizer.generate_warnings(profile)

        assert len(warnings) == 1
        assert warnings[0].severity == "medium"


class TestOptimizeForVehicleType:
    """Tests for the per-type refinements."""

    def test_standard_keeps_factor(
        self, optimizer: VehicleProfileOptimizer, estimator: BaselineEstimator
    ) -> None:
        """Standard vehicles keep the factor and drive at cruise speed."""
        profile = _profile(optimizer)
        request = RouteRequest(distance=450.0, highway_share=0.5, departure_time=START)
        result = estimator.estimate(450.0, timestamp=START)

        refined = optimizer.optimize_for_vehicle_type(request, profile, result)

        assert refined.optimization_factor == pytest.approx(0.23)
        assert refined.distance == pytest.approx(450.0 * 0.77)
        assert refined.duration == pytest.approx(450.0 * 0.77 / 90.0)
        assert refined.time_saved == pytest.approx(450.0 * 0.23 / 90.0)
        assert refined.fuel_saved == pytest.approx(450.0 * 0.23 / 100.0 * 6.5)
        assert refined.viability.can_complete is True

    def test_truck_adds_rest_breaks(
        self, optimizer: VehicleProfileOptimizer, estimator: BaselineEstimator
    ) -> None:
        """Trucks lower the factor and add mandatory rest breaks."""
        profile = _profile(optimizer, "truck")
        request = RouteRequest(distance=900.0, highway_share=0.8, departure_time=START)
        result = estimator.estimate(900.0, timestamp=START)

        refined = optimizer.optimize_for_vehicle_type(request, profile, result)

        distance = 900.0 * (1 - 0.207)
        assert refined.optimization_factor == pytest.approx(0.207)
        assert refined.distance == pytest.approx(distance)
        assert refined.rest_breaks == 1
        assert refined.duration == pytest.approx(distance / 80.0 + 0.75)
        assert refined.viability.can_complete is True
        assert "Plan 1 mandatory rest break(s)" in refined.recommendations

    def test_electric_adds_charging_stops(
        self, optimizer: VehicleProfileOptimizer, estimator: BaselineEstimator
    ) -> None:
        """Electric vehicles gain regen in cities and stop to charge."""
        profile = _profile(optimizer, "electric", fuel_level=0.5)
        request = RouteRequest(distance=600.0, route_type="city", departure_time=START)
        result = estimator.estimate(600.0, timestamp=START)

        refined = optimizer.optimize_for_vehicle_type(request, profile, result)

        factor = 0.23 * 1.08
        distance = 600.0 * (1 - factor)
        assert refined.optimization_factor == pytest.approx(factor)
        assert refined.fuel_analysis.unit == "kWh"
        assert refined.charging_stops == 1
        assert refined.duration == pytest.approx(distance / 95.0 + 0.5)
        assert refined.viability.can_complete is True
        assert refined.viability.score == pytest.approx(0.9)

    def test_motorcycle_filters_through_congestion(
        self, optimizer: VehicleProfileOptimizer, estimator: BaselineEstimator
    ) -> None:
        """Motorcycles are faster in congested traffic."""
        profile = _profile(optimizer, "motorcycle")
        request = RouteRequest(
            distance=100.0, traffic=TrafficData(congestion=0.8), departure_time=START
        )
        result = estimator.estimate(100.0, timestamp=START)

        refined = optimizer.optimize_for_vehicle_type(request, profile, result)

        factor = 0.18 * 1.05
        assert refined.optimization_factor == pytest.approx(factor)
        assert refined.duration == pytest.approx(100.0 * (1 - factor) / 95.0 * 0.9)
        assert "Lane filtering shortens the congested sections" in refined.recommendations

    def test_factor_is_clamped(self, optimizer: VehicleProfileOptimizer) -> None:
        """Refinements never push the factor above 0.40."""
        config = LearningConfig(
            baseline_base_factor=0.30, baseline_max_factor=0.40, baseline_jitter=0.0
        )
        result = BaselineEstimator(config).estimate(500.0, timestamp=START)
        profile = _profile(optimizer, "electric")
        request = RouteRequest(distance=500.0, route_type="city", departure_time=START)

        refined = optimizer.optimize_for_vehicle_type(request, profile, result)

        assert refined.optimization_factor == pytest.approx(0.40)

    def test_apply_vehicle_optimization(
        self, optimizer: VehicleProfileOptimizer, estimator: BaselineEstimator
    ) -> None:
        """Applying the refinement overwrites figures and sets provenance."""
        profile = _profile(optimizer, "truck")
        request = RouteRequest(distance=900.0, highway_share=0.8, departure_time=START)
        result = estimator.estimate(900.0, timestamp=START)
        refined = optimizer.optimize_for_vehicle_type(request, profile, result)

        applied = optimizer.apply_vehicle_optimization(result, refined)

        assert applied.vehicle_optimized is True
        assert applied.vehicle_id == "truck_1"
        assert applied.vehicle_optimization is refined
        assert applied.optimization_factor == pytest.approx(0.207)
        assert applied.duration == pytest.approx(refined.duration)
        assert applied.savings.percentage_saved == pytest.approx(20.7)
        assert applied.original_distance == 900.0


class TestFleetAnalytics:
    """Tests for vehicle fleet analytics."""

    def test_empty_fleet(self, optimizer: VehicleProfileOptimizer) -> None:
        """An empty fleet reports zeros."""
        analytics = optimizer.fleet_analytics()

        assert analytics["total_vehicles"] == 0
        assert analytics["vehicles_needing_attention"] == []

    def test_fleet_aggregates(self, optimizer: VehicleProfileOptimizer) -> None:
        """Vehicles are counted per type and maintenance status."""
        _profile(optimizer)
        _profile(optimizer, "truck", maintenance_status="critical")
        _profile(optimizer, "van")

        analytics = optimizer.fleet_analytics()

        assert analytics["total_vehicles"] == 3
        assert analytics["by_type"] == {"standard": 1, "truck": 1, "van": 1}
        assert analytics["maintenance_overview"] == {"good": 2, "critical": 1}
        assert analytics["cost_analysis"]["average_cost_per_km"] is None
        assert [v["vehicle_id"] for v in analytics["vehicles_needing_attention"]] == ["truck_1"]
