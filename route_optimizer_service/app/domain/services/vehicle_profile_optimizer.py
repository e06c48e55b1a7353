"""Vehicle profile optimizer service.

Domain service that keeps per-vehicle profiles and computes vehicle-specific
consumption, viability, operating cost and warnings.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime

import numpy as np

from domain.entities import VehicleProfile, VehicleState
from domain.value_objects import (
    FactorBreakdown,
    FuelAnalysis,
    LearningConfig,
    OperatingCost,
    OptimizationResult,
    PerformanceData,
    RouteRequest,
    Savings,
    SeasonalAdjustments,
    TechnicalSpecs,
    VehicleData,
    VehicleOptimizationResult,
    VehicleRestrictions,
    VehicleWarning,
    ViabilityReport,
    clamp_factor,
    get_season,
)

logger = logging.getLogger(__name__)

MAINTENANCE_FACTORS = {
    "excellent": 0.95,
    "good": 1.0,
    "fair": 1.05,
    "needs_service": 1.1,
    "critical": 1.2,
}

# Per-km maintenance, tire wear and depreciation
OPERATING_COST_RATES = {
    "standard": (0.05, 0.01, 0.10),
    "van": (0.07, 0.015, 0.12),
    "truck": (0.12, 0.04, 0.20),
    "electric": (0.03, 0.012, 0.15),
    "motorcycle": (0.04, 0.02, 0.06),
}

BASE_POTENTIAL = {
    "standard": 0.15,
    "van": 0.18,
    "truck": 0.20,
    "electric": 0.25,
    "motorcycle": 0.15,
}
MAINTENANCE_POTENTIAL = {
    "excellent": 1.0,
    "good": 0.95,
    "fair": 0.85,
    "needs_service": 0.7,
    "critical": 0.5,
}

CONSUMPTION_EMA_RATE = 0.2
LOAD_IMPACT = 0.25
CLIMATE_CONTROL_INCREASE = 0.05
AUX_EQUIPMENT_INCREASE = 0.02
LOW_FUEL_LEVEL = 0.15
HARD_VIOLATION_PENALTY = 0.3
SOFT_ISSUE_PENALTY = 0.1
CHARGING_STOP_HOURS = 0.5
COMPLETENESS_ROUTES = 20


class VehicleProfileOptimizer:
    """Per-vehicle profile store and vehicle-specific refinements.

    Every vehicle type produces the same VehicleOptimizationResult shape;
    the type only selects which refinement adjusts it.
    """

    def __init__(self, config: LearningConfig | None = None) -> None:
        """Initialize the vehicle optimizer.

        Args:
            config: Learning configuration. If None, uses default values.
        """
        self._config = config or LearningConfig()
        self._profiles: dict[str, VehicleProfile] = {}

    def get_profile(self, vehicle_id: str) -> VehicleProfile | None:
        """Get a vehicle profile without creating it."""
        return self._profiles.get(vehicle_id)

    def profiles(self) -> dict[str, VehicleProfile]:
        """All vehicle profiles keyed by vehicle id."""
        return dict(self._profiles)

    def load(self, profiles: dict[str, VehicleProfile]) -> None:
        """Replace all profiles with persisted ones."""
        self._profiles = dict(profiles)
        logger.info(f"Loaded {len(self._profiles)} vehicle profiles")

    def get_or_create(
        self,
        vehicle_id: str,
        vehicle_data: VehicleData | None = None,
        performance: PerformanceData | None = None,
        now: datetime | None = None,
    ) -> VehicleProfile:
        """Create or update a vehicle profile.

        Args:
            vehicle_id: Vehicle identifier
            vehicle_data: Fields to merge into the profile (optional)
            performance: Measured performance of a completed route (optional)
            now: Update time (defaults to now)

        Returns:
            The created or updated profile
        """
        now = now or datetime.now()
        vehicle_data = vehicle_data or VehicleData()
        profile = self._profiles.get(vehicle_id)
        expected_type = profile.vehicle_type if profile else vehicle_data.vehicle_type
        if (
            vehicle_data.specs is not None
            and expected_type is not None
            and vehicle_data.specs.vehicle_type != expected_type
        ):
            raise ValueError(
                f"specs are for {vehicle_data.specs.vehicle_type}, "
                f"vehicle {vehicle_id} is {expected_type}"
            )

        if profile is None:
            vehicle_type = vehicle_data.vehicle_type or (
                vehicle_data.specs.vehicle_type if vehicle_data.specs else "standard"
            )
            profile = VehicleProfile(
                vehicle_id=vehicle_id,
                vehicle_type=vehicle_type,
                created_at=now,
                last_updated=now,
                technical_specs=TechnicalSpecs.for_vehicle_type(vehicle_type),
                current_state=VehicleState(),
                restrictions=VehicleRestrictions.for_vehicle_type(vehicle_type),
                seasonal=SeasonalAdjustments.for_vehicle_type(vehicle_type),
            )
            self._profiles[vehicle_id] = profile
            logger.info(f"Created {vehicle_type} vehicle profile {vehicle_id}")

        if vehicle_data.specs is not None:
            profile.technical_specs = vehicle_data.specs
        if vehicle_data.restrictions is not None:
            profile.restrictions = vehicle_data.restrictions
        if vehicle_data.seasonal is not None:
            profile.seasonal = vehicle_data.seasonal
        if vehicle_data.state is not None:
            profile.current_state.merge(vehicle_data.state)
        if vehicle_data.name is not None:
            profile.name = vehicle_data.name
        if vehicle_data.license_plate is not None:
            profile.license_plate = vehicle_data.license_plate

        if performance is not None:
            self._record_performance(profile, performance)

        profile.optimization_potential = self.calculate_optimization_potential(profile)
        profile.last_updated = now
        return profile

    def check_viability(
        self,
        request: RouteRequest,
        profile: VehicleProfile,
        duration: float,
        fuel_analysis: FuelAnalysis | None = None,
    ) -> ViabilityReport:
        """Check whether a vehicle can complete a route.

        Driving time, bridge weight and tunnel height are hard constraints;
        a speed cap below the route's limit and a fuel shortfall are soft
        issues that only lower the score.

        Args:
            request: The route request
            profile: The vehicle profile
            duration: Projected driving time in hours
            fuel_analysis: Fuel analysis of the route (optional)

        Returns:
            Viability report
        """
        reasons = []
        suggestions = []
        hard = 0
        soft = 0
        restrictions = profile.restrictions
        constraints = request.constraints

        if duration > restrictions.max_driving_hours:
            hard += 1
            reasons.append(
                f"Driving time {duration:.1f} h exceeds the "
                f"{restrictions.max_driving_hours:.1f} h limit"
            )
            suggestions.append("Split the route over several days or add a second driver")

        if constraints is not None:
            if (
                constraints.max_weight_tonnes is not None
                and profile.gross_weight_tonnes > constraints.max_weight_tonnes
            ):
                hard += 1
                reasons.append(
                    f"Gross weight {profile.gross_weight_tonnes:.1f} t exceeds the "
                    f"{constraints.max_weight_tonnes:.1f} t bridge limit"
                )
                suggestions.append("Reduce the load or avoid weight-restricted bridges")
            if (
                constraints.max_height_m is not None
                and profile.technical_specs.height_m > constraints.max_height_m
            ):
                hard += 1
                reasons.append(
                    f"Vehicle height {profile.technical_specs.height_m:.2f} m exceeds the "
                    f"{constraints.max_height_m:.2f} m clearance"
                )
                suggestions.append("Choose a route avoiding low tunnels and underpasses")
            if (
                constraints.speed_limit_kmh is not None
                and restrictions.speed_cap_kmh is not None
                and constraints.speed_limit_kmh > restrictions.speed_cap_kmh
            ):
                soft += 1
                reasons.append(
                    f"Vehicle is capped at {restrictions.speed_cap_kmh:.0f} km/h on a "
                    f"{constraints.speed_limit_kmh:.0f} km/h route"
                )
                suggestions.append("Plan arrival times with the vehicle speed cap")

        if fuel_analysis is not None and not fuel_analysis.can_complete_with_current_fuel:
            soft += 1
            stop_kind = "charging" if profile.technical_specs.is_electric else "refuel"
            reasons.append(
                f"Needs {fuel_analysis.fuel_needed:.1f} {fuel_analysis.unit}, "
                f"only {fuel_analysis.usable_fuel:.1f} {fuel_analysis.unit} usable"
            )
            suggestions.append(
                f"Schedule {fuel_analysis.recommended_refuel_stops} {stop_kind} stop(s)"
            )

        score = max(0.0, 1.0 - HARD_VIOLATION_PENALTY * hard - SOFT_ISSUE_PENALTY * soft)
        return ViabilityReport(
            can_complete=hard == 0,
            score=score,
            reasons=tuple(reasons),
            suggestions=tuple(suggestions),
        )

    def compute_fuel_consumption(
        self,
        request: RouteRequest,
        profile: VehicleProfile,
        distance: float,
        now: datetime | None = None,
    ) -> FuelAnalysis:
        """Estimate fuel (or energy) consumption of a route.

        consumption = base x load x maintenance x season x special conditions

        Args:
            request: The route request
            profile: The vehicle profile
            distance: Distance to drive in km
            now: Departure time used when the request carries none

        Returns:
            Fuel analysis
        """
        specs = profile.technical_specs
        state = profile.current_state
        highway_share = request.effective_highway_share

        base = specs.city_consumption * (1 - highway_share) + specs.highway_consumption * highway_share
        learned = profile.performance.real_world_consumption
        if learned is not None:
            base *= learned / specs.combined_consumption

        load_ratio = min(1.0, state.current_load / specs.max_load_capacity)
        load_factor = 1.0 + LOAD_IMPACT * load_ratio
        maintenance_factor = MAINTENANCE_FACTORS[state.maintenance_status]

        departure = request.departure_time or now or datetime.now()
        season = get_season(departure.month)
        if season == "winter":
            seasonal_factor = 1.0 + profile.seasonal.winter_increase
        elif season == "summer":
            seasonal_factor = 1.0 + profile.seasonal.summer_increase
        else:
            seasonal_factor = 1.0

        special_factor = 1.0 + AUX_EQUIPMENT_INCREASE * len(state.aux_equipment)
        if state.climate_control_on:
            special_factor += CLIMATE_CONTROL_INCREASE

        consumption = base * load_factor * maintenance_factor * seasonal_factor * special_factor
        fuel_needed = distance / 100.0 * consumption
        current_fuel = profile.current_fuel
        usable_fuel = max(0.0, current_fuel - specs.reserve_capacity)
        can_complete = fuel_needed <= usable_fuel

        stops = 0
        if not can_complete:
            per_stop = specs.tank_capacity - specs.reserve_capacity
            stops = math.ceil((fuel_needed - usable_fuel) / per_stop)

        return FuelAnalysis(
            estimated_consumption=consumption,
            fuel_needed=fuel_needed,
            current_fuel=current_fuel,
            usable_fuel=usable_fuel,
            can_complete_with_current_fuel=can_complete,
            recommended_refuel_stops=stops,
            factor_breakdown=FactorBreakdown(
                base_consumption=base,
                load_factor=load_factor,
                maintenance_factor=maintenance_factor,
                seasonal_factor=seasonal_factor,
                special_conditions_factor=special_factor,
            ),
            unit="kWh" if specs.is_electric else "L",
        )

    def compute_operating_cost(
        self,
        request: RouteRequest,
        profile: VehicleProfile,
        distance: float,
        fuel_analysis: FuelAnalysis | None = None,
        now: datetime | None = None,
    ) -> OperatingCost:
        """Estimate the operating cost of a route.

        Args:
            request: The route request
            profile: The vehicle profile
            distance: Distance to drive in km
            fuel_analysis: Precomputed fuel analysis (optional)
            now: Departure time used when the request carries none

        Returns:
            Operating cost with its breakdown
        """
        if fuel_analysis is None:
            fuel_analysis = self.compute_fuel_consumption(request, profile, distance, now)

        fuel_cost = fuel_analysis.fuel_needed * self._energy_price(request, profile)
        maintenance_rate, tire_rate, depreciation_rate = OPERATING_COST_RATES[profile.vehicle_type]
        maintenance_cost = distance * maintenance_rate
        tire_cost = distance * tire_rate
        depreciation_cost = distance * depreciation_rate
        total = fuel_cost + maintenance_cost + tire_cost + depreciation_cost

        return OperatingCost(
            total_cost=total,
            fuel_cost=fuel_cost,
            maintenance_cost=maintenance_cost,
            tire_cost=tire_cost,
            depreciation_cost=depreciation_cost,
            cost_per_km=total / distance if distance > 0 else 0.0,
        )

    def generate_warnings(self, profile: VehicleProfile) -> tuple[VehicleWarning, ...]:
        """Warn about low fuel and overdue maintenance.

        Args:
            profile: The vehicle profile

        Returns:
            Warnings, most severe first
        """
        warnings = []
        state = profile.current_state

        if state.fuel_level < LOW_FUEL_LEVEL:
            kind = "Battery" if profile.technical_specs.is_electric else "Fuel"
            warnings.append(
                VehicleWarning(
                    type="low_fuel",
                    severity="high",
                    message=f"{kind} level at {state.fuel_level:.0%}, refill before departure",
                    actionable=True,
                )
            )
        if state.maintenance_status == "critical":
            warnings.append(
                VehicleWarning(
                    type="maintenance",
                    severity="critical",
                    message="Critical maintenance state, service the vehicle before use",
                    actionable=True,
                )
            )
        elif state.maintenance_status == "needs_service":
            warnings.append(
                VehicleWarning(
                    type="maintenance",
                    severity="medium",
                    message="Vehicle needs service, consumption is up to 10% higher",
                    actionable=True,
                )
            )

        severities = ("low", "medium", "high", "critical")
        warnings.sort(key=lambda w: severities.index(w.severity), reverse=True)
        return tuple(warnings)

    def optimize_for_vehicle_type(
        self,
        request: RouteRequest,
        profile: VehicleProfile,
        result: OptimizationResult,
        now: datetime | None = None,
    ) -> VehicleOptimizationResult:
        """Refine a prediction for a specific vehicle.

        Args:
            request: The route request
            profile: The vehicle profile
            result: The prediction to refine
            now: Departure time used when the request carries none

        Returns:
            Vehicle optimization result
        """
        refinements = {
            "electric": self._refine_electric,
            "truck": self._refine_truck,
            "motorcycle": self._refine_motorcycle,
        }
        refine = refinements.get(profile.vehicle_type, self._refine_standard)

        factor, speed = refine(request, profile, result.optimization_factor)
        factor = clamp_factor(factor)
        distance = result.original_distance * (1 - factor)
        driving_hours = distance / speed
        if profile.vehicle_type == "motorcycle" and request.congestion > 0.5:
            driving_hours *= 0.9

        fuel_analysis = self.compute_fuel_consumption(request, profile, distance, now)
        duration = driving_hours
        charging_stops = 0
        rest_breaks = 0
        recommendations = []

        if profile.vehicle_type == "electric":
            charging_stops = fuel_analysis.recommended_refuel_stops
            duration += charging_stops * CHARGING_STOP_HOURS
            if charging_stops:
                recommendations.append(f"Plan {charging_stops} charging stop(s) of 30 minutes")
        elif profile.vehicle_type == "truck":
            rest_breaks = self._rest_breaks(driving_hours, profile.restrictions)
            duration += rest_breaks * profile.restrictions.rest_break_minutes / 60.0
            if rest_breaks:
                recommendations.append(f"Plan {rest_breaks} mandatory rest break(s)")
        elif profile.vehicle_type == "motorcycle" and request.congestion > 0.5:
            recommendations.append("Lane filtering shortens the congested sections")

        viability = self.check_viability(request, profile, driving_hours, fuel_analysis)
        operating_cost = self.compute_operating_cost(
            request, profile, distance, fuel_analysis, now
        )
        warnings = self.generate_warnings(profile)
        for suggestion in viability.suggestions:
            if suggestion not in recommendations:
                recommendations.append(suggestion)

        distance_saved = result.original_distance - distance
        fuel_saved = distance_saved / 100.0 * fuel_analysis.estimated_consumption

        logger.debug(
            f"Vehicle {profile.vehicle_id} ({profile.vehicle_type}): factor={factor:.4f}, "
            f"fuel={fuel_analysis.fuel_needed:.1f}{fuel_analysis.unit}, "
            f"viability={viability.score:.2f}"
        )
        return VehicleOptimizationResult(
            vehicle_id=profile.vehicle_id,
            vehicle_type=profile.vehicle_type,
            optimization_factor=factor,
            distance=distance,
            duration=duration,
            fuel_analysis=fuel_analysis,
            viability=viability,
            operating_cost=operating_cost,
            warnings=warnings,
            recommendations=tuple(recommendations),
            charging_stops=charging_stops,
            rest_breaks=rest_breaks,
            time_saved=distance_saved / speed,
            fuel_saved=fuel_saved,
            cost_saved=fuel_saved * self._energy_price(request, profile),
        )

    def apply_vehicle_optimization(
        self,
        result: OptimizationResult,
        vehicle_result: VehicleOptimizationResult,
    ) -> OptimizationResult:
        """Overwrite a prediction with vehicle-specific figures.

        Args:
            result: The prediction to update
            vehicle_result: Vehicle-specific refinement

        Returns:
            New result with vehicle figures and provenance
        """
        factor = clamp_factor(vehicle_result.optimization_factor)
        return replace(
            result,
            optimization_factor=factor,
            distance=vehicle_result.distance,
            duration=vehicle_result.duration,
            savings=Savings(
                distance_km=result.original_distance - vehicle_result.distance,
                time_hours=vehicle_result.time_saved,
                fuel_liters=vehicle_result.fuel_saved,
                cost=vehicle_result.cost_saved,
                percentage_saved=factor * 100.0,
            ),
            vehicle_optimized=True,
            vehicle_id=vehicle_result.vehicle_id,
            vehicle_optimization=vehicle_result,
        )

    def calculate_optimization_potential(self, profile: VehicleProfile) -> float:
        """Expected optimization headroom of a vehicle, in [0, 0.4]."""
        potential = BASE_POTENTIAL[profile.vehicle_type] * MAINTENANCE_POTENTIAL[
            profile.current_state.maintenance_status
        ]
        learned = profile.performance.real_world_consumption
        combined = profile.technical_specs.combined_consumption
        if learned is not None and learned < combined:
            potential += min(0.05, (combined - learned) / combined)
        return max(0.0, min(0.4, potential))

    def fleet_analytics(self) -> dict:
        """Aggregate metrics over all vehicle profiles."""
        profiles = list(self._profiles.values())
        if not profiles:
            return {
                "total_vehicles": 0,
                "by_type": {},
                "maintenance_overview": {},
                "average_optimization_potential": 0.0,
                "cost_analysis": {},
                "vehicles_needing_attention": [],
            }

        by_type: dict[str, int] = {}
        maintenance: dict[str, int] = {}
        for profile in profiles:
            by_type[profile.vehicle_type] = by_type.get(profile.vehicle_type, 0) + 1
            status = profile.current_state.maintenance_status
            maintenance[status] = maintenance.get(status, 0) + 1

        costs_per_km = [
            p.performance.average_cost_per_km
            for p in profiles
            if p.performance.average_cost_per_km is not None
        ]
        attention = [
            {
                "vehicle_id": p.vehicle_id,
                "warnings": [w.message for w in self.generate_warnings(p) if w.actionable],
            }
            for p in profiles
            if any(w.actionable for w in self.generate_warnings(p))
        ]

        return {
            "total_vehicles": len(profiles),
            "by_type": by_type,
            "maintenance_overview": maintenance,
            "average_optimization_potential": float(
                np.mean([p.optimization_potential for p in profiles])
            ),
            "cost_analysis": {
                "total_distance_km": float(sum(p.performance.total_distance_km for p in profiles)),
                "total_cost": float(sum(p.performance.total_cost for p in profiles)),
                "average_cost_per_km": float(np.mean(costs_per_km)) if costs_per_km else None,
            },
            "vehicles_needing_attention": attention,
        }

    def _record_performance(self, profile: VehicleProfile, performance: PerformanceData) -> None:
        history = profile.performance
        observed = performance.consumption_per_100km
        if history.real_world_consumption is None:
            history.real_world_consumption = observed
        else:
            history.real_world_consumption = (
                history.real_world_consumption * (1 - CONSUMPTION_EMA_RATE)
                + observed * CONSUMPTION_EMA_RATE
            )
        history.total_distance_km += performance.distance_km
        history.total_fuel_consumed += performance.fuel_consumed
        if performance.cost is not None:
            history.total_cost += performance.cost
        history.total_routes += 1
        history.data_completeness = max(
            history.data_completeness, min(1.0, history.total_routes / COMPLETENESS_ROUTES)
        )

    def _energy_price(self, request: RouteRequest, profile: VehicleProfile) -> float:
        if profile.technical_specs.is_electric:
            return self._config.electricity_price
        return request.fuel_price or self._config.default_fuel_price

    def _route_speed(self, request: RouteRequest, profile: VehicleProfile) -> float:
        speed = profile.technical_specs.cruise_speed_kmh
        if request.constraints is not None and request.constraints.speed_limit_kmh is not None:
            speed = min(speed, request.constraints.speed_limit_kmh)
        if profile.restrictions.speed_cap_kmh is not None:
            speed = min(speed, profile.restrictions.speed_cap_kmh)
        return speed

    def _refine_standard(
        self, request: RouteRequest, profile: VehicleProfile, factor: float
    ) -> tuple[float, float]:
        return factor, self._route_speed(request, profile)

    def _refine_electric(
        self, request: RouteRequest, profile: VehicleProfile, factor: float
    ) -> tuple[float, float]:
        # Regenerative braking pays off in city driving
        regen_bonus = 1.0 + 0.1 * (1.0 - request.effective_highway_share)
        return factor * regen_bonus, self._route_speed(request, profile)

    def _refine_truck(
        self, request: RouteRequest, profile: VehicleProfile, factor: float
    ) -> tuple[float, float]:
        return factor * 0.9, self._route_speed(request, profile)

    def _refine_motorcycle(
        self, request: RouteRequest, profile: VehicleProfile, factor: float
    ) -> tuple[float, float]:
        return factor * 1.05, self._route_speed(request, profile)

    @staticmethod
    def _rest_breaks(driving_hours: float, restrictions: VehicleRestrictions) -> int:
        interval = restrictions.rest_break_interval_hours
        if interval is None or driving_hours <= interval:
            return 0
        return math.ceil(driving_hours / interval) - 1
