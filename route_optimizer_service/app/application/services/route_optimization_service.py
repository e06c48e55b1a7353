"""Route Optimization Service.

Main application service that composes the baseline, driver, vehicle and
historical stages into one prediction and feeds reported outcomes back
into them.
"""

import asyncio
import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta

from domain.entities import DriverProfile, VehicleProfile
from domain.interfaces import IClock, ILearningStorage, IPredictionLedger
from domain.services import (
    BaselineEstimator,
    DriverPersonalizationService,
    HistoricalRouteLearner,
    VehicleProfileOptimizer,
)
from domain.value_objects import (
    VEHICLE_TYPES,
    ActualResult,
    LearningConfig,
    LearningData,
    OptimizationResult,
    PatternAnalysis,
    PendingPrediction,
    PerformanceData,
    RouteRequest,
    Savings,
    SeasonalFactors,
    SimilarRoutePrediction,
    VehicleData,
    clamp_factor,
    get_season,
)

_LOGGER = logging.getLogger(__name__)

BLEND_VERSION = "route-blend-1.0"
DRIVER_VERSION = "driver-1.0"
VEHICLE_VERSION = "vehicle-1.0"

# Fuel consumption, traffic delay multiplier and safety margin per season
SEASONAL_ADJUSTMENTS = {
    "winter": (1.10, 1.15, 0.20),
    "spring": (1.00, 1.05, 0.10),
    "summer": (0.95, 1.10, 0.05),
    "autumn": (1.05, 1.08, 0.15),
}


class RouteOptimizationService:
    """Application service for route optimization.

    This service is the main entry point for optimize / report use cases.
    Each prediction gets a tracking id and waits in the pending ledger until
    its outcome is reported or it expires.

    All shared state is mutated between awaits only; the awaits are on the
    ledger, the storage and sleep.
    """

    def __init__(
        self,
        ledger: IPredictionLedger,
        clock: IClock,
        storage: ILearningStorage | None = None,
        config: LearningConfig | None = None,
        estimator: BaselineEstimator | None = None,
        learner: HistoricalRouteLearner | None = None,
        driver_service: DriverPersonalizationService | None = None,
        vehicle_optimizer: VehicleProfileOptimizer | None = None,
    ) -> None:
        """Initialize the route optimization service.

        Args:
            ledger: Pending prediction ledger implementation
            clock: Clock implementation
            storage: Learning storage implementation (optional)
            config: Learning configuration. If None, uses default values.
            estimator: Baseline estimator (optional)
            learner: Historical route learner (optional)
            driver_service: Driver personalization service (optional)
            vehicle_optimizer: Vehicle profile optimizer (optional)
        """
        self._config = config or LearningConfig()
        self._ledger = ledger
        self._clock = clock
        self._storage = storage
        self._estimator = estimator or BaselineEstimator(self._config)
        self._learner = learner or HistoricalRouteLearner(self._config)
        self._drivers = driver_service or DriverPersonalizationService(self._config)
        self._vehicles = vehicle_optimizer or VehicleProfileOptimizer(self._config)
        self._last_sweep: datetime | None = None
        self._retention = timedelta(hours=self._config.pending_retention_hours)
        self._sweep_interval = timedelta(minutes=self._config.sweep_interval_minutes)

    @property
    def config(self) -> LearningConfig:
        """Learning configuration in use."""
        return self._config

    async def initialize(self) -> None:
        """Load persisted state, starting empty when loading fails."""
        if self._storage is None:
            _LOGGER.info("No learning storage configured, starting with empty state")
            return

        try:
            routes = await self._storage.load_historical_routes()
            drivers = await self._storage.load_driver_profiles()
            vehicles = await self._storage.load_vehicle_profiles()
        except Exception as e:
            _LOGGER.warning("Failed to load learned state, starting empty: %s", e)
            return

        self._learner.load(routes)
        self._drivers.load(drivers)
        self._vehicles.load(vehicles)
        _LOGGER.info(
            "Loaded %d historical routes, %d driver profiles, %d vehicle profiles",
            len(routes),
            len(drivers),
            len(vehicles),
        )

    async def optimize(self, request: RouteRequest) -> OptimizationResult:
        """Produce an optimization estimate for a route.

        Stages: baseline, driver personalization (driver_id with a known
        profile), vehicle refinement (vehicle_id with a known profile) and the
        historical blend (enough similar history). Any unexpected stage fault
        yields the baseline fallback tagged with fallback=True.

        Args:
            request: Route request

        Returns:
            Optimization result carrying a fresh tracking id
        """
        now = self._clock.now()
        try:
            result = self._run_stages(request, now)
        except Exception:
            _LOGGER.exception("Optimization stages failed, returning fallback estimate")
            result = self._estimator.fallback_estimate(
                request.distance, request.fuel_price, now, request.waypoints
            )

        tracking_id = f"route_{uuid.uuid4().hex}"
        result = replace(result, tracking_id=tracking_id)
        try:
            await self._ledger.add(PendingPrediction(tracking_id, request, result, now))
        except Exception:
            _LOGGER.exception("Failed to track prediction %s", tracking_id)

        _LOGGER.info(
            "Prediction %s: factor=%.4f, confidence=%.2f, historical=%s, driver=%s, "
            "vehicle=%s, fallback=%s",
            tracking_id,
            result.optimization_factor,
            result.confidence,
            result.historically_enhanced,
            result.personalized_for_driver,
            result.vehicle_optimized,
            result.fallback,
        )
        return result

    async def report_actual_result(
        self,
        tracking_id: str,
        actual: ActualResult,
        driver_id: str | None = None,
        vehicle_id: str | None = None,
    ) -> bool:
        """Reconcile a prediction with its reported outcome.

        Driver and vehicle ids default to the ones of the original request.

        Args:
            tracking_id: Tracking id returned by optimize()
            actual: The reported outcome
            driver_id: Driver to update (optional)
            vehicle_id: Vehicle to update (optional)

        Returns:
            True if the outcome was recorded, False if the tracking id is
            unknown, already reported or expired, or recording failed. A
            failing driver or vehicle update is logged and does not undo
            the recorded outcome.
        """
        now = self._clock.now()
        entry = await self._ledger.take(tracking_id)
        if entry is None:
            _LOGGER.warning("No pending prediction for tracking id %s", tracking_id)
            return False
        if now - entry.created_at > self._retention:
            _LOGGER.warning("Pending prediction %s expired before its report", tracking_id)
            return False

        driver_id = driver_id or entry.request.driver_id
        vehicle_id = vehicle_id or entry.request.vehicle_id

        try:
            self._learner.record_outcome(
                tracking_id, entry.result, actual, entry.request, now
            )
        except Exception:
            _LOGGER.exception("Failed to learn from outcome %s", tracking_id)
            return False

        # The outcome is recorded from here on; profile faults only lose that update
        if driver_id:
            try:
                self._drivers.update_from_outcome(
                    driver_id, entry.request, entry.result, actual, now
                )
            except Exception:
                _LOGGER.exception(
                    "Failed to update driver %s from outcome %s", driver_id, tracking_id
                )
        if vehicle_id:
            try:
                self._update_vehicle_from_outcome(vehicle_id, entry, actual, now)
            except Exception:
                _LOGGER.exception(
                    "Failed to update vehicle %s from outcome %s", vehicle_id, tracking_id
                )

        await self._persist()
        _LOGGER.info(
            "Outcome %s reconciled (driver=%s, vehicle=%s)", tracking_id, driver_id, vehicle_id
        )
        return True

    async def cleanup_pending_predictions(self) -> int:
        """Remove pending predictions older than the retention window.

        Returns:
            Number of removed predictions
        """
        now = self._clock.now()
        removed = await self._ledger.purge_older_than(now - self._retention)
        self._last_sweep = now
        if removed:
            _LOGGER.info("Removed %d expired pending predictions", removed)
        return removed

    async def sweep_if_due(self) -> int:
        """Run the pending-ledger sweep when the sweep interval has elapsed.

        Returns:
            Number of removed predictions (0 when the sweep was not due)
        """
        now = self._clock.now()
        if self._last_sweep is not None and now - self._last_sweep < self._sweep_interval:
            return 0
        return await self.cleanup_pending_predictions()

    async def run_periodic_cleanup(
        self,
        interval_seconds: float | None = None,
        max_iterations: int | None = None,
    ) -> None:
        """Sweep the pending ledger periodically.

        Intended to run as a background task in an asyncio host.

        Args:
            interval_seconds: Seconds between sweeps (defaults to the config)
            max_iterations: Stop after this many sweeps (runs forever if None)
        """
        interval = interval_seconds
        if interval is None:
            interval = self._config.sweep_interval_minutes * 60
        iterations = 0
        while max_iterations is None or iterations < max_iterations:
            await asyncio.sleep(interval)
            await self.cleanup_pending_predictions()
            iterations += 1

    async def get_driver_profile(self, driver_id: str) -> DriverProfile | None:
        """Get a driver profile, or None if the driver is unknown."""
        return self._drivers.get_profile(driver_id)

    async def get_vehicle_profile(self, vehicle_id: str) -> VehicleProfile | None:
        """Get a vehicle profile, or None if the vehicle is unknown."""
        return self._vehicles.get_profile(vehicle_id)

    async def update_vehicle_profile(
        self,
        vehicle_id: str,
        vehicle_data: VehicleData,
        performance: PerformanceData | None = None,
    ) -> VehicleProfile:
        """Create or update a vehicle profile.

        Args:
            vehicle_id: Vehicle identifier
            vehicle_data: Fields to merge into the profile
            performance: Measured performance of a completed route (optional)

        Returns:
            The created or updated profile
        """
        profile = self._vehicles.get_or_create(
            vehicle_id, vehicle_data, performance, self._clock.now()
        )
        await self._persist()
        return profile

    async def get_driver_coaching_insights(self, driver_id: str) -> dict | None:
        """Get coaching insights, or None if the driver has too few routes."""
        return self._drivers.coaching_insights(driver_id)

    async def compare_drivers(self, driver_a: str, driver_b: str) -> dict | None:
        """Compare two drivers, or None if either is unknown."""
        return self._drivers.compare_drivers(driver_a, driver_b)

    async def analyze_patterns(self) -> PatternAnalysis | None:
        """Get historical pattern analysis, or None if history is too small."""
        return self._learner.analyze_patterns()

    async def get_learning_insights(self) -> dict:
        """Get learning metrics and insights.

        Returns:
            Dictionary with metrics, insights and store sizes
        """
        insights = self._learner.learning_insights()
        if insights is None:
            insights = {
                "message": (
                    f"Need more data for insights "
                    f"(minimum {self._config.min_pattern_corpus} routes)"
                )
            }
        return {
            "metrics": self._learner.learning_metrics(),
            "insights": insights,
            "pending_predictions": await self._ledger.size(),
            "drivers": len(self._drivers.profiles()),
            "vehicles": len(self._vehicles.profiles()),
        }

    async def get_fleet_analytics(self) -> dict:
        """Aggregate analytics over all driver and vehicle profiles."""
        metrics = self._learner.learning_metrics()
        return {
            "drivers": self._drivers.fleet_analytics(),
            "vehicles": self._vehicles.fleet_analytics(),
            "learning": {
                "total_routes": metrics.total_routes,
                "average_accuracy": metrics.average_accuracy,
                "improvement_trend": metrics.improvement_trend,
            },
        }

    async def get_pending_predictions(self) -> tuple[str, ...]:
        """Tracking ids of all pending predictions, oldest first."""
        return await self._ledger.tracking_ids()

    async def get_status(self) -> dict:
        """Get the current status of the service.

        Returns:
            Dictionary with status information
        """
        metrics = self._learner.learning_metrics()
        return {
            "ready": True,
            "historical_routes": metrics.total_routes,
            "average_accuracy": metrics.average_accuracy,
            "rolling_accuracy": metrics.rolling_accuracy,
            "model_revision": metrics.model_revision,
            "driver_profiles": len(self._drivers.profiles()),
            "vehicle_profiles": len(self._vehicles.profiles()),
            "pending_predictions": await self._ledger.size(),
            "persistence_enabled": self._storage is not None,
            "last_sweep": self._last_sweep.isoformat() if self._last_sweep else None,
            "local_blend_weight": self._config.local_blend_weight,
            "similarity_threshold": self._config.similarity_threshold,
        }

    def _run_stages(self, request: RouteRequest, now: datetime) -> OptimizationResult:
        result = self._estimator.estimate(
            request.distance, request.fuel_price, now, request.waypoints
        )
        versions = [result.model_version]

        if request.driver_id:
            profile = self._drivers.get_profile(request.driver_id)
            if profile is not None:
                personalization = self._drivers.personalize(profile, result, request)
                result = self._drivers.apply_personalization(
                    result, personalization, request.fuel_price
                )
                versions.append(DRIVER_VERSION)

        if request.vehicle_id:
            vehicle = self._vehicles.get_profile(request.vehicle_id)
            if vehicle is not None:
                vehicle_result = self._vehicles.optimize_for_vehicle_type(
                    request, vehicle, result, now
                )
                result = self._vehicles.apply_vehicle_optimization(result, vehicle_result)
                versions.append(VEHICLE_VERSION)

        historical = self._learner.predict_from_similar(request, now)
        if historical is not None:
            result = self._blend(result, historical, request, now)
            versions.extend([historical.model_version, BLEND_VERSION])

        return replace(result, model_version="+".join(versions))

    def _blend(
        self,
        result: OptimizationResult,
        historical: SimilarRoutePrediction,
        request: RouteRequest,
        now: datetime,
    ) -> OptimizationResult:
        """Blend the local factor with the historical one."""
        local_weight = self._config.local_blend_weight
        factor = clamp_factor(
            local_weight * result.optimization_factor
            + self._config.historical_blend_weight * historical.optimization_factor
        )
        confidence = min(result.confidence, historical.confidence)

        season = get_season((request.departure_time or now).month)
        fuel, traffic, safety = SEASONAL_ADJUSTMENTS[season]
        learning_data = LearningData(
            recommended_actions=tuple(
                f"{hint.factor}: {hint.impact:.1f}% savings at {hint.confidence:.0%} accuracy"
                for hint in historical.recommendations
            ),
            confidence_factors={
                "local_confidence": result.confidence,
                "historical_confidence": historical.confidence,
                "historical_accuracy": historical.average_accuracy,
                "average_similarity": historical.average_similarity,
            },
            seasonal_adjustments=SeasonalFactors(
                season=season,
                fuel_consumption=fuel,
                traffic_multiplier=traffic,
                safety_margin=safety,
            ),
        )

        return replace(
            self._rescale(result, factor),
            confidence=confidence,
            historically_enhanced=True,
            based_on_similar_routes=historical.support_count,
            historical_accuracy=historical.average_accuracy,
            learning_data=learning_data,
        )

    @staticmethod
    def _rescale(result: OptimizationResult, factor: float) -> OptimizationResult:
        """Move a result to a new factor, scaling its projections proportionally."""
        distance = result.original_distance * (1 - factor)
        saved = result.original_distance - distance
        old_saved = result.savings.distance_km
        ratio = saved / old_saved if old_saved > 0 else 1.0

        return replace(
            result,
            optimization_factor=factor,
            distance=distance,
            duration=result.duration * distance / result.distance,
            savings=Savings(
                distance_km=saved,
                time_hours=result.savings.time_hours * ratio,
                fuel_liters=result.savings.fuel_liters * ratio,
                cost=result.savings.cost * ratio,
                percentage_saved=factor * 100.0,
            ),
        )

    def _update_vehicle_from_outcome(
        self,
        vehicle_id: str,
        entry: PendingPrediction,
        actual: ActualResult,
        now: datetime,
    ) -> None:
        performance = None
        if actual.actual_fuel_consumed:
            performance = PerformanceData(
                distance_km=actual.actual_distance or entry.result.distance,
                fuel_consumed=actual.actual_fuel_consumed,
                duration_hours=actual.actual_duration,
                cost=actual.actual_cost,
            )

        vehicle_type = entry.request.vehicle_type
        if vehicle_type not in VEHICLE_TYPES:
            vehicle_type = None
        self._vehicles.get_or_create(
            vehicle_id,
            VehicleData(vehicle_type=vehicle_type, state=actual.vehicle_state),
            performance,
            now,
        )

    async def _persist(self) -> None:
        """Save learned state; failures are logged and never propagated."""
        if self._storage is None:
            return
        try:
            await self._storage.save_historical_routes(list(self._learner.routes()))
            await self._storage.save_driver_profiles(self._drivers.profiles())
            await self._storage.save_vehicle_profiles(self._vehicles.profiles())
        except Exception as e:
            _LOGGER.warning("Failed to persist learned state: %s", e)
