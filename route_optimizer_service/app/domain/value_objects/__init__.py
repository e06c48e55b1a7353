"""Value objects for the route optimization domain.

Value objects are immutable data carriers that represent domain concepts.
They have no identity and are compared by their attributes.
"""

from .actual_result import MAINTENANCE_STATUSES, ActualResult, VehicleStateUpdate
from .historical_route import (
    AccuracyMetrics,
    HistoricalRoute,
    PatternKeys,
    PredictionSnapshot,
    RouteFeatures,
    get_distance_cluster,
    get_driver_bucket,
    get_season,
    get_time_bucket,
)
from .learning_config import LearningConfig
from .learning_results import (
    ConditionSnapshot,
    HistoricalHint,
    LearningMetrics,
    PatternAnalysis,
    PatternStatistics,
    SimilarRoutePrediction,
)
from .optimization_result import (
    MAX_OPTIMIZATION_FACTOR,
    MIN_OPTIMIZATION_FACTOR,
    LearningData,
    OptimizationResult,
    PendingPrediction,
    Savings,
    SeasonalFactors,
    clamp_factor,
)
from .personalization import DriverRecommendation, PersonalizationResult, PersonalizedWeights
from .route_request import RouteConstraints, RouteRequest, TrafficData, Waypoint, WeatherData
from .vehicle import (
    VEHICLE_TYPES,
    FactorBreakdown,
    FuelAnalysis,
    OperatingCost,
    PerformanceData,
    SeasonalAdjustments,
    TechnicalSpecs,
    VehicleData,
    VehicleOptimizationResult,
    VehicleRestrictions,
    VehicleWarning,
    ViabilityReport,
)

__all__ = [
    "MAINTENANCE_STATUSES",
    "MAX_OPTIMIZATION_FACTOR",
    "MIN_OPTIMIZATION_FACTOR",
    "VEHICLE_TYPES",
    "AccuracyMetrics",
    "ActualResult",
    "ConditionSnapshot",
    "DriverRecommendation",
    "FactorBreakdown",
    "FuelAnalysis",
    "HistoricalHint",
    "HistoricalRoute",
    "LearningConfig",
    "LearningData",
    "LearningMetrics",
    "OperatingCost",
    "OptimizationResult",
    "PatternAnalysis",
    "PatternKeys",
    "PatternStatistics",
    "PendingPrediction",
    "PerformanceData",
    "PersonalizationResult",
    "PersonalizedWeights",
    "PredictionSnapshot",
    "RouteConstraints",
    "RouteFeatures",
    "RouteRequest",
    "Savings",
    "SeasonalAdjustments",
    "SeasonalFactors",
    "SimilarRoutePrediction",
    "TechnicalSpecs",
    "TrafficData",
    "VehicleData",
    "VehicleOptimizationResult",
    "VehicleRestrictions",
    "VehicleStateUpdate",
    "VehicleWarning",
    "ViabilityReport",
    "Waypoint",
    "WeatherData",
    "clamp_factor",
    "get_distance_cluster",
    "get_driver_bucket",
    "get_season",
    "get_time_bucket",
]
