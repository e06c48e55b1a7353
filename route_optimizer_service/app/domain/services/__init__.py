"""Domain services for route optimization.

Services contain pure business logic and operate on value objects.
"""

from .baseline_estimator import BaselineEstimator, project_route
from .driver_personalization_service import DriverPersonalizationService
from .historical_route_learner import HistoricalRouteLearner, calculate_accuracy
from .route_similarity import RouteSimilarityScorer, extract_features
from .vehicle_profile_optimizer import VehicleProfileOptimizer

__all__ = [
    "BaselineEstimator",
    "DriverPersonalizationService",
    "HistoricalRouteLearner",
    "RouteSimilarityScorer",
    "VehicleProfileOptimizer",
    "calculate_accuracy",
    "extract_features",
    "project_route",
]
