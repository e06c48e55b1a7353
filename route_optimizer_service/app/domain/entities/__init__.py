"""Domain entities for route optimization.

Entities are mutable domain objects with identity that persist over time.
"""

from .driver_profile import (
    DriverProfile,
    DrivingBehavior,
    LearningStats,
    OptimizationWeights,
    PerformanceMetrics,
    RiskProfile,
)
from .vehicle_profile import HistoricalPerformance, VehicleProfile, VehicleState

__all__ = [
    "DriverProfile",
    "DrivingBehavior",
    "HistoricalPerformance",
    "LearningStats",
    "OptimizationWeights",
    "PerformanceMetrics",
    "RiskProfile",
    "VehicleProfile",
    "VehicleState",
]
