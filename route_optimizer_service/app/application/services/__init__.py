"""Application services for route optimization.

These services orchestrate domain logic with infrastructure adapters
to fulfill use cases.
"""

from .route_optimization_service import RouteOptimizationService

__all__ = [
    "RouteOptimizationService",
]
