"""Domain layer for the Route Optimizer learning engine.

This package contains the core business logic for route optimization and
outcome learning, following Domain-Driven Design (DDD) principles.

The domain layer is pure Python with no dependencies on Flask, file
storage, or any infrastructure concerns.
"""
