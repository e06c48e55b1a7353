"""Infrastructure layer for the Route Optimizer learning engine.

This package contains implementations of domain interfaces
that interact with external systems (file storage, clock, HTTP API).
"""
