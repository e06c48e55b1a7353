"""Domain interfaces for route optimization.

Interfaces define contracts between the domain and infrastructure layers.
The domain depends on these abstractions, not on concrete implementations.
"""

from .clock import IClock
from .learning_storage import ILearningStorage
from .prediction_ledger import IPredictionLedger

__all__ = [
    "IClock",
    "ILearningStorage",
    "IPredictionLedger",
]
