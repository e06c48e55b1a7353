"""Infrastructure adapters for route optimization.

These adapters implement domain interfaces using the file system,
process memory and the system clock.
"""

from .file_learning_storage import FileLearningStorage, StorageError
from .memory_learning_storage import MemoryLearningStorage
from .memory_prediction_ledger import MemoryPredictionLedger
from .system_clock import SystemClock

__all__ = [
    "FileLearningStorage",
    "MemoryLearningStorage",
    "MemoryPredictionLedger",
    "StorageError",
    "SystemClock",
]
