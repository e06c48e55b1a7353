"""Clock interface.

Contract for reading the current time.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class IClock(ABC):
    """Contract for a source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time.

        Returns:
            Current timestamp
        """
        pass
