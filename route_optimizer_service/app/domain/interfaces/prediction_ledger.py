"""Prediction ledger interface.

Contract for holding predictions until their outcome is reported.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from domain.value_objects import PendingPrediction


class IPredictionLedger(ABC):
    """Contract for the pending prediction ledger.

    Each tracking id is consumed at most once, either by take() or by
    purge_older_than().
    """

    @abstractmethod
    async def add(self, entry: PendingPrediction) -> None:
        """Store a pending prediction.

        Args:
            entry: The prediction to track

        Raises:
            ValueError: If the tracking id is already pending
        """
        pass

    @abstractmethod
    async def take(self, tracking_id: str) -> PendingPrediction | None:
        """Remove and return a pending prediction.

        Args:
            tracking_id: Tracking id of the prediction

        Returns:
            The pending prediction, or None if it is unknown or already consumed
        """
        pass

    @abstractmethod
    async def get(self, tracking_id: str) -> PendingPrediction | None:
        """Return a pending prediction without consuming it.

        Args:
            tracking_id: Tracking id of the prediction

        Returns:
            The pending prediction, or None if it is unknown
        """
        pass

    @abstractmethod
    async def purge_older_than(self, cutoff: datetime) -> int:
        """Remove pending predictions created before a cutoff.

        Args:
            cutoff: Entries created strictly before this time are removed

        Returns:
            Number of removed entries
        """
        pass

    @abstractmethod
    async def size(self) -> int:
        """Get the number of pending predictions.

        Returns:
            Number of pending predictions
        """
        pass

    @abstractmethod
    async def tracking_ids(self) -> tuple[str, ...]:
        """Get the tracking ids of all pending predictions.

        Returns:
            Tracking ids, oldest first
        """
        pass
