"""In-memory implementation of the pending prediction ledger.

Infrastructure adapter for holding predictions until their outcome arrives.
"""

import logging
from datetime import datetime

from domain.interfaces import IPredictionLedger
from domain.value_objects import PendingPrediction

_LOGGER = logging.getLogger(__name__)


class MemoryPredictionLedger(IPredictionLedger):
    """In-memory implementation of the pending prediction ledger.

    Entries are kept in insertion order in a dict. Every operation completes
    without awaiting, so take() is atomic with respect to other coroutines
    on the same event loop.
    """

    def __init__(self) -> None:
        """Initialize an empty ledger."""
        self._entries: dict[str, PendingPrediction] = {}
        _LOGGER.info("Initialized MemoryPredictionLedger")

    async def add(self, entry: PendingPrediction) -> None:
        """Store a pending prediction.

        Raises:
            ValueError: If the tracking id is already pending
        """
        if entry.tracking_id in self._entries:
            raise ValueError(f"Tracking id already pending: {entry.tracking_id}")
        self._entries[entry.tracking_id] = entry
        _LOGGER.debug("Tracking prediction %s", entry.tracking_id)

    async def take(self, tracking_id: str) -> PendingPrediction | None:
        """Remove and return a pending prediction."""
        return self._entries.pop(tracking_id, None)

    async def get(self, tracking_id: str) -> PendingPrediction | None:
        """Return a pending prediction without consuming it."""
        return self._entries.get(tracking_id)

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Remove pending predictions created before a cutoff."""
        expired = [
            tracking_id
            for tracking_id, entry in self._entries.items()
            if entry.created_at < cutoff
        ]
        for tracking_id in expired:
            del self._entries[tracking_id]
        if expired:
            _LOGGER.debug("Purged %d pending predictions older than %s", len(expired), cutoff)
        return len(expired)

    async def size(self) -> int:
        """Get the number of pending predictions."""
        return len(self._entries)

    async def tracking_ids(self) -> tuple[str, ...]:
        """Get the tracking ids of all pending predictions, oldest first."""
        return tuple(self._entries)
