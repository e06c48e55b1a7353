"""Unit tests for MemoryPredictionLedger."""

from datetime import datetime, timedelta

import pytest
from domain.services import BaselineEstimator
from domain.value_objects import PendingPrediction, RouteRequest
from infrastructure.adapters import MemoryPredictionLedger

START = datetime(2024, 4, 16, 9, 30)


def _entry(tracking_id: str, created_at: datetime = START) -> PendingPrediction:
    result = BaselineEstimator().estimate(100.0, timestamp=created_at)
    return PendingPrediction(tracking_id, RouteRequest(distance=100.0), result, created_at)


class TestMemoryPredictionLedger:
    """Tests for the in-memory pending ledger."""

    @pytest.mark.asyncio
    async def test_add_and_take(self) -> None:
        """A taken entry is gone afterwards."""
        ledger = MemoryPredictionLedger()
        entry = _entry("route_1")
        await ledger.add(entry)

        assert await ledger.get("route_1") is entry
        assert await ledger.take("route_1") is entry
        assert await ledger.take("route_1") is None
        assert await ledger.size() == 0

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self) -> None:
        """Tracking ids are unique while pending."""
        ledger = MemoryPredictionLedger()
        await ledger.add(_entry("route_1"))

        with pytest.raises(ValueError, match="already pending"):
            await ledger.add(_entry("route_1"))

    @pytest.mark.asyncio
    async def test_purge_older_than(self) -> None:
        """Entries created before the cutoff are removed."""
        ledger = MemoryPredictionLedger()
        await ledger.add(_entry("route_old", START - timedelta(hours=30)))
        await ledger.add(_entry("route_edge", START - timedelta(hours=24)))
        await ledger.add(_entry("route_new", START))

        removed = await ledger.purge_older_than(START - timedelta(hours=24))

        assert removed == 1
        assert await ledger.tracking_ids() == ("route_edge", "route_new")

    @pytest.mark.asyncio
    async def test_tracking_ids_in_insertion_order(self) -> None:
        """Pending ids are listed oldest first."""
        ledger = MemoryPredictionLedger()
        for index in range(3):
            await ledger.add(_entry(f"route_{index}", START + timedelta(minutes=index)))

        assert await ledger.tracking_ids() == ("route_0", "route_1", "route_2")
        assert await ledger.size() == 3
