"""System clock adapter.

Infrastructure adapter that implements IClock with the local wall clock.
"""

from datetime import datetime

from domain.interfaces import IClock


class SystemClock(IClock):
    """Clock backed by datetime.now()."""

    def now(self) -> datetime:
        """Get the current local time."""
        return datetime.now()
