"""
Activity sources: where SafService gets an athlete's activities from.

A real source talks to the provider's HTTP API (auth, token refresh,
pagination) and lives outside this package. Anything with an async
get_activities_for_period() returning RawActivity records will do.
"""
from datetime import datetime
from typing import List, Protocol, Sequence

from saftrend.models.activity import RawActivity


class ActivitySourceError(Exception):
    """Raised when a source cannot deliver activities."""

    def __init__(self, message: str = "", needs_auth: bool = False):
        super().__init__(message)
        self.message = message
        self.needs_auth = needs_auth


class ActivitySource(Protocol):
    async def get_activities_for_period(
        self, athlete_id: str, after: datetime, before: datetime
    ) -> List[RawActivity]:
        ...


class StaticActivitySource:
    """In-memory source over a fixed list of activities (any athlete)."""

    def __init__(self, activities: Sequence[RawActivity]):
        self._activities = list(activities)

    async def get_activities_for_period(
        self, athlete_id: str, after: datetime, before: datetime
    ) -> List[RawActivity]:
        """Return the activities starting within [after, before], in stored order."""
        return [a for a in self._activities if after <= a.start_date <= before]
