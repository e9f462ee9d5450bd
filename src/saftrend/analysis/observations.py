"""
Regression observations built from raw activities.

An observation is one (elapsed days, average HR, speed) triple. Activities
without distance, moving time or a finite average heart rate carry no usable
signal and are dropped. Source data is uncurated, so dropping is silent
rather than an error.

Elapsed time is measured from the earliest qualifying activity in the batch,
so the first observation always has t_days == 0.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Sequence

from saftrend.models.activity import RawActivity

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class Observation:
    """One regression-ready sample derived from a single activity."""

    activity_id: int
    activity_date: datetime
    t_days: float          # days since the earliest qualifying activity
    avg_hr: float          # bpm
    speed_m_per_s: float


def is_qualifying(activity: RawActivity) -> bool:
    """True if the activity has positive distance and moving time and a finite avg HR."""
    return (
        activity.distance_meters > 0
        and activity.moving_time_seconds > 0
        and activity.avg_hr is not None
        and math.isfinite(activity.avg_hr)
    )


def build_observations(activities: Sequence[RawActivity]) -> List[Observation]:
    """
    Filter, order and convert activities into observations.

    Sorting is stable: activities starting at the same instant keep their
    input order.

    Returns:
        Observations ordered by start time, or [] if nothing qualifies.
    """
    valid = [a for a in activities if is_qualifying(a)]
    logger.debug(
        "Built observations from %d of %d activities (%d dropped)",
        len(valid), len(activities), len(activities) - len(valid),
    )
    if not valid:
        return []

    ordered = sorted(valid, key=lambda a: a.start_date)
    first_date = ordered[0].start_date

    return [
        Observation(
            activity_id=a.activity_id,
            activity_date=a.start_date,
            t_days=(a.start_date - first_date).total_seconds() / _SECONDS_PER_DAY,
            avg_hr=a.avg_hr,
            speed_m_per_s=a.distance_meters / a.moving_time_seconds,
        )
        for a in ordered
    ]
