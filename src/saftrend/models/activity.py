"""Raw activity record as delivered by an activity source."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RawActivity:
    """
    One training activity, read-only.
    Heart rate fields are None when the device did not record heart rate.
    """

    activity_id: int
    distance_meters: float
    moving_time_seconds: float
    elapsed_time_seconds: float
    sport_type: str
    start_date: datetime                  # timezone-aware
    avg_hr: Optional[float] = None        # bpm
    max_hr: Optional[float] = None        # bpm
    name: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.start_date, datetime):
            raise ValueError(
                f"start_date must be a datetime, got {type(self.start_date).__name__}"
            )
        if self.start_date.tzinfo is None or self.start_date.utcoffset() is None:
            raise ValueError(
                f"start_date of activity {self.activity_id} must be timezone-aware"
            )
