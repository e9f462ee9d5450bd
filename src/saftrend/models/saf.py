"""SAF persistence models: per-activity regression points and run summaries."""
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SafPoint(SQLModel, table=True):
    """
    One row per (athlete, activity) observation fed into the regression.
    Recomputing an athlete updates existing rows instead of duplicating them.
    """

    __table_args__ = (UniqueConstraint("athlete_id", "activity_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    athlete_id: str = Field(index=True)
    activity_id: int
    activity_date: date
    t_days: float           # days since the athlete's earliest point in the batch
    avg_hr: float           # bpm
    speed_m_per_s: float


class SafSummary(SQLModel, table=True):
    """One row per successful SAF fit."""

    id: Optional[int] = Field(default=None, primary_key=True)
    athlete_id: str = Field(index=True)
    horizon_days: int
    beta0: float            # m/s
    beta1: float            # m/s per day
    beta2: float            # m/s per bpm
    saf_bpm: float
    observation_count: int
    computed_at: datetime = Field(default_factory=_utcnow)
