"""
SafService: computes an athlete's SAF from a source and persists the outcome.

Flow for one athlete:
  1. Fetch activities in [now - horizon, now] from the activity source
  2. Build observations; stop if none qualify
  3. Fit the SAF model
  4. Upsert every observation as a SafPoint (kept even when the fit fails,
     so points accumulate for later runs)
  5. On success, insert a SafSummary

Source failures are reported in the returned SafRunResult rather than
raised. Idempotency: SafPoint is unique per (athlete_id, activity_id); a
rerun updates those rows in place.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import Session, select

from saftrend.analysis.observations import Observation, build_observations
from saftrend.analysis.saf import SafInsufficientData, compute_saf
from saftrend.config import get_settings
from saftrend.models.saf import SafPoint, SafSummary
from saftrend.strava.source import ActivitySource, ActivitySourceError

logger = logging.getLogger(__name__)

NO_OBSERVATIONS_MESSAGE = (
    "No suitable activities with heart rate, distance, and moving time "
    "were found in the period."
)
NEEDS_AUTH_MESSAGE = "Authorization failed or no tokens are stored for this athlete."


class SafRunResult(BaseModel):
    ok: bool
    message: Optional[str] = None
    athlete_id: Optional[str] = None
    horizon_days: Optional[int] = None
    observation_count: Optional[int] = None
    saf_bpm: Optional[float] = None
    beta0: Optional[float] = None
    beta1: Optional[float] = None
    beta2: Optional[float] = None


def resolve_horizon(horizon_days: Optional[float]) -> int:
    """Settings default for None, otherwise floor to a whole number of days (at least 1)."""
    if horizon_days is None or not math.isfinite(horizon_days):
        return get_settings().default_horizon_days
    return max(1, math.floor(horizon_days))


class SafService:
    """Runs the SAF pipeline for one athlete at a time."""

    def __init__(self, source: ActivitySource, engine):
        """
        Args:
            source: ActivitySource (or AsyncMock in tests).
            engine: SQLAlchemy engine (SQLModel create_engine result).
        """
        self.source = source
        self.engine = engine

    async def compute_for_athlete(
        self,
        athlete_id: str,
        horizon_days: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> SafRunResult:
        """
        Compute and persist SAF for one athlete.

        Args:
            athlete_id: Provider athlete identifier.
            horizon_days: Window length and SAF horizon. Defaults to settings.
            now: End of the window. Defaults to the current UTC time; a naive
                 value is taken as UTC.

        Returns:
            SafRunResult with ok=True and coefficients on success, or
            ok=False with a message explaining why not.
        """
        if not athlete_id or not isinstance(athlete_id, str):
            return SafRunResult(ok=False, message="athlete_id is required")

        horizon = resolve_horizon(horizon_days)
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        after = now - timedelta(days=horizon)

        logger.info(
            "Computing SAF for athlete %s over %d days (%s → %s)",
            athlete_id, horizon, after.date().isoformat(), now.date().isoformat(),
        )

        try:
            activities = await self.source.get_activities_for_period(
                athlete_id, after=after, before=now
            )
        except ActivitySourceError as exc:
            message = exc.message or (NEEDS_AUTH_MESSAGE if exc.needs_auth else str(exc))
            logger.warning("Activity fetch failed for athlete %s: %s", athlete_id, message)
            return SafRunResult(
                ok=False, athlete_id=athlete_id, horizon_days=horizon, message=message
            )

        observations = build_observations(activities)
        if not observations:
            return SafRunResult(
                ok=False,
                athlete_id=athlete_id,
                horizon_days=horizon,
                observation_count=0,
                message=NO_OBSERVATIONS_MESSAGE,
            )

        result = compute_saf(observations, horizon)
        self._upsert_points(athlete_id, observations)

        if isinstance(result, SafInsufficientData):
            return SafRunResult(
                ok=False,
                athlete_id=athlete_id,
                horizon_days=horizon,
                observation_count=result.observation_count,
                message=result.reason.value,
            )

        self._insert_summary(
            SafSummary(
                athlete_id=athlete_id,
                horizon_days=horizon,
                beta0=result.beta0,
                beta1=result.beta1,
                beta2=result.beta2,
                saf_bpm=result.saf_bpm,
                observation_count=result.observation_count,
            )
        )
        logger.info("Stored SAF %.2f bpm for athlete %s", result.saf_bpm, athlete_id)

        return SafRunResult(
            ok=True,
            athlete_id=athlete_id,
            horizon_days=horizon,
            observation_count=result.observation_count,
            saf_bpm=result.saf_bpm,
            beta0=result.beta0,
            beta1=result.beta1,
            beta2=result.beta2,
        )

    # ─── Internal helpers ─────────────────────────────────────────────────────

    def _upsert_points(self, athlete_id: str, observations: List[Observation]) -> None:
        with Session(self.engine) as s:
            for obs in observations:
                fields = {
                    "activity_date": obs.activity_date.astimezone(timezone.utc).date(),
                    "t_days": obs.t_days,
                    "avg_hr": obs.avg_hr,
                    "speed_m_per_s": obs.speed_m_per_s,
                }
                existing = s.exec(
                    select(SafPoint).where(
                        SafPoint.athlete_id == athlete_id,
                        SafPoint.activity_id == obs.activity_id,
                    )
                ).first()

                if existing:
                    for k, v in fields.items():
                        setattr(existing, k, v)
                    s.add(existing)
                else:
                    s.add(SafPoint(athlete_id=athlete_id, activity_id=obs.activity_id, **fields))
            s.commit()

    def _insert_summary(self, summary: SafSummary) -> None:
        with Session(self.engine) as s:
            s.add(summary)
            s.commit()
