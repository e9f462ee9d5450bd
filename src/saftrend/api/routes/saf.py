"""SAF computation and history routes."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session, select

from saftrend.analysis.observations import build_observations
from saftrend.analysis.saf import compute_saf, result_to_dict
from saftrend.config import get_settings
from saftrend.db.engine import get_engine, get_session
from saftrend.models.activity import RawActivity
from saftrend.models.saf import SafPoint, SafSummary
from saftrend.strava.normalizer import normalize_strava_activity
from saftrend.strava.saf_service import SafRunResult, SafService
from saftrend.strava.source import StaticActivitySource

router = APIRouter()


class SafComputeRequest(BaseModel):
    activities: List[Dict[str, Any]]  # Strava /athlete/activities items
    horizon_days: Optional[int] = Field(default=None, gt=0)


class SafAthleteRunRequest(BaseModel):
    activities: List[Dict[str, Any]]
    horizon_days: Optional[int] = Field(default=None, gt=0)
    as_of: Optional[datetime] = None  # end of the activity window; defaults to now


def _to_raw_activities(items: List[Dict[str, Any]]) -> List[RawActivity]:
    """Normalize request payload items, mapping bad records to a 422."""
    activities = []
    for index, item in enumerate(items):
        try:
            activities.append(RawActivity(**normalize_strava_activity(item)))
        except KeyError as exc:
            raise HTTPException(
                status_code=422, detail=f"activities[{index}] is missing field {exc}"
            )
        except (TypeError, ValueError) as exc:
            raise HTTPException(
                status_code=422, detail=f"activities[{index}] is malformed: {exc}"
            )
    return activities


@router.post("/compute")
def compute(request: SafComputeRequest) -> Dict[str, Any]:
    """Fit SAF over the posted activities. Nothing is stored."""
    observations = build_observations(_to_raw_activities(request.activities))
    horizon_days = request.horizon_days or get_settings().default_horizon_days
    return result_to_dict(compute_saf(observations, horizon_days))


@router.post("/athletes/{athlete_id}", response_model=SafRunResult)
async def run_for_athlete(
    athlete_id: str,
    request: SafAthleteRunRequest,
    engine=Depends(get_engine),
):
    """Compute SAF for an athlete from posted activities and store points and summary."""
    source = StaticActivitySource(_to_raw_activities(request.activities))
    service = SafService(source=source, engine=engine)
    return await service.compute_for_athlete(
        athlete_id, horizon_days=request.horizon_days, now=request.as_of
    )


@router.get("/athletes/{athlete_id}/summaries", response_model=List[SafSummary])
def list_summaries(
    athlete_id: str,
    limit: int = 20,
    session: Session = Depends(get_session),
):
    """SAF summaries for an athlete, newest first."""
    return session.exec(
        select(SafSummary)
        .where(SafSummary.athlete_id == athlete_id)
        .order_by(SafSummary.computed_at.desc(), SafSummary.id.desc())
        .limit(limit)
    ).all()


@router.get("/athletes/{athlete_id}/points", response_model=List[SafPoint])
def list_points(athlete_id: str, session: Session = Depends(get_session)):
    """Stored regression points for an athlete, oldest first."""
    return session.exec(
        select(SafPoint)
        .where(SafPoint.athlete_id == athlete_id)
        .order_by(SafPoint.activity_date, SafPoint.activity_id)
    ).all()
