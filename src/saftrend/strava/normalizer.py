"""
Strava API response normalizer.

Converts one item of a Strava /athlete/activities response into RawActivity
fields.
No network access here: sources hand raw dicts in, analysis takes the
RawActivity out.

Strava list items look like:
  - id, name, distance (m), moving_time (s), elapsed_time (s)
  - sport_type ("Run", "TrailRun", ...); older payloads only carry type
  - start_date: "YYYY-MM-DDTHH:MM:SSZ" (UTC)
  - average_heartrate / max_heartrate: present only when has_heartrate is true
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _parse_strava_datetime(s: str) -> datetime:
    """Parse a Strava ISO 8601 timestamp into an aware datetime.

    Handles the "Z" suffix and explicit offsets. A timestamp without any
    offset is taken as UTC, which is what start_date always is.
    """
    if not isinstance(s, str):
        raise ValueError(f"start_date must be an ISO 8601 string, got {type(s).__name__}")
    s = s.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def normalize_strava_activity(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalize a Strava activity dict into RawActivity field dict.

    Args:
        raw: One element of GET /athlete/activities.

    Returns:
        Dict with keys matching RawActivity fields.

    Raises:
        KeyError: a required field (id, distance, moving_time, start_date) is absent.
        ValueError: start_date is not a string or cannot be parsed.
    """
    moving_time = float(raw["moving_time"])
    elapsed_time = raw.get("elapsed_time")

    return {
        "activity_id": int(raw["id"]),
        "name": raw.get("name") or "",
        "distance_meters": float(raw["distance"]),
        "moving_time_seconds": moving_time,
        "elapsed_time_seconds": (
            float(elapsed_time) if elapsed_time is not None else moving_time
        ),
        "sport_type": raw.get("sport_type") or raw.get("type") or "",
        "start_date": _parse_strava_datetime(raw["start_date"]),
        "avg_hr": _optional_float(raw.get("average_heartrate")),
        "max_hr": _optional_float(raw.get("max_heartrate")),
    }
