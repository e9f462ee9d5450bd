"""
Command-line entrypoint.

Usage:
    python -m saftrend compute activities.json --horizon 90   # fit SAF from a Strava export
    uvicorn saftrend.api.main:app --host 0.0.0.0 --port 8000  # starts API

activities.json is a JSON array of Strava /athlete/activities items.
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from saftrend.config import get_settings

logger = logging.getLogger(__name__)


def _run_compute(path: Path, horizon_days: Optional[int]) -> int:
    from saftrend.analysis.observations import build_observations
    from saftrend.analysis.saf import SafSuccess, compute_saf, result_to_dict
    from saftrend.models.activity import RawActivity
    from saftrend.strava.normalizer import normalize_strava_activity

    raw_items = json.loads(path.read_text())
    activities = [RawActivity(**normalize_strava_activity(item)) for item in raw_items]
    observations = build_observations(activities)
    logger.info(
        "Loaded %d activities from %s, %d usable", len(activities), path, len(observations)
    )

    horizon = horizon_days or get_settings().default_horizon_days
    result = compute_saf(observations, horizon)
    print(json.dumps(result_to_dict(result), indent=2))
    return 0 if isinstance(result, SafSuccess) else 1


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    parser = argparse.ArgumentParser(prog="saftrend", description="SAF fitness trend")
    subparsers = parser.add_subparsers(dest="command", required=True)
    compute = subparsers.add_parser("compute", help="fit SAF from a JSON activity file")
    compute.add_argument("path", type=Path, help="JSON array of Strava activities")
    compute.add_argument(
        "--horizon", type=int, default=None,
        help=f"horizon in days (default {settings.default_horizon_days})",
    )
    args = parser.parse_args(argv)

    if args.horizon is not None and args.horizon <= 0:
        parser.error("--horizon must be a positive number of days")

    return _run_compute(args.path, args.horizon)


if __name__ == "__main__":
    sys.exit(main())
