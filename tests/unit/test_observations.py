"""Tests for building SAF regression observations from raw activities."""
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from saftrend.analysis.observations import Observation, build_observations, is_qualifying
from saftrend.models.activity import RawActivity

BASE = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


def make_activity(
    activity_id: int,
    days: float = 0.0,
    distance: float = 10000.0,
    moving_time: float = 3600.0,
    avg_hr: Optional[float] = 140.0,
) -> RawActivity:
    return RawActivity(
        activity_id=activity_id,
        distance_meters=distance,
        moving_time_seconds=moving_time,
        elapsed_time_seconds=moving_time,
        sport_type="Run",
        start_date=BASE + timedelta(days=days),
        avg_hr=avg_hr,
        max_hr=avg_hr,
        name=f"Run {activity_id}",
    )


# ─── Tests ────────────────────────────────────────────────────────────────────

class TestRawActivity:
    def test_naive_start_date_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            RawActivity(
                activity_id=1,
                distance_meters=5000.0,
                moving_time_seconds=1500.0,
                elapsed_time_seconds=1500.0,
                sport_type="Run",
                start_date=datetime(2024, 1, 1, 10, 0),
            )

    def test_string_start_date_rejected(self):
        with pytest.raises(ValueError):
            RawActivity(
                activity_id=1,
                distance_meters=5000.0,
                moving_time_seconds=1500.0,
                elapsed_time_seconds=1500.0,
                sport_type="Run",
                start_date="2024-01-01T10:00:00Z",
            )

    def test_heart_rate_defaults_to_none(self):
        activity = RawActivity(
            activity_id=1,
            distance_meters=5000.0,
            moving_time_seconds=1500.0,
            elapsed_time_seconds=1500.0,
            sport_type="Run",
            start_date=BASE,
        )
        assert activity.avg_hr is None
        assert activity.max_hr is None


class TestIsQualifying:
    def test_complete_activity_qualifies(self):
        assert is_qualifying(make_activity(1))

    @pytest.mark.parametrize("kwargs", [
        {"distance": 0.0},
        {"distance": -5.0},
        {"distance": math.nan},
        {"moving_time": 0.0},
        {"moving_time": -1.0},
        {"avg_hr": None},
        {"avg_hr": math.nan},
        {"avg_hr": math.inf},
    ])
    def test_unusable_activity_rejected(self, kwargs):
        assert not is_qualifying(make_activity(1, **kwargs))


class TestBuildObservations:
    def test_empty_input_returns_empty_list(self):
        assert build_observations([]) == []

    def test_nothing_qualifies_returns_empty_list(self):
        activities = [
            make_activity(1, distance=0.0),
            make_activity(2, avg_hr=None),
        ]
        assert build_observations(activities) == []

    def test_sorted_by_start_date(self):
        activities = [
            make_activity(3, days=14),
            make_activity(1, days=0),
            make_activity(2, days=7),
        ]
        observations = build_observations(activities)
        assert [o.activity_id for o in observations] == [1, 2, 3]

    def test_t_days_relative_to_earliest(self):
        activities = [make_activity(2, days=7), make_activity(1, days=0)]
        observations = build_observations(activities)
        assert observations[0].t_days == 0.0
        assert observations[1].t_days == pytest.approx(7.0)

    def test_fractional_days(self):
        """12 hours apart → half a day."""
        activities = [make_activity(1, days=0), make_activity(2, days=0.5)]
        observations = build_observations(activities)
        assert observations[1].t_days == pytest.approx(0.5)

    def test_t_days_never_negative(self):
        activities = [make_activity(i, days=d) for i, d in enumerate([9, 3, 27, 0.25, 14])]
        assert all(o.t_days >= 0 for o in build_observations(activities))

    def test_ties_keep_input_order(self):
        """Stable sort: equal start dates stay in input order, all at t_days == 0."""
        activities = [
            make_activity(5, days=0),
            make_activity(9, days=3),
            make_activity(3, days=0),
            make_activity(7, days=0),
        ]
        observations = build_observations(activities)
        assert [o.activity_id for o in observations] == [5, 3, 7, 9]
        assert [o.t_days for o in observations[:3]] == [0.0, 0.0, 0.0]

    def test_speed_is_distance_over_moving_time(self):
        observations = build_observations([make_activity(1, distance=10000.0, moving_time=4000.0)])
        assert observations[0].speed_m_per_s == pytest.approx(2.5)

    def test_avg_hr_copied_verbatim(self):
        observations = build_observations([make_activity(1, avg_hr=151.7)])
        assert observations[0].avg_hr == 151.7

    def test_activity_date_is_start_date(self):
        observations = build_observations([make_activity(1, days=2)])
        assert observations[0].activity_date == BASE + timedelta(days=2)

    def test_first_date_uses_qualifying_activities_only(self):
        """A dropped earlier activity does not shift t_days."""
        activities = [
            make_activity(1, days=0, avg_hr=None),
            make_activity(2, days=4),
            make_activity(3, days=6),
        ]
        observations = build_observations(activities)
        assert [o.activity_id for o in observations] == [2, 3]
        assert observations[0].t_days == 0.0
        assert observations[1].t_days == pytest.approx(2.0)

    @pytest.mark.parametrize("position", [0, 2, 4])
    @pytest.mark.parametrize("bad_kwargs", [
        {"distance": 0.0},
        {"moving_time": 0.0},
        {"avg_hr": None},
    ])
    def test_unusable_activity_dropped_at_any_position(self, position, bad_kwargs):
        activities = [make_activity(i, days=i * 7) for i in range(1, 5)]
        activities.insert(position, make_activity(99, days=position * 3.5, **bad_kwargs))
        observations = build_observations(activities)
        assert len(observations) == 4
        assert 99 not in [o.activity_id for o in observations]

    def test_input_not_mutated(self):
        activities = [make_activity(2, days=7), make_activity(1, days=0)]
        snapshot = list(activities)
        build_observations(activities)
        assert activities == snapshot

    def test_observations_are_immutable(self):
        observation = build_observations([make_activity(1)])[0]
        assert isinstance(observation, Observation)
        with pytest.raises(AttributeError):
            observation.t_days = 3.0

    def test_weekly_runs_example(self):
        """Five weekly 10k runs getting 100 s faster each week."""
        activities = [
            make_activity(i + 1, days=7 * i, moving_time=3800 - 100 * i, avg_hr=140 + (i % 2) * 2)
            for i in range(5)
        ]
        observations = build_observations(activities)
        assert len(observations) == 5
        assert [o.t_days for o in observations] == pytest.approx([0, 7, 14, 21, 28])
        assert observations[0].speed_m_per_s == pytest.approx(10000 / 3800)
        assert observations[-1].speed_m_per_s == pytest.approx(10000 / 3400)
