"""Tests for tracked workout creation and upload reconciliation."""

import pytest
from datetime import date, timedelta

from adaptive_training.analysis.matching import ActivityMatcher, MatchingConfig, ScoringProfile
from adaptive_training.analysis.tracking import (
    create_tracked_workout,
    create_unplanned_workout,
    reconcile_upload,
)
from adaptive_training.analysis.types import (
    ActivityRecord,
    LapRecord,
    PlannedWorkout,
    SportType,
    WorkoutStatus,
)

DAY = date(2024, 6, 4)


def planned(sport=SportType.RUN, day=DAY, duration=45):
    return PlannedWorkout(
        date=day,
        sport=sport,
        description="Planned session",
        expected_fatigue=45.0,
        duration_min=duration,
        source_archetype_id=f"{sport.value}-zone2",
    )


class TestTrackedWorkouts:
    """Test tracked workout builders."""

    def test_planned_only(self):
        tracked = create_tracked_workout(planned())
        assert tracked.status == WorkoutStatus.PLANNED
        assert tracked.comparison is None
        assert tracked.actual is None
        assert tracked.date == DAY
        assert tracked.sport == SportType.RUN

    def test_completed_with_comparison(self):
        actual = ActivityRecord(date=DAY, sport="run", duration_min=47, training_load=225)
        laps = [LapRecord(lap_number=1, duration_min=47)]
        tracked = create_tracked_workout(planned(), actual, laps)
        assert tracked.status == WorkoutStatus.COMPLETED
        assert tracked.comparison is not None
        assert tracked.comparison.duration_variance.difference == 2
        assert tracked.completed_at is not None
        assert tracked.laps == tuple(laps)

    def test_unplanned(self):
        actual = ActivityRecord(date=DAY, sport="Swimming", duration_min=30)
        tracked = create_unplanned_workout(actual)
        assert tracked.status == WorkoutStatus.UNPLANNED
        assert tracked.planned is None
        assert tracked.sport == SportType.SWIM
        assert tracked.date == DAY


class TestReconcileUpload:
    """Test matching an upload against the open plan."""

    def test_confident_match_completes_workout(self):
        plan = [planned(SportType.BIKE), planned(SportType.RUN)]
        activity = ActivityRecord(date=DAY, sport="run", duration_min=44, training_load=220)
        tracked, recommendation = reconcile_upload(activity, plan)
        assert tracked.status == WorkoutStatus.COMPLETED
        assert tracked.planned == plan[1]
        assert recommendation.should_auto_match

    def test_no_candidates_creates_unplanned(self):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=44)
        tracked, recommendation = reconcile_upload(activity, [planned(day=DAY + timedelta(days=4))])
        assert tracked.status == WorkoutStatus.UNPLANNED
        assert recommendation is None

    def test_weak_match_left_for_manual_choice(self):
        activity = ActivityRecord(date=DAY + timedelta(days=1), sport="bike", duration_min=120)
        tracked, recommendation = reconcile_upload(activity, [planned()])
        assert tracked.status == WorkoutStatus.UNPLANNED
        assert recommendation is not None
        assert recommendation.best_match == planned()
        assert not recommendation.should_auto_match

    def test_compact_profile(self):
        matcher = ActivityMatcher(MatchingConfig(profile=ScoringProfile.COMPACT))
        activity = ActivityRecord(date=DAY, sport="run", duration_min=50)
        tracked, recommendation = reconcile_upload(activity, [planned()], matcher=matcher)
        assert tracked.status == WorkoutStatus.COMPLETED
        # sport 40 + date 20 + duration within 5 minutes 20
        assert recommendation.confidence == pytest.approx(0.8)

    def test_compact_profile_within_fifteen_minutes(self):
        matcher = ActivityMatcher(MatchingConfig(profile=ScoringProfile.COMPACT))
        activity = ActivityRecord(date=DAY, sport="run", duration_min=55)
        tracked, recommendation = reconcile_upload(activity, [planned()], matcher=matcher)
        assert tracked.status == WorkoutStatus.COMPLETED
        assert recommendation.confidence == pytest.approx(0.75)
