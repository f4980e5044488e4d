"""Tests for plan adherence analytics."""

import pytest
from datetime import date

from adaptive_training.analysis.adherence import PlanAdherenceAnalyzer
from adaptive_training.analysis.tracking import create_tracked_workout, create_unplanned_workout
from adaptive_training.analysis.types import (
    ActivityRecord,
    PlannedWorkout,
    SportType,
    TrackedWorkout,
    WorkoutStatus,
)

START = date(2024, 6, 3)  # Monday
END = date(2024, 6, 16)
TODAY = date(2024, 6, 20)


def planned(day, sport=SportType.RUN):
    return PlannedWorkout(
        date=day,
        sport=sport,
        description="Planned session",
        expected_fatigue=45.0,
        duration_min=45,
        source_archetype_id=f"{sport.value}-zone2",
    )


def completed(day, sport=SportType.RUN):
    actual = ActivityRecord(date=day, sport=sport.value, duration_min=45, training_load=225)
    return create_tracked_workout(planned(day, sport), actual)


@pytest.fixture
def two_weeks():
    return [
        completed(date(2024, 6, 3)),
        completed(date(2024, 6, 5), SportType.BIKE),
        create_tracked_workout(planned(date(2024, 6, 7))),
        create_unplanned_workout(ActivityRecord(date=date(2024, 6, 8), sport="swim", duration_min=30)),
        completed(date(2024, 6, 10)),
        create_tracked_workout(planned(date(2024, 6, 12), SportType.BIKE)),
        TrackedWorkout(status=WorkoutStatus.SKIPPED, planned=planned(date(2024, 6, 14))),
        # Outside the period
        completed(date(2024, 6, 17)),
    ]


class TestPlanAdherenceAnalyzer:
    """Test completion analytics."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = PlanAdherenceAnalyzer()

    def test_overview(self, two_weeks):
        report = self.analyzer.analyze(two_weeks, START, END, today=TODAY)

        assert report.total_days == 14
        assert report.overview.total_planned == 6
        assert report.overview.total_completed == 3
        assert report.overview.total_missed == 3
        assert report.overview.total_unplanned == 1
        assert report.overview.completion_rate == pytest.approx(50)

    def test_breakdowns(self, two_weeks):
        report = self.analyzer.analyze(two_weeks, START, END, today=TODAY)

        assert report.by_sport["run"].planned == 4
        assert report.by_sport["run"].completed == 2
        assert report.by_sport["bike"].completion_rate == pytest.approx(50)
        assert "swim" not in report.by_sport

        assert list(report.by_weekday) == ["Monday", "Wednesday", "Friday"]
        assert report.by_weekday["Monday"].completion_rate == pytest.approx(100)
        assert report.by_weekday["Friday"].completion_rate == 0
        assert report.best_completion_day == "Monday"
        assert report.worst_completion_day == "Friday"

    def test_weekly_trend(self, two_weeks):
        report = self.analyzer.analyze(two_weeks, START, END, today=TODAY)

        assert report.weekly_completion_rates == pytest.approx([200 / 3, 100 / 3])
        assert len(report.weekly_adherence_scores) == 2
        assert report.consistency_trend == "declining"
        assert report.average_load_variance == pytest.approx(0)

    def test_insights(self, two_weeks):
        report = self.analyzer.analyze(two_weeks, START, END, today=TODAY)

        assert report.concerns == [
            "Only 50% of planned workouts completed - consider reducing planned volume",
            "Completion rate is declining over recent weeks",
        ]
        assert report.recommendations == [
            "Friday workouts are often missed - consider scheduling rest on Fridays",
        ]

    def test_future_workouts_are_not_missed(self, two_weeks):
        report = self.analyzer.analyze(two_weeks, START, END, today=date(2024, 6, 10))
        # Only 6/7 is open and in the past
        assert report.overview.total_missed == 1

    def test_empty_period(self):
        report = self.analyzer.analyze([], START, END, today=TODAY)
        assert report.overview.total_planned == 0
        assert report.overview.completion_rate == 0
        assert report.by_weekday == {}
        assert report.consistency_trend == "stable"
        assert report.best_completion_day is None
        assert report.recommendations == []
        assert report.concerns == []

    def test_only_unplanned(self):
        tracked = [create_unplanned_workout(ActivityRecord(date=START, sport="run", duration_min=30))]
        report = self.analyzer.analyze(tracked, START, END, today=TODAY)
        assert report.overview.total_unplanned == 1
        assert report.by_sport == {}
        assert report.recommendations == [
            "Many unplanned workouts - update the plan to reflect actual training",
        ]

    def test_end_before_start(self):
        with pytest.raises(ValueError):
            self.analyzer.analyze([], END, START)
