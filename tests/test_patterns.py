"""Tests for activity pattern analysis."""

import pytest
from datetime import date, timedelta

from adaptive_training.analysis.patterns import ActivityPatternAnalyzer, default_pattern, week_start
from adaptive_training.analysis.types import ActivityRecord, IntensityMix


@pytest.fixture
def history():
    """Six weeks of Tuesday runs, Saturday rides and a few swims."""
    end = date(2024, 6, 2)  # Sunday
    records = []
    for week in range(6):
        monday = week_start(end) - timedelta(weeks=week)
        records.append(ActivityRecord(date=monday + timedelta(days=1), sport="Run",
                                      duration_min=45, distance_km=9, training_load=120))
        records.append(ActivityRecord(date=monday + timedelta(days=5), sport="Ride",
                                      duration_min=120, distance_km=50, training_load=320))
        if week % 2 == 0:
            records.append(ActivityRecord(date=monday + timedelta(days=3), sport="Swim",
                                          duration_min=30, distance_km=1.5, training_load=200))
    return records


class TestActivityPatternAnalyzer:
    """Test pattern mining."""

    def setup_method(self):
        """Set up test fixtures."""
        self.analyzer = ActivityPatternAnalyzer()

    def test_empty_history_returns_default_pattern(self):
        pattern = self.analyzer.analyze([])
        assert pattern == default_pattern()
        assert pattern.preferred_sports == ["running"]
        assert pattern.intensity_mix == IntensityMix(easy=0.7, moderate=0.2, hard=0.1)
        assert pattern.consistency_score == 0
        assert pattern.strong_weekdays == []

    def test_window_without_activities_returns_default(self, history):
        pattern = self.analyzer.analyze(history, as_of=date(2025, 1, 1))
        assert pattern == default_pattern()

    def test_preferred_sports_ranked_by_frequency(self, history):
        pattern = self.analyzer.analyze(history)
        assert pattern.preferred_sports == ["ride", "run", "swim"]

    def test_preferred_sports_ties_are_alphabetical(self):
        day = date(2024, 6, 3)
        records = [
            ActivityRecord(date=day, sport="swim", duration_min=30),
            ActivityRecord(date=day, sport="bike", duration_min=30),
            ActivityRecord(date=day, sport="yoga", duration_min=30),
            ActivityRecord(date=day, sport="run", duration_min=30),
        ]
        assert self.analyzer.analyze(records).preferred_sports == ["bike", "run", "swim"]

    def test_consistency_and_weekly_averages(self, history):
        pattern = self.analyzer.analyze(history)
        assert pattern.activity_count == 15
        assert pattern.consistency_score == pytest.approx(6 / 8 * 100)
        assert pattern.avg_weekly_distance == pytest.approx((6 * 9 + 6 * 50 + 3 * 1.5) / 8)
        assert pattern.avg_weekly_duration == pytest.approx((6 * 45 + 6 * 120 + 3 * 30) / 8)
        assert pattern.avg_session_duration == pytest.approx((6 * 45 + 6 * 120 + 3 * 30) / 15)

    def test_strong_weekdays_need_three_activities(self, history):
        pattern = self.analyzer.analyze(history)
        # Thursday swims just reach the three-activity minimum
        assert pattern.strong_weekdays == ["Saturday", "Thursday", "Tuesday"]

    def test_intensity_mix_sums_to_one(self, history):
        mix = self.analyzer.analyze(history).intensity_mix
        assert mix.easy + mix.moderate + mix.hard == pytest.approx(1.0)
        assert mix.easy == pytest.approx(6 / 15)
        assert mix.hard == pytest.approx(6 / 15)
        assert mix.moderate == pytest.approx(3 / 15)

    def test_analysis_is_idempotent(self, history):
        snapshot = list(history)
        first = self.analyzer.analyze(history)
        second = self.analyzer.analyze(history)
        assert first == second
        assert history == snapshot

    def test_records_outside_window_are_ignored(self, history):
        old = ActivityRecord(date=date(2023, 1, 3), sport="Hike", duration_min=300, training_load=500)
        assert self.analyzer.analyze(history + [old]) == self.analyzer.analyze(history)
