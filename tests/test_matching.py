"""Tests for activity-to-plan matching."""

import pytest
from datetime import date, timedelta

from adaptive_training.analysis.matching import (
    ActivityMatcher,
    MatchingConfig,
    ScoringProfile,
    relative_difference,
    sport_similarity,
)
from adaptive_training.analysis.types import ActivityRecord, LapRecord, PlannedWorkout, SportType

DAY = date(2024, 6, 4)


def planned(sport=SportType.RUN, day=DAY, duration=45, distance=None, archetype="run-zone2"):
    return PlannedWorkout(
        date=day,
        sport=sport,
        description="Planned session",
        expected_fatigue=45.0,
        duration_min=duration,
        source_archetype_id=archetype,
        distance_km=distance,
    )


@pytest.fixture
def open_plan():
    return [
        planned(SportType.BIKE, archetype="bike-zone2"),
        planned(SportType.RUN, DAY + timedelta(days=1), archetype="run-next-day"),
        planned(SportType.RUN),
        planned(SportType.SWIM, DAY - timedelta(days=1), archetype="swim-zone2"),
        planned(SportType.RUN, DAY + timedelta(days=3), archetype="run-later"),
    ]


class TestSportSimilarity:
    """Test the sport similarity table."""

    def test_similarity_levels(self):
        assert sport_similarity("run", SportType.RUN) == 1.0
        assert sport_similarity("Running", SportType.RUN) == 0.8
        assert sport_similarity("ride", SportType.BRICK) == 0.6
        assert sport_similarity("Run", SportType.BRICK) == 0.6
        assert sport_similarity("swim", SportType.RUN) == 0.1
        assert sport_similarity("", SportType.OTHER) == 0.1

    def test_relative_difference(self):
        assert relative_difference(50, 40) == pytest.approx(0.2)
        assert relative_difference(0, 0) == 0
        assert relative_difference(0, 30) == 1


class TestWeightedProfile:
    """Test the 0-100 weighted scoring profile."""

    def setup_method(self):
        """Set up test fixtures."""
        self.matcher = ActivityMatcher(MatchingConfig(profile=ScoringProfile.WEIGHTED))

    def test_identical_pair_is_best_and_auto_matched(self, open_plan):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=45)
        result = self.matcher.match(activity, open_plan)

        best = result.candidates[0]
        assert best.planned_workout == open_plan[2]
        assert best.confidence == 100
        assert best.confidence == max(c.confidence for c in result.candidates)
        assert result.recommendation.should_auto_match
        assert result.recommendation.best_match == open_plan[2]
        assert result.recommendation.profile == "weighted"
        assert best.reasons == ["Same date", "Matching workout type", "Very similar duration"]

    def test_date_tolerance_filters_candidates(self, open_plan):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=45)
        result = self.matcher.match(activity, open_plan)
        ids = {c.planned_workout.source_archetype_id for c in result.candidates}
        assert "run-later" not in ids
        assert len(result.candidates) == 4

    def test_component_scores(self, open_plan):
        activity = ActivityRecord(date=DAY, sport="Running", duration_min=54)
        scores = {
            c.planned_workout.source_archetype_id: c.confidence
            for c in self.matcher.match(activity, open_plan).candidates
        }
        # date 30 + synonym 0.8 * 40 + duration 30 * (1 - 0.2)
        assert scores["run-zone2"] == pytest.approx(30 + 32 + 24)
        assert scores["run-next-day"] == pytest.approx(15 + 32 + 24)
        assert scores["bike-zone2"] == pytest.approx(30 + 4 + 24)

    def test_alternatives_limited_to_three(self, open_plan):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=45)
        plan = open_plan + [planned(SportType.STRENGTH, archetype="strength-core")]
        recommendation = self.matcher.match(activity, plan).recommendation
        assert len(recommendation.alternatives) == 3
        assert open_plan[2] not in recommendation.alternatives

    def test_low_confidence_not_auto_matched(self):
        activity = ActivityRecord(date=DAY + timedelta(days=1), sport="swim", duration_min=120)
        recommendation = self.matcher.match(activity, [planned()]).recommendation
        assert recommendation is not None
        assert recommendation.confidence < 75
        assert not recommendation.should_auto_match

    def test_no_candidates_returns_no_recommendation(self):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=45)
        result = self.matcher.match(activity, [planned(day=DAY + timedelta(days=5))])
        assert result.candidates == []
        assert result.recommendation is None

    def test_laps_are_passed_through(self):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=45)
        laps = [LapRecord(lap_number=1, duration_min=22.5), LapRecord(lap_number=2, duration_min=22.5)]
        result = self.matcher.match(activity, [planned()], laps)
        assert result.laps == tuple(laps)

    def test_scoring_is_deterministic(self, open_plan):
        activity = ActivityRecord(date=DAY, sport="bike", duration_min=60)
        first = self.matcher.match(activity, open_plan)
        second = self.matcher.match(activity, open_plan)
        assert first.candidates == second.candidates


class TestCompactProfile:
    """Test the 0-1 compact scoring profile."""

    def setup_method(self):
        """Set up test fixtures."""
        self.matcher = ActivityMatcher(MatchingConfig(profile=ScoringProfile.COMPACT))

    def test_identical_pair_with_distance(self):
        activity = ActivityRecord(date=DAY, sport="Running", duration_min=45, distance_km=10.2)
        result = self.matcher.match(activity, [planned(distance=10.0)])
        best = result.candidates[0]
        assert best.confidence == pytest.approx(1.0)
        assert best.reasons == ["Sport matches", "Date matches", "Duration within 5 minutes", "Distance within 500m"]
        assert result.recommendation.should_auto_match
        assert result.recommendation.profile == "compact"

    def test_confidence_bounds(self, open_plan):
        activity = ActivityRecord(date=DAY, sport="kayak", duration_min=200, distance_km=30)
        for candidate in self.matcher.match(activity, open_plan).candidates:
            assert 0.0 <= candidate.confidence <= 1.0

    def test_partial_match(self):
        activity = ActivityRecord(date=DAY + timedelta(days=1), sport="run", duration_min=57, distance_km=12.5)
        candidate = self.matcher.match(activity, [planned(distance=11.0)]).candidates[0]
        # sport 40 + duration within 15 min 15 + distance within 2 km 10
        assert candidate.confidence == pytest.approx(0.65)
        assert "Duration within 15 minutes" in candidate.reasons
        assert "Distance within 2km" in candidate.reasons

    def test_large_differences_reported(self):
        activity = ActivityRecord(date=DAY, sport="bike", duration_min=100, distance_km=30)
        candidate = self.matcher.match(activity, [planned(distance=10.0)]).candidates[0]
        assert candidate.confidence == pytest.approx(0.2)
        assert "Duration differs by 55 minutes" in candidate.reasons
        assert "Distance differs by 20.0km" in candidate.reasons
        assert not self.matcher.recommend(self.matcher.match(activity, [planned()]).candidates).should_auto_match

    def test_missing_duration_not_scored(self):
        activity = ActivityRecord(date=DAY, sport="run", duration_min=0)
        candidate = self.matcher.match(activity, [planned(duration=20)]).candidates[0]
        # sport 40 + date 20, no duration points
        assert candidate.confidence == pytest.approx(0.6)
        assert not any(reason.startswith("Duration") for reason in candidate.reasons)


class TestMatchingConfig:
    """Test matcher settings defaults."""

    def test_profile_default_read_at_construction(self, monkeypatch):
        from adaptive_training.config import config

        monkeypatch.setattr(config, "MATCH_SCORING_PROFILE", "compact")
        matching_config = MatchingConfig()
        assert matching_config.profile == ScoringProfile.COMPACT
        assert matching_config.auto_match_threshold == 0.5

    def test_explicit_profile(self):
        assert MatchingConfig(profile=ScoringProfile.WEIGHTED).auto_match_threshold == 75
