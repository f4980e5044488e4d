"""Match uploaded activities against open planned workouts.

Two scoring profiles are supported:

- ``weighted``: additive 0-100 score (date 30, sport 40, duration 30),
  auto-match at 75.
- ``compact``: additive 0-1 score (sport 0.4, date 0.2, duration 0.2,
  distance 0.2), auto-match at 0.5.

Both are kept as named options; callers pick one through ``MatchingConfig``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import config
from .types import (
    ActivityRecord,
    LapRecord,
    MatchCandidate,
    MatchRecommendation,
    MatchResult,
    PlannedWorkout,
    SportType,
)

logger = logging.getLogger(__name__)

MAX_ALTERNATIVES = 3


class ScoringProfile(Enum):
    """Named confidence formulas."""

    WEIGHTED = "weighted"  # 0-100
    COMPACT = "compact"  # 0-1


@dataclass(frozen=True)
class MatchingConfig:
    """Matcher settings."""

    profile: ScoringProfile = field(default_factory=lambda: ScoringProfile(config.MATCH_SCORING_PROFILE))
    date_tolerance_days: int = config.MATCH_DATE_TOLERANCE_DAYS
    weighted_auto_match_threshold: float = config.WEIGHTED_AUTO_MATCH_THRESHOLD
    compact_auto_match_threshold: float = config.COMPACT_AUTO_MATCH_THRESHOLD

    @property
    def auto_match_threshold(self) -> float:
        if self.profile == ScoringProfile.COMPACT:
            return self.compact_auto_match_threshold
        return self.weighted_auto_match_threshold


def sport_similarity(activity_sport: str, planned_sport: SportType) -> float:
    """Similarity of an activity's raw sport label to a planned sport (0-1).

    An exact label match scores 1.0, a synonym that normalizes to the same
    sport 0.8, a run or bike activity against a planned brick 0.6, and
    anything else 0.1.
    """
    label = (activity_sport or "").strip().lower()
    if label == planned_sport.value:
        return 1.0

    normalized = SportType.from_label(label)
    if normalized == planned_sport and normalized != SportType.OTHER:
        return 0.8

    if planned_sport == SportType.BRICK and normalized in (SportType.RUN, SportType.BIKE):
        return 0.6

    return 0.1


class ActivityMatcher:
    """Rank planned workouts against one uploaded activity.

    Scores depend only on the activity and the candidate, so repeated calls
    with the same inputs return the same ranking.
    """

    def __init__(self, matching_config: Optional[MatchingConfig] = None):
        self.config = matching_config or MatchingConfig()

    def match(
        self,
        activity: ActivityRecord,
        planned: Iterable[PlannedWorkout],
        laps: Optional[Sequence[LapRecord]] = None,
    ) -> MatchResult:
        """Score every planned workout within the date tolerance.

        Args:
            activity: The uploaded activity
            planned: Planned workouts that are still open
            laps: Lap breakdown, passed through unchanged

        Returns:
            MatchResult whose recommendation is None when no candidate is in range
        """
        laps = tuple(laps or ())
        in_range = [
            workout for workout in planned
            if abs((workout.date - activity.date).days) <= self.config.date_tolerance_days
        ]

        candidates = [self.score_candidate(activity, workout) for workout in in_range]
        # sorted() is stable, so equal scores keep plan order
        candidates = sorted(candidates, key=lambda c: c.confidence, reverse=True)

        for candidate in candidates:
            logger.debug(
                f"{activity.date} {activity.sport} vs {candidate.planned_workout.source_archetype_id}: "
                f"{candidate.confidence:.2f} ({', '.join(candidate.reasons)})"
            )

        return MatchResult(
            activity=activity,
            laps=laps,
            candidates=candidates,
            recommendation=self.recommend(candidates),
        )

    def score_candidate(self, activity: ActivityRecord, workout: PlannedWorkout) -> MatchCandidate:
        if self.config.profile == ScoringProfile.COMPACT:
            confidence, reasons = self._score_compact(activity, workout)
        else:
            confidence, reasons = self._score_weighted(activity, workout)
        return MatchCandidate(planned_workout=workout, confidence=confidence, reasons=reasons)

    def recommend(self, candidates: Sequence[MatchCandidate]) -> Optional[MatchRecommendation]:
        """Best match, auto-match flag and up to three alternatives."""
        if not candidates:
            return None

        best = candidates[0]
        return MatchRecommendation(
            best_match=best.planned_workout,
            confidence=best.confidence,
            should_auto_match=best.confidence >= self.config.auto_match_threshold,
            alternatives=[c.planned_workout for c in candidates[1:1 + MAX_ALTERNATIVES]],
            profile=self.config.profile.value,
        )

    @staticmethod
    def _score_weighted(activity: ActivityRecord, workout: PlannedWorkout) -> Tuple[float, List[str]]:
        reasons: List[str] = []
        score = 0.0

        # Date proximity (0-30)
        days = abs((workout.date - activity.date).days)
        score += max(0, 30 - days * 15)
        if days == 0:
            reasons.append("Same date")
        elif days == 1:
            reasons.append("Adjacent date (1 day difference)")

        # Sport similarity (0-40)
        similarity = sport_similarity(activity.sport, workout.sport)
        score += similarity * 40
        if similarity >= 0.8:
            reasons.append("Matching workout type")
        elif similarity >= 0.5:
            reasons.append("Similar workout type")

        # Duration closeness (0-30)
        difference = relative_difference(workout.duration_min, activity.duration_min)
        score += max(0.0, 30 * (1 - difference))
        if difference <= 0.1:
            reasons.append("Very similar duration")
        elif difference <= 0.25:
            reasons.append("Similar duration")

        return round(min(100.0, score), 2), reasons

    @staticmethod
    def _score_compact(activity: ActivityRecord, workout: PlannedWorkout) -> Tuple[float, List[str]]:
        reasons: List[str] = []
        points = 0

        if activity.sport_type == workout.sport:
            points += 40
            reasons.append("Sport matches")

        if activity.date == workout.date:
            points += 20
            reasons.append("Date matches")

        if activity.duration_min and workout.duration_min:
            minutes = abs(activity.duration_min - workout.duration_min)
            if minutes <= 5:
                points += 20
                reasons.append("Duration within 5 minutes")
            elif minutes <= 15:
                points += 15
                reasons.append("Duration within 15 minutes")
            elif minutes <= 30:
                points += 10
                reasons.append("Duration within 30 minutes")
            else:
                reasons.append(f"Duration differs by {round(minutes)} minutes")

        if activity.distance_km and workout.distance_km:
            km = abs(activity.distance_km - workout.distance_km)
            if km <= 0.5:
                points += 20
                reasons.append("Distance within 500m")
            elif km <= 1:
                points += 15
                reasons.append("Distance within 1km")
            elif km <= 2:
                points += 10
                reasons.append("Distance within 2km")
            else:
                reasons.append(f"Distance differs by {km:.1f}km")

        return points / 100, reasons


def relative_difference(planned: float, actual: float) -> float:
    """|actual - planned| / planned, treating a zero plan as 0 (equal) or 1."""
    if not planned:
        return 0.0 if not actual else 1.0
    return abs((actual or 0) - planned) / planned
