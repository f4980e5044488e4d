"""Readiness estimation from recent fatigue and recovery signals."""

import logging
import math
from datetime import date
from typing import List, Optional, Sequence

import numpy as np

from ..config import config
from .types import ReadinessMetrics, RecoverySignals, TrainingPhase, WorkoutSummary

logger = logging.getLogger(__name__)


class ReadinessCalculator:
    """Turn recent fatigue/recovery signals into a 0-100 readiness score.

    The calculation is pure: it performs no I/O and missing optional inputs
    fall back to documented defaults instead of raising.
    """

    def __init__(
        self,
        hard_fatigue_threshold: Optional[float] = None,
        default_recovery_score: Optional[float] = None,
    ):
        self.hard_fatigue_threshold = (
            config.HARD_FATIGUE_THRESHOLD if hard_fatigue_threshold is None else hard_fatigue_threshold
        )
        self.default_recovery_score = (
            config.DEFAULT_RECOVERY_SCORE if default_recovery_score is None else default_recovery_score
        )

    def calculate(
        self,
        fatigue_scores: Sequence[float],
        recent_workouts: Sequence[WorkoutSummary] = (),
        recovery: Optional[RecoverySignals] = None,
        event_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ReadinessMetrics:
        """Calculate readiness metrics.

        Args:
            fatigue_scores: Recent daily fatigue scores, most recent last
            recent_workouts: Completed workouts in the recent window
            recovery: Optional wearable recovery signals
            event_date: Target event date, if any
            today: Reference date (defaults to date.today())

        Returns:
            ReadinessMetrics
        """
        fatigue_avg = float(np.mean(fatigue_scores)) if len(fatigue_scores) > 0 else 0.0
        training_load = float(sum(w.training_load or 0 for w in recent_workouts))
        hard_days = sum(1 for w in recent_workouts if w.fatigue > self.hard_fatigue_threshold)
        recovery_score = self.calculate_recovery_score(recovery)

        score = self.score_readiness(fatigue_avg, hard_days, recovery_score)

        days_until_event = None
        if event_date is not None:
            days_until_event = self.days_until(event_date, today or date.today())

        logger.debug(
            f"Readiness {score:.0f} (fatigue avg {fatigue_avg:.1f}, hard days {hard_days}, "
            f"recovery {recovery_score:.1f})"
        )

        return ReadinessMetrics(
            score=score,
            fatigue_7day_avg=fatigue_avg,
            recovery_score=recovery_score,
            training_load_7day=training_load,
            recent_hard_day_count=hard_days,
            days_until_event=days_until_event,
        )

    def calculate_recovery_score(self, recovery: Optional[RecoverySignals]) -> float:
        """Average whichever recovery signals are present (default when none)."""
        if recovery is None:
            return self.default_recovery_score

        components: List[float] = []
        if recovery.body_battery is not None:
            components.append(recovery.body_battery)
        if recovery.sleep_score is not None:
            components.append(recovery.sleep_score)
        if recovery.hrv is not None:
            # Rough normalization of HRV (ms) onto a 0-100 scale
            components.append(min(100.0, recovery.hrv * 2))

        if not components:
            return self.default_recovery_score
        return float(np.mean(components))

    @staticmethod
    def score_readiness(fatigue_avg: float, hard_days: int, recovery_score: float) -> float:
        """Apply additive penalties/bonuses to a base score of 100."""
        score = 100.0

        # Penalize high recent fatigue
        if fatigue_avg > 60:
            score -= 20
        if fatigue_avg > 75:
            score -= 10

        # Penalize too many recent hard days
        if hard_days >= 3:
            score -= 15
        if hard_days >= 4:
            score -= 15

        # Recovery metrics
        if recovery_score < 40:
            score -= 20
        if recovery_score > 80:
            score += 10

        return float(np.clip(score, 0, 100))

    @staticmethod
    def days_until(event_date: date, today: date) -> int:
        """Whole days until the event, rounded up."""
        return math.ceil((event_date - today).days)


def determine_phase(
    days_until_event: Optional[int],
    override: Optional[TrainingPhase] = None,
) -> TrainingPhase:
    """Determine the training phase from the days remaining until the event."""
    if override is not None:
        return override

    if days_until_event is None:
        return TrainingPhase.BASE

    if days_until_event <= config.TAPER_DAYS:
        return TrainingPhase.TAPER
    if days_until_event <= config.PEAK_DAYS:
        return TrainingPhase.PEAK
    if days_until_event <= config.BUILD_DAYS:
        return TrainingPhase.BUILD
    return TrainingPhase.BASE
