"""Planned vs actual workout comparison and adherence scoring."""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .types import (
    ActivityRecord,
    Adherence,
    AdherenceCategory,
    DurationVariance,
    IntensityVariance,
    LapRecord,
    PerformanceMetrics,
    PlannedWorkout,
    WorkoutComparison,
    ZoneCompliance,
)

logger = logging.getLogger(__name__)

# Fraction of planned minutes per heart-rate zone, by upper fatigue bound
PLANNED_ZONE_SPLITS: Tuple[Tuple[float, Tuple[float, float, float, float, float]], ...] = (
    (40, (0.30, 0.70, 0.0, 0.0, 0.0)),  # easy
    (65, (0.20, 0.60, 0.20, 0.0, 0.0)),  # moderate
    (85, (0.10, 0.40, 0.30, 0.20, 0.0)),  # hard
    (100, (0.05, 0.25, 0.30, 0.30, 0.10)),  # extreme
)

# Planned load per fatigue point and fatigue per actual load point
LOAD_PER_FATIGUE_POINT = 5.0


def adherence_category(score: float) -> AdherenceCategory:
    """Bucket an adherence score."""
    if score >= 85:
        return AdherenceCategory.EXCELLENT
    if score >= 70:
        return AdherenceCategory.GOOD
    if score >= 50:
        return AdherenceCategory.FAIR
    return AdherenceCategory.POOR


def estimate_planned_zones(planned: PlannedWorkout) -> Tuple[float, float, float, float, float]:
    """Expected minutes in each heart-rate zone for a planned workout."""
    for upper_bound, split in PLANNED_ZONE_SPLITS:
        if planned.expected_fatigue <= upper_bound:
            break
    return tuple(planned.duration_min * share for share in split)


class ComparisonEngine:
    """Score how closely a completed activity followed its planned workout."""

    def compare(
        self,
        planned: PlannedWorkout,
        actual: ActivityRecord,
        laps: Optional[Sequence[LapRecord]] = None,
    ) -> WorkoutComparison:
        """Compare a matched planned/actual pair.

        Args:
            planned: The planned workout
            actual: The completed activity matched to it
            laps: Optional lap breakdown, used for pace consistency

        Returns:
            WorkoutComparison with variances, zone compliance and adherence
        """
        duration = self.duration_variance(planned.duration_min, actual.duration_min or 0)
        zones = self.zone_compliance(estimate_planned_zones(planned), actual.zone_minutes)

        actual_fatigue = float(np.clip((actual.training_load or 0) / LOAD_PER_FATIGUE_POINT, 0, 100))
        intensity = IntensityVariance(
            planned_fatigue=planned.expected_fatigue,
            actual_fatigue=actual_fatigue,
            difference=actual_fatigue - planned.expected_fatigue,
        )

        performance = PerformanceMetrics(
            training_load_variance=(actual.training_load or 0) - planned.expected_fatigue * LOAD_PER_FATIGUE_POINT,
            hr_drift=actual.hr_drift,
            pace_consistency=self.pace_consistency(laps or ()),
        )

        score = self.adherence_score(
            duration.percentage_change, intensity.difference, zones.overall_compliance
        )
        adherence = Adherence(
            score=score,
            category=adherence_category(score),
            feedback=self.feedback(duration.percentage_change, intensity.difference, zones.overall_compliance),
        )

        logger.debug(
            f"{planned.date} {planned.source_archetype_id}: adherence {score} ({adherence.category.value})"
        )

        return WorkoutComparison(
            duration_variance=duration,
            intensity_variance=intensity,
            zone_compliance=zones,
            performance=performance,
            adherence=adherence,
        )

    @staticmethod
    def duration_variance(planned: float, actual: float) -> DurationVariance:
        difference = actual - planned
        percentage = difference / planned * 100 if planned > 0 else 0.0
        return DurationVariance(
            planned=planned,
            actual=actual,
            difference=difference,
            percentage_change=percentage,
        )

    @staticmethod
    def zone_compliance(planned_zones: Sequence[float], actual_zones: Sequence[float]) -> ZoneCompliance:
        """Per-zone variance and overall compliance (0 when nothing was planned)."""
        planned_arr = np.asarray(planned_zones, dtype=float)
        actual_arr = np.asarray(actual_zones, dtype=float)
        variances = actual_arr - planned_arr

        total_planned = planned_arr.sum()
        if total_planned > 0:
            compliance = max(0.0, 100 - np.abs(variances).sum() / total_planned * 100)
        else:
            compliance = 0.0

        return ZoneCompliance(
            planned_zones=tuple(float(v) for v in planned_arr),
            actual_zones=tuple(float(v) for v in actual_arr),
            zone_variances=tuple(float(v) for v in variances),
            overall_compliance=float(compliance),
        )

    @staticmethod
    def adherence_score(duration_pct: float, intensity_difference: float, zone_compliance: float) -> int:
        """Weighted blend: duration 30%, intensity 40%, zones 30%."""
        duration_score = max(0.0, 100 - abs(duration_pct))
        intensity_score = max(0.0, 100 - abs(intensity_difference) * 2)
        score = round(duration_score * 0.3 + intensity_score * 0.4 + zone_compliance * 0.3)
        return int(min(100, max(0, score)))

    @staticmethod
    def feedback(duration_pct: float, intensity_difference: float, zone_compliance: float) -> List[str]:
        messages = []

        if abs(duration_pct) <= 5:
            messages.append("Duration matched plan perfectly")
        elif duration_pct > 5:
            messages.append(f"Workout was {round(duration_pct)}% longer than planned")
        else:
            messages.append(f"Workout was {round(abs(duration_pct))}% shorter than planned")

        if abs(intensity_difference) <= 5:
            messages.append("Intensity matched plan well")
        elif intensity_difference > 5:
            messages.append("Workout was more intense than planned")
        else:
            messages.append("Workout was less intense than planned")

        if zone_compliance >= 80:
            messages.append("Excellent heart rate zone distribution")
        elif zone_compliance >= 60:
            messages.append("Good heart rate zone distribution")
        else:
            messages.append("Heart rate zones deviated from plan")

        return messages

    @staticmethod
    def pace_consistency(laps: Sequence[LapRecord]) -> Optional[float]:
        """Coefficient of variation of lap paces (None with fewer than two paced laps)."""
        paces = np.array([lap.avg_pace for lap in laps if lap.avg_pace], dtype=float)
        if len(paces) < 2:
            return None
        mean = paces.mean()
        if mean <= 0:
            return None
        return float(paces.std() / mean)
