"""Manual adjustments to a generated training plan.

This module provides:
1. Single-day modifications (rest, sport change, duration, intensity)
2. Redistribution of lost training load over the remaining days
3. Impact summaries with warnings and recommendations
4. Substitution suggestions of similar intensity
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence

from ..config import config
from .catalog import WorkoutCatalog, default_catalog
from .types import PlannedWorkout, SportType, WorkoutArchetype

REBALANCE_MIN_LOAD_CHANGE = 5  # fatigue points
REBALANCE_FATIGUE_CAP = 85
PRESERVED_HARD_FATIGUE = 70
DURATION_PER_FATIGUE_POINT = 0.5  # minutes
UNKNOWN_SPORT_FATIGUE_CAP = 60
MAX_SUBSTITUTIONS = 5
SUBSTITUTION_SPORTS = (SportType.RUN, SportType.BIKE, SportType.STRENGTH, SportType.MOBILITY)

REDISTRIBUTION_REASON = "Load redistribution due to plan modification"


class ModificationType(Enum):
    """Kinds of change an athlete can make to one planned day."""

    CHANGE_TO_REST = "change-to-rest"
    CHANGE_WORKOUT_TYPE = "change-workout-type"
    ADJUST_DURATION = "adjust-duration"
    ADJUST_INTENSITY = "adjust-intensity"


@dataclass(frozen=True)
class AdjustmentOptions:
    """How the rest of the plan reacts to a modification."""

    redistribute_load: bool = field(default_factory=lambda: config.REDISTRIBUTE_LOAD)
    preserve_hard_days: bool = field(default_factory=lambda: config.PRESERVE_HARD_DAYS)
    max_daily_fatigue_increase: float = field(default_factory=lambda: config.MAX_DAILY_FATIGUE_INCREASE)


@dataclass(frozen=True)
class WorkoutModification:
    """One change applied to the plan."""

    date: date
    modification_type: ModificationType
    original_workout: PlannedWorkout
    new_workout: PlannedWorkout
    reason: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class ImpactSummary:
    days_affected: int
    total_load_change: float  # fatigue points
    volume_change: float  # minutes


@dataclass(frozen=True)
class PlanAdjustmentResult:
    """The adjusted plan and what changed. The input plan is left untouched."""

    adjusted_plan: List[PlannedWorkout]
    modifications: List[WorkoutModification]
    impact: ImpactSummary
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


def intensity_label(fatigue: float) -> str:
    if fatigue <= 40:
        return "Easy"
    if fatigue <= 65:
        return "Moderate"
    if fatigue <= 85:
        return "Hard"
    return "Extreme"


class PlanAdjustmentEngine:
    """Apply athlete-requested changes to a plan and rebalance the load."""

    def __init__(
        self,
        catalog: Optional[WorkoutCatalog] = None,
        options: Optional[AdjustmentOptions] = None,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.options = options or AdjustmentOptions()
        self.logger = logging.getLogger(__name__)

    def modify_workout(
        self,
        plan: Sequence[PlannedWorkout],
        day: date,
        modification_type: ModificationType,
        sport: Optional[SportType] = None,
        duration_min: Optional[int] = None,
        expected_fatigue: Optional[float] = None,
        reason: Optional[str] = None,
    ) -> PlanAdjustmentResult:
        """Modify the workout planned on ``day``.

        Args:
            plan: Planned workouts in date order
            day: Date of the workout to change
            modification_type: What to change
            sport: New sport for CHANGE_WORKOUT_TYPE
            duration_min: New duration for ADJUST_DURATION
            expected_fatigue: New fatigue for ADJUST_INTENSITY
            reason: Free-text reason recorded with the modification

        Returns:
            PlanAdjustmentResult

        Raises:
            ValueError: If no workout is planned on ``day`` or the change is missing its value
        """
        index = next((i for i, w in enumerate(plan) if w.date == day), None)
        if index is None:
            raise ValueError(f"Workout not found for {day.isoformat()}")

        original = plan[index]
        if modification_type == ModificationType.CHANGE_TO_REST:
            new_workout = self._rest_day(original)
        elif modification_type == ModificationType.CHANGE_WORKOUT_TYPE:
            if sport is None:
                raise ValueError("New workout type must be specified")
            new_workout = self._change_sport(original, sport)
        elif modification_type == ModificationType.ADJUST_DURATION:
            if not duration_min or duration_min <= 0:
                raise ValueError("New duration must be specified")
            new_workout = self._adjust_duration(original, duration_min)
        else:
            if not expected_fatigue or expected_fatigue <= 0:
                raise ValueError("New intensity level must be specified")
            new_workout = self._adjust_intensity(original, expected_fatigue)

        adjusted = list(plan)
        adjusted[index] = new_workout
        modifications = [
            WorkoutModification(
                date=day,
                modification_type=modification_type,
                original_workout=original,
                new_workout=new_workout,
                reason=reason,
            )
        ]

        load_difference = new_workout.expected_fatigue - original.expected_fatigue
        if self.options.redistribute_load and abs(load_difference) > REBALANCE_MIN_LOAD_CHANGE:
            modifications.extend(self._redistribute(adjusted, index, load_difference))

        impact = ImpactSummary(
            days_affected=len(modifications),
            total_load_change=sum(w.expected_fatigue for w in adjusted) - sum(w.expected_fatigue for w in plan),
            volume_change=sum(w.duration_min for w in adjusted) - sum(w.duration_min for w in plan),
        )

        self.logger.info(
            f"{modification_type.value} on {day}: {impact.days_affected} day(s) affected, "
            f"load {impact.total_load_change:+g}, volume {impact.volume_change:+g} min"
        )

        return PlanAdjustmentResult(
            adjusted_plan=adjusted,
            modifications=modifications,
            impact=impact,
            warnings=self._warnings(impact),
            recommendations=self._recommendations(modifications, impact),
        )

    def get_substitutions(self, workout: PlannedWorkout) -> List[WorkoutArchetype]:
        """Up to five archetypes of another sport with similar fatigue, closest first."""
        tolerance = config.SUBSTITUTE_FATIGUE_TOLERANCE
        candidates = [
            a for a in self.catalog
            if a.sport in SUBSTITUTION_SPORTS
            and a.sport != workout.sport
            and abs(a.fatigue_score - workout.expected_fatigue) <= tolerance
        ]
        candidates.sort(key=lambda a: abs(a.fatigue_score - workout.expected_fatigue))
        return candidates[:MAX_SUBSTITUTIONS]

    # ------------------------------------------------------------------
    # Single-day changes
    # ------------------------------------------------------------------

    def _rest_day(self, original: PlannedWorkout) -> PlannedWorkout:
        rest = self.catalog.rest_day()
        return replace(
            original,
            sport=rest.sport,
            description=rest.description,
            expected_fatigue=float(rest.fatigue_score),
            duration_min=rest.duration_min,
            source_archetype_id=rest.id,
            intensity_tag=rest.intensity_tag,
            distance_km=None,
        )

    def _change_sport(self, original: PlannedWorkout, sport: SportType) -> PlannedWorkout:
        options = self.catalog.by_sport(sport)
        if not options:
            self.logger.warning(f"No {sport.value} workouts in catalog, using a basic {sport.value} workout")
            return replace(
                original,
                sport=sport,
                description=f"{sport.value} workout",
                expected_fatigue=min(original.expected_fatigue, UNKNOWN_SPORT_FATIGUE_CAP),
                source_archetype_id=f"{sport.value}-basic",
                intensity_tag=None,
                distance_km=None,
            )

        # min() keeps the first archetype on ties
        best = min(options, key=lambda a: abs(a.fatigue_score - original.expected_fatigue))
        return replace(
            original,
            sport=best.sport,
            description=best.description,
            expected_fatigue=float(best.fatigue_score),
            duration_min=best.duration_min,
            source_archetype_id=best.id,
            intensity_tag=best.intensity_tag,
            distance_km=None,
        )

    @staticmethod
    def _adjust_duration(original: PlannedWorkout, duration_min: int) -> PlannedWorkout:
        # Fatigue scales with the square root of the duration ratio
        ratio = duration_min / max(original.duration_min, 1)
        fatigue = round(original.expected_fatigue * math.sqrt(ratio))
        return replace(
            original,
            duration_min=int(duration_min),
            expected_fatigue=float(max(1, min(100, fatigue))),
            description=f"{original.description} ({duration_min} min)",
        )

    @staticmethod
    def _adjust_intensity(original: PlannedWorkout, expected_fatigue: float) -> PlannedWorkout:
        fatigue = float(min(100, expected_fatigue))
        return replace(
            original,
            expected_fatigue=fatigue,
            description=f"{intensity_label(fatigue)} {original.sport.value} (intensity adjusted)",
        )

    # ------------------------------------------------------------------
    # Rebalancing
    # ------------------------------------------------------------------

    def _redistribute(
        self,
        plan: List[PlannedWorkout],
        modified_index: int,
        load_difference: float,
    ) -> List[WorkoutModification]:
        """Spread lost load over the following days, editing ``plan`` (a private copy) in place."""
        remaining_days = len(plan) - modified_index - 1
        if remaining_days <= 0 or load_difference >= 0:
            return []

        load_per_day = abs(load_difference) / remaining_days
        modifications = []
        for i in range(modified_index + 1, len(plan)):
            workout = plan[i]
            if workout.sport == SportType.REST:
                continue
            if self.options.preserve_hard_days and workout.expected_fatigue > PRESERVED_HARD_FATIGUE:
                continue

            ceiling = min(workout.expected_fatigue + self.options.max_daily_fatigue_increase, REBALANCE_FATIGUE_CAP)
            if ceiling <= workout.expected_fatigue:
                continue

            increase = min(load_per_day, ceiling - workout.expected_fatigue)
            adjusted = replace(
                workout,
                expected_fatigue=workout.expected_fatigue + increase,
                duration_min=workout.duration_min + round(increase * DURATION_PER_FATIGUE_POINT),
                description=f"{workout.description} (adjusted for load redistribution)",
            )
            plan[i] = adjusted
            modifications.append(
                WorkoutModification(
                    date=workout.date,
                    modification_type=ModificationType.ADJUST_INTENSITY,
                    original_workout=workout,
                    new_workout=adjusted,
                    reason=REDISTRIBUTION_REASON,
                )
            )

        self.logger.debug(f"Redistributed {abs(load_difference):g} fatigue over {len(modifications)} day(s)")
        return modifications

    @staticmethod
    def _warnings(impact: ImpactSummary) -> List[str]:
        warnings = []
        if abs(impact.total_load_change) > 50:
            warnings.append(f"Significant training load change: {impact.total_load_change:+g}")
        if abs(impact.volume_change) > 60:
            warnings.append(f"Weekly volume changed by {impact.volume_change:g} minutes")
        if impact.days_affected > 3:
            warnings.append(
                f"Multiple days affected ({impact.days_affected}) - may impact training progression"
            )
        return warnings

    @staticmethod
    def _recommendations(modifications: Sequence[WorkoutModification], impact: ImpactSummary) -> List[str]:
        recommendations = []
        if impact.total_load_change < -30:
            recommendations.append("Consider adding an extra easy workout this week to maintain training volume")
        if any(m.modification_type == ModificationType.CHANGE_TO_REST for m in modifications):
            recommendations.append("Ensure adequate nutrition and hydration on rest days for optimal recovery")
        if impact.days_affected > 2:
            recommendations.append("Monitor your response to the adjusted training load over the next few days")
        return recommendations
