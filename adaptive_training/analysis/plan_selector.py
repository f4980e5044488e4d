"""Day-by-day adaptive workout selection.

This module provides:
1. Readiness-driven intensity decisions (recovery, easy, moderate, hard)
2. Hard-day spacing and a weekly hard-workout cap
3. Phase-aware catalog queries with a three-tier fallback chain
4. Exclusion filtering with like-for-like substitution
5. Personalization from the athlete's historical activity pattern
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import FrozenSet, List, Optional, Sequence

from ..config import config
from .catalog import WorkoutCatalog, adjust_for_fitness_level, default_catalog
from .patterns import WEEKDAY_NAMES
from .readiness import determine_phase
from .types import (
    ActivityPattern,
    ExerciseCategory,
    IntensityLevel,
    PlannedWorkout,
    PlanResult,
    ReadinessMetrics,
    SportType,
    TrainingPhase,
    UserProfile,
    WorkoutArchetype,
    is_excluded,
)

LOW_READINESS_WARNING = "Low readiness detected - recommending recovery"
EXTRA_RECOVERY_RECOMMENDATION = "Taking extra recovery due to recent high training load"


class CatalogConfigurationError(RuntimeError):
    """Raised when the catalog cannot supply a workout from any fallback tier."""


@dataclass(frozen=True)
class PlanSettings:
    """Tunable constants of the selection procedure."""

    hard_fatigue_threshold: float = config.HARD_FATIGUE_THRESHOLD
    max_hard_workouts_per_week: int = config.MAX_HARD_WORKOUTS_PER_WEEK
    hard_cap_scope: str = config.HARD_CAP_SCOPE  # "plan" or "rolling_week"
    brick_preference_probability: float = config.BRICK_PREFERENCE_PROBABILITY
    preferred_sport_probability: float = config.PREFERRED_SPORT_PROBABILITY
    personalize: bool = config.ENABLE_PERSONALIZATION
    substitute_fatigue_tolerance: float = config.SUBSTITUTE_FATIGUE_TOLERANCE
    substitute_duration_tolerance: float = config.SUBSTITUTE_DURATION_TOLERANCE
    duration_nudge_limit: float = config.DURATION_NUDGE_LIMIT
    strong_day_fatigue_bonus: float = config.STRONG_DAY_FATIGUE_BONUS

    def __post_init__(self):
        if self.hard_cap_scope not in ("plan", "rolling_week"):
            raise ValueError(f"hard_cap_scope must be 'plan' or 'rolling_week', got '{self.hard_cap_scope}'")


@dataclass(frozen=True)
class PlanRequest:
    """Everything needed to generate one plan."""

    readiness: ReadinessMetrics
    plan_length_days: int
    profile: UserProfile = field(default_factory=UserProfile)
    pattern: Optional[ActivityPattern] = None
    available_today: bool = True
    excluded_categories: FrozenSet[ExerciseCategory] = frozenset()
    start_date: Optional[date] = None
    phase_override: Optional[TrainingPhase] = None


class PlanSelector:
    """Walk a date range and pick one workout archetype per day.

    The selector holds no per-request state; the partially built plan is
    local to ``generate_plan``. Ties inside an eligible pool are broken by a
    uniform choice from the injected random source.
    """

    def __init__(
        self,
        catalog: Optional[WorkoutCatalog] = None,
        rng: Optional[random.Random] = None,
        settings: Optional[PlanSettings] = None,
    ):
        self.catalog = catalog if catalog is not None else default_catalog()
        self.rng = rng if rng is not None else random.Random()
        self.settings = settings or PlanSettings()
        self.logger = logging.getLogger(__name__)

    def generate_plan(self, request: PlanRequest) -> PlanResult:
        """Generate a plan of ``request.plan_length_days`` consecutive days.

        Raises:
            ValueError: If the plan length is negative
            CatalogConfigurationError: If no fallback tier has any workout
        """
        if request.plan_length_days < 0:
            raise ValueError(f"plan_length_days must be >= 0, got {request.plan_length_days}")

        readiness = request.readiness
        start = request.start_date or date.today()
        phase = determine_phase(readiness.days_until_event, request.phase_override)
        excluded = frozenset(request.excluded_categories) | frozenset(request.profile.excluded_categories)
        pattern = request.pattern if self.settings.personalize else None

        recommendations: List[str] = []
        warnings: List[str] = []
        plan: List[PlannedWorkout] = []

        for day_offset in range(request.plan_length_days):
            day = start + timedelta(days=day_offset)

            if day_offset == 0 and not request.available_today:
                plan.append(self._to_planned(day, self.catalog.rest_day()))
                continue

            level = self._decide_level(readiness, plan, recommendations, warnings)
            allow_hard = level in (IntensityLevel.MODERATE, IntensityLevel.HARD)

            archetype = self._select(level, phase, allow_hard, request.profile)
            archetype = self._apply_exclusions(
                archetype, level, phase, excluded, allow_hard, request.profile, day, recommendations
            )

            if archetype.sport == SportType.REST:
                plan.append(self._to_planned(day, archetype))
                continue

            if pattern is not None:
                archetype = self._prefer_sport(archetype, level, phase, excluded, allow_hard, request.profile, pattern)

            adjusted = adjust_for_fitness_level(archetype, request.profile.fitness_level)
            duration = adjusted.duration_min
            fatigue = adjusted.fatigue_score
            if pattern is not None:
                duration, fatigue = self._personalize(day, duration, fatigue, allow_hard, pattern)

            workout = PlannedWorkout(
                date=day,
                sport=archetype.sport,
                description=archetype.description,
                expected_fatigue=float(fatigue),
                duration_min=int(duration),
                source_archetype_id=archetype.id,
                intensity_tag=archetype.intensity_tag,
            )
            self.logger.debug(
                f"{day} {level.value}: {workout.source_archetype_id} "
                f"({workout.duration_min} min, fatigue {workout.expected_fatigue:.0f})"
            )
            plan.append(workout)

        self._add_general_recommendations(readiness, recommendations, warnings)

        self.logger.info(
            f"Generated {len(plan)}-day plan starting {start} in {phase.value} phase "
            f"(readiness {readiness.score:.0f})"
        )
        return PlanResult(
            workouts=plan,
            readiness=readiness,
            phase=phase,
            recommendations=recommendations,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def _decide_level(
        self,
        readiness: ReadinessMetrics,
        plan: Sequence[PlannedWorkout],
        recommendations: List[str],
        warnings: List[str],
    ) -> IntensityLevel:
        """Pick the intensity level for the next day."""
        threshold = self.settings.hard_fatigue_threshold

        if readiness.score < 40:
            _note(warnings, LOW_READINESS_WARNING)
            return IntensityLevel.RECOVERY

        # No back-to-back hard days
        if plan and plan[-1].is_hard(threshold):
            return IntensityLevel.EASY

        if self._hard_count(plan) >= self.settings.max_hard_workouts_per_week:
            return IntensityLevel.EASY

        if readiness.recent_hard_day_count >= 3:
            _note(recommendations, EXTRA_RECOVERY_RECOMMENDATION)
            return IntensityLevel.RECOVERY

        if readiness.score > 70:
            return IntensityLevel.HARD
        if readiness.score > 50:
            return IntensityLevel.MODERATE
        return IntensityLevel.EASY

    def _hard_count(self, plan: Sequence[PlannedWorkout]) -> int:
        window = plan
        if self.settings.hard_cap_scope == "rolling_week":
            window = plan[-6:]  # the six previous days plus the day being planned
        return sum(1 for w in window if w.is_hard(self.settings.hard_fatigue_threshold))

    # ------------------------------------------------------------------
    # Catalog queries
    # ------------------------------------------------------------------

    def _select(
        self,
        level: IntensityLevel,
        phase: TrainingPhase,
        allow_hard: bool,
        profile: UserProfile,
    ) -> WorkoutArchetype:
        """Choose from the phase pool, then the full pool, then the recovery pool."""
        tiers = (
            ("phase", self.catalog.pool(level, phase)),
            ("unfiltered", self.catalog.pool(level)),
            ("recovery", self.catalog.pool(IntensityLevel.RECOVERY)),
        )
        for tier_name, pool in tiers:
            pool = [a for a in pool if allow_hard or self._stays_below_hard(a, profile)]
            if not pool:
                continue
            if tier_name != "phase":
                self.logger.warning(f"No {level.value} workouts for {phase.value} phase, using {tier_name} pool")

            if (
                level == IntensityLevel.HARD
                and tier_name != "recovery"
                and phase in (TrainingPhase.BUILD, TrainingPhase.PEAK)
            ):
                bricks = [a for a in pool if a.sport == SportType.BRICK]
                if bricks and self.rng.random() < self.settings.brick_preference_probability:
                    pool = bricks

            return self.rng.choice(pool)

        raise CatalogConfigurationError(
            f"Workout catalog has no {level.value} or recovery workouts "
            f"({len(self.catalog)} archetypes configured)"
        )

    def _apply_exclusions(
        self,
        pick: WorkoutArchetype,
        level: IntensityLevel,
        phase: TrainingPhase,
        excluded: FrozenSet[ExerciseCategory],
        allow_hard: bool,
        profile: UserProfile,
        day: date,
        recommendations: List[str],
    ) -> WorkoutArchetype:
        """Replace a pick whose exercise category the athlete excluded."""
        if not excluded or not is_excluded(pick.sport, excluded):
            return pick

        def usable(archetype: WorkoutArchetype) -> bool:
            return not is_excluded(archetype.sport, excluded) and (
                allow_hard or self._stays_below_hard(archetype, profile)
            )

        # Same intensity pool, similar load and length
        same_pool = _unique(self.catalog.pool(level, phase) + self.catalog.pool(level))
        similar = [
            a for a in same_pool
            if usable(a)
            and abs(a.fatigue_score - pick.fatigue_score) <= self.settings.substitute_fatigue_tolerance
            and abs(a.duration_min - pick.duration_min) <= self.settings.substitute_duration_tolerance
        ]
        if similar:
            substitute = self.rng.choice(similar)
            self.logger.debug(f"{day}: replaced excluded {pick.id} with {substitute.id}")
            return substitute

        moderate = [a for a in self.catalog.pool(IntensityLevel.MODERATE) if usable(a)]
        if moderate:
            substitute = self.rng.choice(moderate)
            self.logger.debug(f"{day}: replaced excluded {pick.id} with moderate {substitute.id}")
            return substitute

        self.logger.warning(f"{day}: no alternative for excluded {pick.id}, scheduling rest")
        recommendations.append(
            f"No suitable alternative for excluded exercises on {day.isoformat()} - scheduled rest day"
        )
        return self.catalog.rest_day()

    def _prefer_sport(
        self,
        pick: WorkoutArchetype,
        level: IntensityLevel,
        phase: TrainingPhase,
        excluded: FrozenSet[ExerciseCategory],
        allow_hard: bool,
        profile: UserProfile,
        pattern: ActivityPattern,
    ) -> WorkoutArchetype:
        """Swap in a same-intensity workout of a preferred sport."""
        preferred = {SportType.from_label(s) for s in pattern.preferred_sports[:3]}
        preferred.discard(SportType.OTHER)
        if not preferred or pick.sport in preferred:
            return pick

        candidates = [
            a for a in self.catalog.pool(level, phase)
            if a.sport in preferred
            and not is_excluded(a.sport, excluded)
            and (allow_hard or self._stays_below_hard(a, profile))
        ]
        if candidates and self.rng.random() < self.settings.preferred_sport_probability:
            return self.rng.choice(candidates)
        return pick

    def _personalize(
        self,
        day: date,
        duration: int,
        fatigue: float,
        allow_hard: bool,
        pattern: ActivityPattern,
    ):
        """Nudge duration toward the usual session length and load strong weekdays."""
        if pattern.avg_session_duration > 0:
            limit = self.settings.duration_nudge_limit
            low, high = duration * (1 - limit), duration * (1 + limit)
            duration = max(1, round(min(max(pattern.avg_session_duration, low), high)))

        if WEEKDAY_NAMES[day.weekday()] in pattern.strong_weekdays:
            bumped = min(100, fatigue + self.settings.strong_day_fatigue_bonus)
            if allow_hard or bumped <= self.settings.hard_fatigue_threshold:
                fatigue = bumped

        return duration, fatigue

    def _stays_below_hard(self, archetype: WorkoutArchetype, profile: UserProfile) -> bool:
        adjusted = adjust_for_fitness_level(archetype, profile.fitness_level)
        return adjusted.fatigue_score <= self.settings.hard_fatigue_threshold

    @staticmethod
    def _to_planned(day: date, archetype: WorkoutArchetype) -> PlannedWorkout:
        return PlannedWorkout(
            date=day,
            sport=archetype.sport,
            description=archetype.description,
            expected_fatigue=float(archetype.fatigue_score),
            duration_min=archetype.duration_min,
            source_archetype_id=archetype.id,
            intensity_tag=archetype.intensity_tag,
        )

    @staticmethod
    def _add_general_recommendations(
        readiness: ReadinessMetrics,
        recommendations: List[str],
        warnings: List[str],
    ) -> None:
        if readiness.score > 85:
            recommendations.append("Excellent readiness - good opportunity for quality training")

        if readiness.fatigue_7day_avg > 70:
            warnings.append("High average fatigue - consider reducing training intensity")

        if readiness.recent_hard_day_count >= 3:
            warnings.append("High recent training load - prioritizing recovery")

        if readiness.days_until_event is not None and 0 <= readiness.days_until_event <= 7:
            recommendations.append("Race week detected - focusing on taper and preparation")

        if readiness.recovery_score < 30:
            warnings.append("Poor recovery metrics - ensure adequate sleep and nutrition")


def export_plan_csv(result: PlanResult, path=None) -> str:
    """Export a plan to CSV (returned as text, also written to ``path`` if given)."""
    frame = result.to_frame().rename(
        columns={
            "date": "Date",
            "sport": "Workout Type",
            "description": "Description",
            "duration_min": "Duration (min)",
            "expected_fatigue": "Expected Fatigue",
        }
    )[["Date", "Workout Type", "Description", "Duration (min)", "Expected Fatigue"]]
    csv_text = frame.to_csv(index=False)
    if path is not None:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(csv_text)
    return csv_text


def _note(messages: List[str], message: str) -> None:
    if message not in messages:
        messages.append(message)


def _unique(archetypes: Sequence[WorkoutArchetype]) -> List[WorkoutArchetype]:
    seen = set()
    result = []
    for archetype in archetypes:
        if archetype.id not in seen:
            seen.add(archetype.id)
            result.append(archetype)
    return result
