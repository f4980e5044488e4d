"""Workout archetype library and intensity pools."""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import config
from .types import (
    FitnessLevel,
    IntensityLevel,
    IntensityTag,
    RecoveryImpact,
    SportType,
    TrainingPhase,
    WorkoutArchetype,
)

REST_ARCHETYPE = WorkoutArchetype(
    id="rest-zone1",
    sport=SportType.REST,
    intensity_tag=IntensityTag.ZONE1,
    description="Complete rest or gentle walk",
    duration_min=20,
    fatigue_score=5,
    recovery_impact=RecoveryImpact.RESTORATIVE,
)


def _archetype(archetype_id, sport, tag, description, duration, fatigue, impact, phase=None):
    return WorkoutArchetype(
        id=archetype_id,
        sport=sport,
        intensity_tag=tag,
        description=description,
        duration_min=duration,
        fatigue_score=fatigue,
        recovery_impact=impact,
        phase=phase,
    )


DEFAULT_ARCHETYPES: Tuple[WorkoutArchetype, ...] = (
    # Running
    _archetype("run-zone1", SportType.RUN, IntensityTag.ZONE1,
               "Easy recovery run, conversational pace", 25, 25, RecoveryImpact.LOW, TrainingPhase.RECOVERY),
    _archetype("run-zone2", SportType.RUN, IntensityTag.ZONE2,
               "Aerobic base run, comfortable effort", 35, 45, RecoveryImpact.LOW),
    _archetype("run-zone3", SportType.RUN, IntensityTag.ZONE3,
               "Tempo run, comfortably hard effort", 30, 65, RecoveryImpact.MEDIUM),
    _archetype("run-threshold", SportType.RUN, IntensityTag.THRESHOLD,
               "Lactate threshold intervals", 40, 75, RecoveryImpact.HIGH, TrainingPhase.BUILD),
    _archetype("run-strides", SportType.RUN, IntensityTag.STRIDES,
               "Easy run with 4-6 x 20s strides", 35, 50, RecoveryImpact.MEDIUM),
    _archetype("run-intervals", SportType.RUN, IntensityTag.INTERVALS,
               "VO2max intervals, 3-5 min efforts", 45, 85, RecoveryImpact.HIGH, TrainingPhase.BUILD),

    # Cycling
    _archetype("bike-zone1", SportType.BIKE, IntensityTag.ZONE1,
               "Recovery spin, very easy effort", 30, 20, RecoveryImpact.RESTORATIVE, TrainingPhase.RECOVERY),
    _archetype("bike-zone2", SportType.BIKE, IntensityTag.ZONE2,
               "Aerobic base ride, conversational", 45, 45, RecoveryImpact.LOW),
    _archetype("bike-zone3", SportType.BIKE, IntensityTag.ZONE3,
               "Tempo ride, moderate effort", 40, 60, RecoveryImpact.MEDIUM),
    _archetype("bike-threshold", SportType.BIKE, IntensityTag.THRESHOLD,
               "FTP intervals, sustained efforts", 50, 80, RecoveryImpact.HIGH, TrainingPhase.BUILD),
    _archetype("bike-intervals", SportType.BIKE, IntensityTag.INTERVALS,
               "High-intensity intervals", 45, 85, RecoveryImpact.HIGH, TrainingPhase.BUILD),

    # Brick (bike + run)
    _archetype("brick-zone2", SportType.BRICK, IntensityTag.ZONE2,
               "Easy brick: 25 min bike + 10 min run", 40, 55, RecoveryImpact.MEDIUM),
    _archetype("brick-zone3", SportType.BRICK, IntensityTag.ZONE3,
               "Race pace brick: 30 min bike + 15 min run", 50, 70, RecoveryImpact.HIGH, TrainingPhase.BUILD),
    _archetype("brick-threshold", SportType.BRICK, IntensityTag.THRESHOLD,
               "Hard brick: Threshold bike + tempo run", 60, 85, RecoveryImpact.HIGH, TrainingPhase.PEAK),

    # Strength
    _archetype("strength-core", SportType.STRENGTH, IntensityTag.STRENGTH,
               "Core strength + bodyweight exercises", 30, 30, RecoveryImpact.LOW),
    _archetype("strength-full-body", SportType.STRENGTH, IntensityTag.STRENGTH,
               "Full body strength training", 45, 40, RecoveryImpact.MEDIUM),

    # Mobility & recovery
    _archetype("mobility-yoga", SportType.MOBILITY, IntensityTag.MOBILITY,
               "Yoga flow for recovery", 20, 10, RecoveryImpact.RESTORATIVE),
    _archetype("mobility-stretch", SportType.MOBILITY, IntensityTag.MOBILITY,
               "Dynamic stretching + foam rolling", 15, 5, RecoveryImpact.RESTORATIVE),

    REST_ARCHETYPE,

    # Swimming
    _archetype("swim-zone2", SportType.SWIM, IntensityTag.ZONE2,
               "Aerobic swim, steady pace", 35, 40, RecoveryImpact.LOW),
    _archetype("swim-threshold", SportType.SWIM, IntensityTag.THRESHOLD,
               "Swim intervals, race pace", 45, 70, RecoveryImpact.MEDIUM, TrainingPhase.BUILD),
)


class WorkoutCatalog:
    """Immutable, queryable library of workout archetypes.

    Instances are injected into the plan selector so tests can run against a
    custom catalog.
    """

    def __init__(self, archetypes: Iterable[WorkoutArchetype]):
        self._archetypes: Tuple[WorkoutArchetype, ...] = tuple(archetypes)
        self._by_id: Dict[str, WorkoutArchetype] = {a.id: a for a in self._archetypes}

    def __len__(self) -> int:
        return len(self._archetypes)

    def __iter__(self):
        return iter(self._archetypes)

    @property
    def archetypes(self) -> Tuple[WorkoutArchetype, ...]:
        return self._archetypes

    def get(self, archetype_id: str) -> Optional[WorkoutArchetype]:
        return self._by_id.get(archetype_id)

    def sports(self) -> List[str]:
        return sorted({a.sport.value for a in self._archetypes})

    def pool(self, level: IntensityLevel, phase: Optional[TrainingPhase] = None) -> List[WorkoutArchetype]:
        """Archetypes of an intensity level, optionally restricted to a phase.

        Archetypes without a phase are eligible in every phase.
        """
        workouts = [a for a in self._archetypes if self.matches_level(a, level)]
        if phase is not None:
            workouts = [a for a in workouts if a.phase is None or a.phase == phase]
        return workouts

    @staticmethod
    def matches_level(archetype: WorkoutArchetype, level: IntensityLevel) -> bool:
        fatigue = archetype.fatigue_score
        if level == IntensityLevel.RECOVERY:
            return archetype.recovery_impact == RecoveryImpact.RESTORATIVE or fatigue <= 20
        if level == IntensityLevel.EASY:
            return fatigue <= 50 and archetype.recovery_impact != RecoveryImpact.HIGH
        if level == IntensityLevel.MODERATE:
            return 45 <= fatigue <= 65
        return fatigue >= 70

    def by_phase(self, phase: TrainingPhase) -> List[WorkoutArchetype]:
        return [a for a in self._archetypes if a.phase is None or a.phase == phase]

    def by_sport(self, sport: SportType) -> List[WorkoutArchetype]:
        return [a for a in self._archetypes if a.sport == sport]

    def rest_day(self) -> WorkoutArchetype:
        """The catalog's rest archetype, or the built-in one."""
        for archetype in self._archetypes:
            if archetype.sport == SportType.REST and archetype.intensity_tag == IntensityTag.ZONE1:
                return archetype
        return REST_ARCHETYPE


def default_catalog() -> WorkoutCatalog:
    """Built-in triathlon workout library."""
    return WorkoutCatalog(DEFAULT_ARCHETYPES)


def adjust_for_fitness_level(archetype: WorkoutArchetype, fitness_level: FitnessLevel) -> WorkoutArchetype:
    """Scale duration and fatigue for the athlete's fitness level."""
    multiplier = config.get_fitness_multipliers(fitness_level.value)
    return replace(
        archetype,
        duration_min=max(1, round(archetype.duration_min * multiplier["duration"])),
        fatigue_score=max(1, min(100, round(archetype.fatigue_score * multiplier["fatigue"]))),
    )
