"""Domain types shared by the planning, matching and comparison engines."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class SportType(Enum):
    """Sport of a planned workout or catalog archetype."""

    RUN = "run"
    BIKE = "bike"
    SWIM = "swim"
    BRICK = "brick"  # Bike + run combination
    STRENGTH = "strength"
    MOBILITY = "mobility"
    REST = "rest"
    OTHER = "other"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "SportType":
        """Normalize a free-form sport label (e.g. 'Running', 'road_cycling')."""
        if not label:
            return cls.OTHER
        normalized = label.strip().lower().replace("-", "_").replace(" ", "_")
        if normalized in _SPORT_SYNONYMS:
            return _SPORT_SYNONYMS[normalized]

        # Fall back to substring hints for compound labels like 'trail_running'
        for hint, sport in _SPORT_HINTS:
            if hint in normalized:
                return sport
        return cls.OTHER


_SPORT_SYNONYMS: Dict[str, SportType] = {
    "run": SportType.RUN,
    "running": SportType.RUN,
    "trail_run": SportType.RUN,
    "trailrun": SportType.RUN,
    "virtualrun": SportType.RUN,
    "treadmill": SportType.RUN,
    "bike": SportType.BIKE,
    "biking": SportType.BIKE,
    "cycling": SportType.BIKE,
    "ride": SportType.BIKE,
    "virtualride": SportType.BIKE,
    "gravelride": SportType.BIKE,
    "swim": SportType.SWIM,
    "swimming": SportType.SWIM,
    "openswim": SportType.SWIM,
    "open_water_swimming": SportType.SWIM,
    "lap_swimming": SportType.SWIM,
    "brick": SportType.BRICK,
    "multisport": SportType.BRICK,
    "triathlon": SportType.BRICK,
    "strength": SportType.STRENGTH,
    "strength_training": SportType.STRENGTH,
    "weight_training": SportType.STRENGTH,
    "weighttraining": SportType.STRENGTH,
    "bodyweight": SportType.STRENGTH,
    "core": SportType.STRENGTH,
    "mobility": SportType.MOBILITY,
    "yoga": SportType.MOBILITY,
    "stretching": SportType.MOBILITY,
    "pilates": SportType.MOBILITY,
    "rest": SportType.REST,
}

_SPORT_HINTS: Tuple[Tuple[str, SportType], ...] = (
    ("run", SportType.RUN),
    ("cycl", SportType.BIKE),
    ("bike", SportType.BIKE),
    ("ride", SportType.BIKE),
    ("swim", SportType.SWIM),
    ("strength", SportType.STRENGTH),
    ("yoga", SportType.MOBILITY),
)


class ExerciseCategory(Enum):
    """Exercise categories an athlete can exclude from plan generation."""

    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"
    STRENGTH = "strength"
    MOBILITY = "mobility"


# Which exercise categories each sport involves. Rest days involve none and
# are therefore never excluded.
SPORT_CATEGORIES: Dict[SportType, FrozenSet[ExerciseCategory]] = {
    SportType.RUN: frozenset({ExerciseCategory.RUNNING}),
    SportType.BIKE: frozenset({ExerciseCategory.CYCLING}),
    SportType.SWIM: frozenset({ExerciseCategory.SWIMMING}),
    SportType.BRICK: frozenset({ExerciseCategory.CYCLING, ExerciseCategory.RUNNING}),
    SportType.STRENGTH: frozenset({ExerciseCategory.STRENGTH}),
    SportType.MOBILITY: frozenset({ExerciseCategory.MOBILITY}),
    SportType.REST: frozenset(),
    SportType.OTHER: frozenset(),
}


def is_excluded(sport: SportType, excluded: FrozenSet[ExerciseCategory]) -> bool:
    """Check whether a sport touches any excluded exercise category."""
    return bool(SPORT_CATEGORIES[sport] & excluded)


class IntensityTag(Enum):
    """Intensity tag of a catalog archetype."""

    ZONE1 = "zone1"
    ZONE2 = "zone2"
    ZONE3 = "zone3"
    ZONE4 = "zone4"
    ZONE5 = "zone5"
    STRIDES = "strides"
    THRESHOLD = "threshold"
    INTERVALS = "intervals"
    STRENGTH = "strength"
    MOBILITY = "mobility"


class IntensityLevel(Enum):
    """Selection pools used by the plan selector."""

    RECOVERY = "recovery"
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


class TrainingPhase(Enum):
    """Macrocycle stage driving archetype eligibility."""

    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"
    RECOVERY = "recovery"


class RecoveryImpact(Enum):
    """How much recovery a workout demands."""

    RESTORATIVE = "restorative"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FitnessLevel(Enum):
    """Athlete fitness level."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class AdherenceCategory(Enum):
    """Adherence bucket of a completed workout."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class WorkoutStatus(Enum):
    """Lifecycle status of a tracked workout."""

    PLANNED = "planned"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    UNPLANNED = "unplanned"


# ============================================================================
# Readiness and history inputs
# ============================================================================

@dataclass(frozen=True)
class RecoverySignals:
    """Optional recovery signals from a wearable."""

    body_battery: Optional[float] = None  # 0-100
    sleep_score: Optional[float] = None  # 0-100
    hrv: Optional[float] = None  # ms
    resting_hr: Optional[float] = None  # bpm


@dataclass(frozen=True)
class WorkoutSummary:
    """A recently completed workout as seen by the readiness calculator."""

    date: date
    training_load: float
    fatigue: float


@dataclass(frozen=True)
class ReadinessMetrics:
    """Composite readiness estimate."""

    score: float  # 0-100
    fatigue_7day_avg: float
    recovery_score: float
    training_load_7day: float
    recent_hard_day_count: int
    days_until_event: Optional[int] = None


@dataclass(frozen=True)
class IntensityMix:
    """Fractions of easy/moderate/hard sessions (sum to 1)."""

    easy: float
    moderate: float
    hard: float


@dataclass(frozen=True)
class ActivityPattern:
    """Historical training pattern of an athlete."""

    preferred_sports: List[str]
    avg_weekly_distance: float  # km
    avg_weekly_duration: float  # minutes
    avg_weekly_load: float
    consistency_score: float  # 0-100
    strong_weekdays: List[str]
    intensity_mix: IntensityMix
    avg_session_duration: float = 0.0  # minutes
    activity_count: int = 0


@dataclass(frozen=True)
class ActivityRecord:
    """An already parsed, completed activity."""

    date: date
    sport: str  # raw label from the activity file
    duration_min: float
    distance_km: float = 0.0
    training_load: float = 0.0
    zone_minutes: Tuple[float, float, float, float, float] = (0.0, 0.0, 0.0, 0.0, 0.0)
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    hr_drift: Optional[float] = None  # % change first to last third
    avg_pace: Optional[float] = None  # min/km
    file_name: Optional[str] = None

    @property
    def sport_type(self) -> SportType:
        return SportType.from_label(self.sport)


@dataclass(frozen=True)
class LapRecord:
    """A lap/segment of an activity."""

    lap_number: int
    duration_min: float
    distance_km: float = 0.0
    avg_hr: Optional[float] = None
    avg_pace: Optional[float] = None  # min/km


@dataclass(frozen=True)
class UserProfile:
    """Athlete profile fields used by plan generation."""

    age: int = 30
    sex: Optional[str] = None
    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE
    event_date: Optional[date] = None
    weekly_training_days: int = 5
    excluded_categories: FrozenSet[ExerciseCategory] = frozenset()


# ============================================================================
# Catalog and plan
# ============================================================================

@dataclass(frozen=True)
class WorkoutArchetype:
    """Immutable catalog template describing one kind of workout."""

    id: str
    sport: SportType
    intensity_tag: IntensityTag
    description: str
    duration_min: int
    fatigue_score: int  # 0-100
    recovery_impact: RecoveryImpact
    phase: Optional[TrainingPhase] = None


@dataclass(frozen=True)
class PlannedWorkout:
    """One row of a generated plan."""

    date: date
    sport: SportType
    description: str
    expected_fatigue: float
    duration_min: int
    source_archetype_id: str
    intensity_tag: Optional[IntensityTag] = None
    distance_km: Optional[float] = None

    def is_hard(self, threshold: float = 60) -> bool:
        return self.expected_fatigue > threshold


@dataclass(frozen=True)
class PlanResult:
    """Output of one plan generation run."""

    workouts: List[PlannedWorkout]
    readiness: ReadinessMetrics
    phase: TrainingPhase
    recommendations: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_frame(self):
        """Return the plan as a pandas DataFrame."""
        import pandas as pd

        return pd.DataFrame(
            [
                {
                    "date": w.date.isoformat(),
                    "sport": w.sport.value,
                    "description": w.description,
                    "duration_min": w.duration_min,
                    "expected_fatigue": w.expected_fatigue,
                    "archetype": w.source_archetype_id,
                }
                for w in self.workouts
            ],
            columns=["date", "sport", "description", "duration_min", "expected_fatigue", "archetype"],
        )


# ============================================================================
# Matching and comparison
# ============================================================================

@dataclass(frozen=True)
class MatchCandidate:
    """A planned workout scored against an uploaded activity."""

    planned_workout: PlannedWorkout
    confidence: float
    reasons: List[str]


@dataclass(frozen=True)
class MatchRecommendation:
    """Best match suggestion for an uploaded activity."""

    best_match: Optional[PlannedWorkout]
    confidence: float
    should_auto_match: bool
    alternatives: List[PlannedWorkout]
    profile: str


@dataclass(frozen=True)
class MatchResult:
    """All candidates and the recommendation for one activity."""

    activity: ActivityRecord
    laps: Tuple[LapRecord, ...]
    candidates: List[MatchCandidate]
    recommendation: Optional[MatchRecommendation]


@dataclass(frozen=True)
class DurationVariance:
    planned: float
    actual: float
    difference: float
    percentage_change: float


@dataclass(frozen=True)
class ZoneCompliance:
    """Planned vs actual minutes in the five heart-rate zones."""

    planned_zones: Tuple[float, float, float, float, float]
    actual_zones: Tuple[float, float, float, float, float]
    zone_variances: Tuple[float, float, float, float, float]
    overall_compliance: float  # 0-100


@dataclass(frozen=True)
class IntensityVariance:
    planned_fatigue: float
    actual_fatigue: float
    difference: float


@dataclass(frozen=True)
class PerformanceMetrics:
    training_load_variance: float
    hr_drift: Optional[float] = None
    pace_consistency: Optional[float] = None  # coefficient of variation of lap pace


@dataclass(frozen=True)
class Adherence:
    score: int  # 0-100
    category: AdherenceCategory
    feedback: List[str]


@dataclass(frozen=True)
class WorkoutComparison:
    """Planned vs actual comparison of one matched workout."""

    duration_variance: DurationVariance
    intensity_variance: IntensityVariance
    zone_compliance: ZoneCompliance
    performance: PerformanceMetrics
    adherence: Adherence


@dataclass(frozen=True)
class TrackedWorkout:
    """A planned workout together with what actually happened."""

    status: WorkoutStatus
    planned: Optional[PlannedWorkout] = None
    actual: Optional[ActivityRecord] = None
    laps: Tuple[LapRecord, ...] = ()
    comparison: Optional[WorkoutComparison] = None
    completed_at: Optional[datetime] = None

    @property
    def date(self) -> date:
        if self.planned is not None:
            return self.planned.date
        return self.actual.date

    @property
    def sport(self) -> SportType:
        if self.planned is not None:
            return self.planned.sport
        return self.actual.sport_type
