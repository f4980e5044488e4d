"""JSON conversion for the domain dataclasses."""

import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .analysis.types import (
    ActivityRecord,
    Adherence,
    AdherenceCategory,
    DurationVariance,
    ExerciseCategory,
    FitnessLevel,
    IntensityTag,
    IntensityVariance,
    LapRecord,
    PerformanceMetrics,
    PlannedWorkout,
    RecoverySignals,
    SportType,
    UserProfile,
    WorkoutComparison,
    WorkoutSummary,
    ZoneCompliance,
)


def to_dict(obj: Any) -> Any:
    """Convert dataclasses, enums and dates into JSON-compatible values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, (frozenset, set)):
        return sorted(to_dict(v) for v in obj)
    if isinstance(obj, (list, tuple)):
        return [to_dict(v) for v in obj]
    if isinstance(obj, dict):
        return {str(k): to_dict(v) for k, v in obj.items()}
    return obj


def dumps(obj: Any, **kwargs) -> str:
    return json.dumps(to_dict(obj), **kwargs)


def load_json(path: Union[str, Path]) -> Any:
    """Read a JSON file, raising ValueError for malformed content."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Malformed JSON in {path}: {e}") from e


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    if key not in data or data[key] is None:
        raise ValueError(f"{kind} is missing required field '{key}'")
    return data[key]


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def activity_from_dict(data: Dict[str, Any]) -> ActivityRecord:
    zones = data.get("zone_minutes") or [0.0] * 5
    if len(zones) != 5:
        raise ValueError(f"zone_minutes must have 5 entries, got {len(zones)}")
    return ActivityRecord(
        date=parse_date(_require(data, "date", "Activity")),
        sport=str(_require(data, "sport", "Activity")),
        duration_min=float(_require(data, "duration_min", "Activity")),
        distance_km=float(data.get("distance_km") or 0.0),
        training_load=float(data.get("training_load") or 0.0),
        zone_minutes=tuple(float(z) for z in zones),
        avg_hr=_optional_float(data.get("avg_hr")),
        max_hr=_optional_float(data.get("max_hr")),
        hr_drift=_optional_float(data.get("hr_drift")),
        avg_pace=_optional_float(data.get("avg_pace")),
        file_name=data.get("file_name"),
    )


def lap_from_dict(data: Dict[str, Any]) -> LapRecord:
    return LapRecord(
        lap_number=int(_require(data, "lap_number", "Lap")),
        duration_min=float(_require(data, "duration_min", "Lap")),
        distance_km=float(data.get("distance_km") or 0.0),
        avg_hr=_optional_float(data.get("avg_hr")),
        avg_pace=_optional_float(data.get("avg_pace")),
    )


def planned_workout_from_dict(data: Dict[str, Any]) -> PlannedWorkout:
    tag = data.get("intensity_tag")
    return PlannedWorkout(
        date=parse_date(_require(data, "date", "Planned workout")),
        sport=SportType.from_label(_require(data, "sport", "Planned workout")),
        description=data.get("description", ""),
        expected_fatigue=float(_require(data, "expected_fatigue", "Planned workout")),
        duration_min=int(_require(data, "duration_min", "Planned workout")),
        source_archetype_id=data.get("source_archetype_id", "custom"),
        intensity_tag=IntensityTag(tag) if tag else None,
        distance_km=_optional_float(data.get("distance_km")),
    )


def profile_from_dict(data: Dict[str, Any]) -> UserProfile:
    level = data.get("fitness_level", FitnessLevel.INTERMEDIATE.value)
    try:
        fitness_level = FitnessLevel(level)
    except ValueError as e:
        raise ValueError(
            f"Unknown fitness level '{level}'. Expected one of: "
            f"{', '.join(f.value for f in FitnessLevel)}"
        ) from e
    return UserProfile(
        age=int(data.get("age", 30)),
        sex=data.get("sex"),
        fitness_level=fitness_level,
        event_date=parse_date(data.get("event_date")),
        weekly_training_days=int(data.get("weekly_training_days", 5)),
        excluded_categories=parse_categories(data.get("excluded_categories", [])),
    )


def parse_categories(values) -> frozenset:
    try:
        return frozenset(ExerciseCategory(v) for v in values)
    except ValueError as e:
        raise ValueError(
            f"Unknown exercise category in {list(values)}. Expected: "
            f"{', '.join(c.value for c in ExerciseCategory)}"
        ) from e


def recovery_from_dict(data: Optional[Dict[str, Any]]) -> Optional[RecoverySignals]:
    if not data:
        return None
    return RecoverySignals(
        body_battery=_optional_float(data.get("body_battery")),
        sleep_score=_optional_float(data.get("sleep_score")),
        hrv=_optional_float(data.get("hrv")),
        resting_hr=_optional_float(data.get("resting_hr")),
    )


def workout_summary_from_dict(data: Dict[str, Any]) -> WorkoutSummary:
    return WorkoutSummary(
        date=parse_date(_require(data, "date", "Workout summary")),
        training_load=float(data.get("training_load") or 0.0),
        fatigue=float(data.get("fatigue") or 0.0),
    )


def comparison_from_dict(data: Dict[str, Any]) -> WorkoutComparison:
    zones = data["zone_compliance"]
    performance = data["performance"]
    adherence = data["adherence"]
    return WorkoutComparison(
        duration_variance=DurationVariance(**data["duration_variance"]),
        intensity_variance=IntensityVariance(**data["intensity_variance"]),
        zone_compliance=ZoneCompliance(
            planned_zones=tuple(zones["planned_zones"]),
            actual_zones=tuple(zones["actual_zones"]),
            zone_variances=tuple(zones["zone_variances"]),
            overall_compliance=zones["overall_compliance"],
        ),
        performance=PerformanceMetrics(**performance),
        adherence=Adherence(
            score=int(adherence["score"]),
            category=AdherenceCategory(adherence["category"]),
            feedback=list(adherence["feedback"]),
        ),
    )


def parse_list(items: Optional[List[Dict[str, Any]]], parser) -> List[Any]:
    return [parser(item) for item in items or []]
