"""Workout persistence and plan replacement."""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..analysis.patterns import WEEKDAY_NAMES
from ..analysis.tracking import create_tracked_workout
from ..analysis.types import (
    IntensityTag,
    PlannedWorkout,
    PlanResult,
    SportType,
    TrackedWorkout,
    WorkoutStatus,
)
from ..serialization import (
    activity_from_dict,
    comparison_from_dict,
    lap_from_dict,
    to_dict,
)
from .database import Database, get_db
from .models import WorkoutRecord

logger = logging.getLogger(__name__)

# report_status(message, level) with level in success, warning, error
StatusReporter = Callable[[str, str], None]

SPORT_LABELS = {
    SportType.RUN: "Run",
    SportType.BIKE: "Ride",
    SportType.SWIM: "Swim",
    SportType.BRICK: "Brick",
    SportType.STRENGTH: "Strength Training",
    SportType.MOBILITY: "Mobility",
    SportType.REST: "Rest Day",
    SportType.OTHER: "Workout",
}

TAG_LABELS = {
    IntensityTag.ZONE1: "Recovery",
    IntensityTag.ZONE2: "Endurance",
    IntensityTag.ZONE3: "Tempo",
    IntensityTag.ZONE4: "Threshold",
    IntensityTag.ZONE5: "VO2max",
    IntensityTag.STRIDES: "Strides",
    IntensityTag.THRESHOLD: "Threshold",
    IntensityTag.INTERVALS: "Interval",
}


def workout_name(workout: PlannedWorkout) -> str:
    """Descriptive name such as 'Tuesday Tempo Run'."""
    label = SPORT_LABELS[workout.sport]
    tag = TAG_LABELS.get(workout.intensity_tag)
    if tag and workout.sport in (SportType.RUN, SportType.BIKE, SportType.SWIM, SportType.BRICK):
        label = f"{tag} {label}"
    return f"{WEEKDAY_NAMES[workout.date.weekday()]} {label}"


def effort_label(expected_fatigue: float) -> str:
    if expected_fatigue < 30:
        return "Low"
    if expected_fatigue < 60:
        return "Moderate"
    if expected_fatigue < 80:
        return "High"
    return "Very High"


def workout_notes(workout: PlannedWorkout) -> str:
    return f"Expected effort: {effort_label(workout.expected_fatigue)} ({workout.expected_fatigue:g}/100)"


@dataclass(frozen=True)
class StoredWorkout:
    """A tracked workout together with its storage id."""

    id: int
    user_id: str
    name: Optional[str]
    notes: Optional[str]
    workout: TrackedWorkout


@dataclass
class PlanSaveSummary:
    saved_ids: List[int] = field(default_factory=list)
    failed: List[date] = field(default_factory=list)
    removed: int = 0


class WorkoutStore:
    """Save, query and delete tracked workouts."""

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()
        self.logger = logging.getLogger(__name__)

    def save(
        self,
        workout: TrackedWorkout,
        user_id: str,
        name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Persist a tracked workout and return its id."""
        planned = workout.planned
        actual = workout.actual
        comparison = workout.comparison

        record = WorkoutRecord(
            user_id=user_id,
            date=workout.date,
            status=workout.status.value,
            sport=workout.sport.value,
            name=name,
            description=planned.description if planned else None,
            notes=notes,
            duration_min=planned.duration_min if planned else None,
            expected_fatigue=planned.expected_fatigue if planned else None,
            archetype_id=planned.source_archetype_id if planned else None,
            intensity_tag=planned.intensity_tag.value if planned and planned.intensity_tag else None,
            distance_km=planned.distance_km if planned else None,
            actual_data=json.dumps(to_dict(actual)) if actual else None,
            laps_data=json.dumps(to_dict(workout.laps)) if workout.laps else None,
            comparison_data=json.dumps(to_dict(comparison)) if comparison else None,
            adherence_score=comparison.adherence.score if comparison else None,
            completed_at=workout.completed_at,
        )

        with self.db.get_session() as session:
            session.add(record)
            session.flush()
            workout_id = record.id

        self.logger.debug(f"Saved {workout.status.value} workout {workout_id} for {user_id} on {workout.date}")
        return workout_id

    def query(
        self,
        user_id: str,
        start: date,
        end: date,
        status: Optional[WorkoutStatus] = None,
    ) -> List[StoredWorkout]:
        """Workouts of a user dated within ``[start, end]``, ordered by date."""
        with self.db.get_session() as session:
            q = session.query(WorkoutRecord).filter(
                WorkoutRecord.user_id == user_id,
                WorkoutRecord.date >= start,
                WorkoutRecord.date <= end,
            )
            if status is not None:
                q = q.filter(WorkoutRecord.status == status.value)
            records = q.order_by(WorkoutRecord.date, WorkoutRecord.id).all()
            return [self._to_stored(r) for r in records]

    def delete(self, workout_id: int) -> bool:
        """Delete one workout; returns False if it did not exist."""
        with self.db.get_session() as session:
            record = session.get(WorkoutRecord, workout_id)
            if record is None:
                return False
            session.delete(record)
        return True

    def delete_planned(self, user_id: str, start: date, end: date) -> int:
        """Delete open planned workouts of a user in ``[start, end]``."""
        with self.db.get_session() as session:
            removed = (
                session.query(WorkoutRecord)
                .filter(
                    WorkoutRecord.user_id == user_id,
                    WorkoutRecord.status == WorkoutStatus.PLANNED.value,
                    WorkoutRecord.date >= start,
                    WorkoutRecord.date <= end,
                )
                .delete(synchronize_session=False)
            )
        return removed

    @staticmethod
    def _to_stored(record: WorkoutRecord) -> StoredWorkout:
        planned = None
        if record.expected_fatigue is not None:
            planned = PlannedWorkout(
                date=record.date,
                sport=SportType(record.sport),
                description=record.description or "",
                expected_fatigue=record.expected_fatigue,
                duration_min=record.duration_min,
                source_archetype_id=record.archetype_id,
                intensity_tag=IntensityTag(record.intensity_tag) if record.intensity_tag else None,
                distance_km=record.distance_km,
            )

        actual = activity_from_dict(json.loads(record.actual_data)) if record.actual_data else None
        laps = tuple(lap_from_dict(lap) for lap in json.loads(record.laps_data)) if record.laps_data else ()
        comparison = comparison_from_dict(json.loads(record.comparison_data)) if record.comparison_data else None

        workout = TrackedWorkout(
            status=WorkoutStatus(record.status),
            planned=planned,
            actual=actual,
            laps=laps,
            comparison=comparison,
            completed_at=record.completed_at,
        )
        return StoredWorkout(
            id=record.id,
            user_id=record.user_id,
            name=record.name,
            notes=record.notes,
            workout=workout,
        )


class PlanRepository:
    """Store generated plans, replacing whatever was still planned."""

    def __init__(self, store: Optional[WorkoutStore] = None):
        self.store = store or WorkoutStore()
        self.logger = logging.getLogger(__name__)

    def replace_generated_plan(
        self,
        plan: PlanResult,
        user_id: Optional[str],
        report_status: Optional[StatusReporter] = None,
    ) -> PlanSaveSummary:
        """Replace open planned workouts in the plan's date range with ``plan``.

        Completed, skipped and unplanned workouts in the range are kept.

        Raises:
            ValueError: If there is no user id or the plan is empty
        """
        report = report_status or (lambda message, level: None)

        if not user_id:
            raise ValueError("User not authenticated")
        if not plan.workouts:
            raise ValueError("No workouts in generated plan")

        start = min(w.date for w in plan.workouts)
        end = max(w.date for w in plan.workouts)
        summary = PlanSaveSummary()

        try:
            summary.removed = self.store.delete_planned(user_id, start, end)
        except SQLAlchemyError as e:
            report(f"Failed to save workout plan: {e}", "error")
            raise

        for workout in plan.workouts:
            try:
                workout_id = self.store.save(
                    create_tracked_workout(workout),
                    user_id,
                    name=workout_name(workout),
                    notes=workout_notes(workout),
                )
                summary.saved_ids.append(workout_id)
            except SQLAlchemyError as e:
                self.logger.error(f"Failed to save planned workout for {workout.date}: {e}")
                summary.failed.append(workout.date)

        self.logger.info(
            f"Replaced plan {start} to {end} for {user_id}: removed {summary.removed}, "
            f"saved {len(summary.saved_ids)}, failed {len(summary.failed)}"
        )

        if summary.failed:
            report(
                f"Generated {len(summary.saved_ids)} workouts, {len(summary.failed)} failed",
                "warning",
            )
        else:
            report(f"Generated {len(summary.saved_ids)} planned workouts", "success")
        return summary
