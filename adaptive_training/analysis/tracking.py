"""Build tracked workouts from planned workouts and uploaded activities."""

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from .comparison import ComparisonEngine
from .matching import ActivityMatcher
from .types import (
    ActivityRecord,
    LapRecord,
    MatchRecommendation,
    PlannedWorkout,
    TrackedWorkout,
    WorkoutStatus,
)

logger = logging.getLogger(__name__)


def create_tracked_workout(
    planned: PlannedWorkout,
    actual: Optional[ActivityRecord] = None,
    laps: Sequence[LapRecord] = (),
    engine: Optional[ComparisonEngine] = None,
) -> TrackedWorkout:
    """Pair a planned workout with its actual record, if there is one."""
    if actual is None:
        return TrackedWorkout(status=WorkoutStatus.PLANNED, planned=planned)

    engine = engine or ComparisonEngine()
    return TrackedWorkout(
        status=WorkoutStatus.COMPLETED,
        planned=planned,
        actual=actual,
        laps=tuple(laps),
        comparison=engine.compare(planned, actual, laps),
        completed_at=datetime.now(timezone.utc),
    )


def create_unplanned_workout(actual: ActivityRecord, laps: Sequence[LapRecord] = ()) -> TrackedWorkout:
    """Record an activity that does not belong to any planned workout."""
    return TrackedWorkout(
        status=WorkoutStatus.UNPLANNED,
        actual=actual,
        laps=tuple(laps),
        completed_at=datetime.now(timezone.utc),
    )


def reconcile_upload(
    activity: ActivityRecord,
    open_plan: Sequence[PlannedWorkout],
    matcher: Optional[ActivityMatcher] = None,
    engine: Optional[ComparisonEngine] = None,
    laps: Sequence[LapRecord] = (),
) -> Tuple[TrackedWorkout, Optional[MatchRecommendation]]:
    """Match an uploaded activity against the open plan.

    A confident match yields a completed tracked workout with its comparison.
    Otherwise the activity is recorded as unplanned and the recommendation is
    returned so the caller can offer a manual choice.

    Returns:
        Tuple of (tracked workout, match recommendation or None)
    """
    matcher = matcher or ActivityMatcher()
    result = matcher.match(activity, open_plan, laps)
    recommendation = result.recommendation

    if recommendation is not None and recommendation.should_auto_match:
        logger.info(
            f"Auto-matched {activity.sport} on {activity.date} to "
            f"{recommendation.best_match.source_archetype_id} ({recommendation.confidence})"
        )
        tracked = create_tracked_workout(recommendation.best_match, activity, result.laps, engine)
        return tracked, recommendation

    if recommendation is None:
        logger.info(f"No planned workout near {activity.date}, recording {activity.sport} as unplanned")
    else:
        logger.info(
            f"Best match for {activity.sport} on {activity.date} below auto-match threshold "
            f"({recommendation.confidence}), recording as unplanned"
        )
    return create_unplanned_workout(activity, result.laps), recommendation
