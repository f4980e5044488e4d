"""Plan adherence analytics over a period of tracked workouts."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .patterns import WEEKDAY_NAMES, week_start
from .types import TrackedWorkout, WorkoutStatus

logger = logging.getLogger(__name__)

TREND_THRESHOLD = 10.0  # completion-rate points between first and second half


@dataclass(frozen=True)
class CompletionStats:
    planned: int
    completed: int
    completion_rate: float  # 0-100


@dataclass(frozen=True)
class AdherenceOverview:
    total_planned: int
    total_completed: int
    total_missed: int
    total_unplanned: int
    completion_rate: float  # 0-100


@dataclass(frozen=True)
class PlanAdherenceReport:
    """Completion and adherence analytics for one period."""

    start_date: date
    end_date: date
    total_days: int
    overview: AdherenceOverview
    by_sport: Dict[str, CompletionStats]
    by_weekday: Dict[str, CompletionStats]
    weekly_completion_rates: List[float]
    weekly_adherence_scores: List[float]
    consistency_trend: str  # improving | stable | declining
    best_completion_day: Optional[str]
    worst_completion_day: Optional[str]
    average_load_variance: float
    recommendations: List[str] = field(default_factory=list)
    concerns: List[str] = field(default_factory=list)


def _rate(completed: int, planned: int) -> float:
    return completed / planned * 100 if planned > 0 else 0.0


class PlanAdherenceAnalyzer:
    """Summarize how well an athlete followed their plan over a period."""

    def analyze(
        self,
        tracked: Sequence[TrackedWorkout],
        start: date,
        end: date,
        today: Optional[date] = None,
    ) -> PlanAdherenceReport:
        """Analyze tracked workouts dated within ``[start, end]``.

        Args:
            tracked: Planned, completed, skipped and unplanned workouts
            start: First day of the period
            end: Last day of the period
            today: Open planned workouts before this date count as missed

        Returns:
            PlanAdherenceReport
        """
        if end < start:
            raise ValueError(f"end ({end}) must not be before start ({start})")
        today = today or date.today()

        df = self._to_frame([t for t in tracked if start <= t.date <= end], today)
        planned = df[df["is_planned"]] if not df.empty else df

        total_planned = int(len(planned))
        total_completed = int(df["is_completed"].sum()) if not df.empty else 0
        overview = AdherenceOverview(
            total_planned=total_planned,
            total_completed=total_completed,
            total_missed=int(df["is_missed"].sum()) if not df.empty else 0,
            total_unplanned=int((df["status"] == WorkoutStatus.UNPLANNED.value).sum()) if not df.empty else 0,
            completion_rate=_rate(total_completed, total_planned),
        )

        by_sport = self._completion_by(planned, "sport")
        by_weekday = self._completion_by(planned, "weekday")
        by_weekday = {day: by_weekday[day] for day in WEEKDAY_NAMES if day in by_weekday}

        weekly_rates = self._weekly_completion_rates(planned)
        weekly_scores = self._weekly_adherence_scores(df)
        trend = self._consistency_trend(weekly_rates)

        best_day, worst_day = None, None
        if by_weekday:
            # max/min keep the first weekday on ties
            best_day = max(by_weekday, key=lambda d: by_weekday[d].completion_rate)
            worst_day = min(by_weekday, key=lambda d: by_weekday[d].completion_rate)

        load_variances = df["load_variance"].dropna() if not df.empty else pd.Series(dtype=float)
        average_load_variance = float(load_variances.mean()) if len(load_variances) else 0.0

        recommendations, concerns = self._insights(
            overview, by_weekday, worst_day, trend, average_load_variance
        )

        logger.info(
            f"Adherence {start} to {end}: {total_completed}/{total_planned} completed "
            f"({overview.completion_rate:.0f}%), trend {trend}"
        )

        return PlanAdherenceReport(
            start_date=start,
            end_date=end,
            total_days=(end - start).days + 1,
            overview=overview,
            by_sport=by_sport,
            by_weekday=by_weekday,
            weekly_completion_rates=weekly_rates,
            weekly_adherence_scores=weekly_scores,
            consistency_trend=trend,
            best_completion_day=best_day,
            worst_completion_day=worst_day,
            average_load_variance=average_load_variance,
            recommendations=recommendations,
            concerns=concerns,
        )

    @staticmethod
    def _to_frame(tracked: Sequence[TrackedWorkout], today: date) -> pd.DataFrame:
        rows = []
        for workout in tracked:
            comparison = workout.comparison
            is_planned = workout.planned is not None
            rows.append({
                "date": workout.date,
                "week_start": week_start(workout.date),
                "weekday": WEEKDAY_NAMES[workout.date.weekday()],
                "sport": workout.sport.value,
                "status": workout.status.value,
                "is_planned": is_planned,
                "is_completed": is_planned and workout.status == WorkoutStatus.COMPLETED,
                "is_missed": (
                    is_planned
                    and workout.status in (WorkoutStatus.PLANNED, WorkoutStatus.SKIPPED)
                    and workout.date < today
                ),
                "load_variance": comparison.performance.training_load_variance if comparison else np.nan,
                "adherence_score": comparison.adherence.score if comparison else np.nan,
            })
        return pd.DataFrame(rows)

    @staticmethod
    def _completion_by(planned: pd.DataFrame, column: str) -> Dict[str, CompletionStats]:
        if planned.empty:
            return {}
        grouped = planned.groupby(column)["is_completed"].agg(["count", "sum"])
        return {
            str(key): CompletionStats(
                planned=int(row["count"]),
                completed=int(row["sum"]),
                completion_rate=_rate(int(row["sum"]), int(row["count"])),
            )
            for key, row in grouped.iterrows()
        }

    @staticmethod
    def _weekly_completion_rates(planned: pd.DataFrame) -> List[float]:
        if planned.empty:
            return []
        weekly = planned.groupby("week_start")["is_completed"].agg(["count", "sum"]).sort_index()
        return [_rate(int(row["sum"]), int(row["count"])) for _, row in weekly.iterrows()]

    @staticmethod
    def _weekly_adherence_scores(df: pd.DataFrame) -> List[float]:
        if df.empty:
            return []
        scored = df.dropna(subset=["adherence_score"])
        if scored.empty:
            return []
        weekly = scored.groupby("week_start")["adherence_score"].mean().sort_index()
        return [float(v) for v in weekly]

    @staticmethod
    def _consistency_trend(weekly_rates: List[float]) -> str:
        """Compare the mean completion rate of the first and second half of the period."""
        if len(weekly_rates) < 2:
            return "stable"
        half = len(weekly_rates) // 2
        first = float(np.mean(weekly_rates[:half]))
        second = float(np.mean(weekly_rates[-half:]))
        if second - first > TREND_THRESHOLD:
            return "improving"
        if first - second > TREND_THRESHOLD:
            return "declining"
        return "stable"

    @staticmethod
    def _insights(overview, by_weekday, worst_day, trend, average_load_variance):
        recommendations: List[str] = []
        concerns: List[str] = []

        if overview.total_planned > 0:
            if overview.completion_rate >= 90:
                recommendations.append("Excellent plan adherence - training load can progress as planned")
            elif overview.completion_rate < 70:
                concerns.append(
                    f"Only {overview.completion_rate:.0f}% of planned workouts completed - "
                    f"consider reducing planned volume"
                )

        if worst_day is not None and by_weekday[worst_day].completion_rate < 50:
            recommendations.append(
                f"{worst_day} workouts are often missed - consider scheduling rest on {worst_day}s"
            )

        if trend == "declining":
            concerns.append("Completion rate is declining over recent weeks")
        elif trend == "improving":
            recommendations.append("Completion rate is improving - keep the current routine")

        if average_load_variance > 50:
            concerns.append("Workouts are consistently harder than planned - watch fatigue")
        elif average_load_variance < -50:
            concerns.append("Workouts are consistently easier than planned")

        if overview.total_unplanned > overview.total_completed:
            recommendations.append("Many unplanned workouts - update the plan to reflect actual training")

        return recommendations, concerns
