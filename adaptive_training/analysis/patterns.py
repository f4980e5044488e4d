"""Historical activity pattern analysis."""

import logging
from datetime import date, timedelta
from typing import List, Optional, Sequence

import pandas as pd

from ..config import config
from .types import ActivityPattern, ActivityRecord, IntensityMix

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def default_pattern() -> ActivityPattern:
    """Pattern used when no history is available."""
    return ActivityPattern(
        preferred_sports=["running"],
        avg_weekly_distance=0.0,
        avg_weekly_duration=0.0,
        avg_weekly_load=0.0,
        consistency_score=0.0,
        strong_weekdays=[],
        intensity_mix=IntensityMix(easy=0.7, moderate=0.2, hard=0.1),
        avg_session_duration=0.0,
        activity_count=0,
    )


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


class ActivityPatternAnalyzer:
    """Mine activity history for sport preference, volume and consistency."""

    def __init__(
        self,
        window_weeks: Optional[int] = None,
        easy_load: Optional[float] = None,
        hard_load: Optional[float] = None,
        strong_day_min_activities: Optional[int] = None,
    ):
        self.window_weeks = window_weeks or config.PATTERN_WINDOW_WEEKS
        self.easy_load = config.PATTERN_EASY_LOAD if easy_load is None else easy_load
        self.hard_load = config.PATTERN_HARD_LOAD if hard_load is None else hard_load
        self.strong_day_min_activities = (
            strong_day_min_activities or config.STRONG_WEEKDAY_MIN_ACTIVITIES
        )

    def analyze(self, records: Sequence[ActivityRecord], as_of: Optional[date] = None) -> ActivityPattern:
        """Analyze activity records.

        Args:
            records: Completed activities (not modified)
            as_of: End of the analysis window (defaults to the latest record)

        Returns:
            ActivityPattern; the default pattern when the window is empty
        """
        if not records:
            return default_pattern()

        df = self._to_frame(records)
        if as_of is None:
            as_of = df["date"].max()

        window_start = week_start(as_of) - timedelta(weeks=self.window_weeks - 1)
        df = df[(df["date"] >= window_start) & (df["date"] <= as_of)]
        if df.empty:
            logger.info(f"No activities between {window_start} and {as_of}, using default pattern")
            return default_pattern()

        active_weeks = df["week_start"].nunique()
        consistency = active_weeks / self.window_weeks * 100

        pattern = ActivityPattern(
            preferred_sports=self._preferred_sports(df),
            avg_weekly_distance=float(df["distance_km"].sum() / self.window_weeks),
            avg_weekly_duration=float(df["duration_min"].sum() / self.window_weeks),
            avg_weekly_load=float(df["training_load"].sum() / self.window_weeks),
            consistency_score=float(min(100.0, consistency)),
            strong_weekdays=self._strong_weekdays(df),
            intensity_mix=self._intensity_mix(df),
            avg_session_duration=float(df["duration_min"].mean()),
            activity_count=int(len(df)),
        )
        logger.debug(f"Pattern over {len(df)} activities: {pattern}")
        return pattern

    @staticmethod
    def _to_frame(records: Sequence[ActivityRecord]) -> pd.DataFrame:
        rows = [
            {
                "date": r.date,
                "sport": (r.sport or "other").strip().lower(),
                "duration_min": float(r.duration_min or 0),
                "distance_km": float(r.distance_km or 0),
                "training_load": float(r.training_load or 0),
            }
            for r in records
        ]
        df = pd.DataFrame(rows)
        df["week_start"] = df["date"].map(week_start)
        df["weekday"] = df["date"].map(lambda d: d.weekday())
        return df

    @staticmethod
    def _preferred_sports(df: pd.DataFrame) -> List[str]:
        """Top three sports by frequency, ties broken alphabetically."""
        counts = df.groupby("sport").size().reset_index(name="count")
        counts = counts.sort_values(["count", "sport"], ascending=[False, True])
        return counts["sport"].head(3).tolist()

    def _strong_weekdays(self, df: pd.DataFrame) -> List[str]:
        """Weekdays with enough activities, ranked by mean load per activity."""
        stats = df.groupby("weekday")["training_load"].agg(["count", "mean"]).reset_index()
        stats = stats[stats["count"] >= self.strong_day_min_activities]
        stats = stats.sort_values(["mean", "weekday"], ascending=[False, True])
        return [WEEKDAY_NAMES[int(day)] for day in stats["weekday"].head(3)]

    def _intensity_mix(self, df: pd.DataFrame) -> IntensityMix:
        total = len(df)
        easy = int((df["training_load"] < self.easy_load).sum())
        hard = int((df["training_load"] > self.hard_load).sum())
        moderate = total - easy - hard
        return IntensityMix(easy=easy / total, moderate=moderate / total, hard=hard / total)
