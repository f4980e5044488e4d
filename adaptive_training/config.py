"""Configuration management for the adaptive training engine."""

import os
from typing import Dict
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./adaptive_training.db")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Readiness
    DEFAULT_RECOVERY_SCORE: float = float(os.getenv("DEFAULT_RECOVERY_SCORE", "70"))
    HARD_FATIGUE_THRESHOLD: float = float(os.getenv("HARD_FATIGUE_THRESHOLD", "60"))  # fatigue above this = hard day

    # Training phase boundaries (days until event)
    TAPER_DAYS: int = int(os.getenv("TAPER_DAYS", "14"))
    PEAK_DAYS: int = int(os.getenv("PEAK_DAYS", "28"))
    BUILD_DAYS: int = int(os.getenv("BUILD_DAYS", "84"))  # 12 weeks

    # Plan selection
    MAX_HARD_WORKOUTS_PER_WEEK: int = int(os.getenv("MAX_HARD_WORKOUTS_PER_WEEK", "2"))
    HARD_CAP_SCOPE: str = os.getenv("HARD_CAP_SCOPE", "plan")  # plan | rolling_week
    BRICK_PREFERENCE_PROBABILITY: float = float(os.getenv("BRICK_PREFERENCE_PROBABILITY", "0.4"))
    PREFERRED_SPORT_PROBABILITY: float = float(os.getenv("PREFERRED_SPORT_PROBABILITY", "0.7"))
    ENABLE_PERSONALIZATION: bool = os.getenv("ENABLE_PERSONALIZATION", "true").lower() == "true"
    SUBSTITUTE_FATIGUE_TOLERANCE: float = float(os.getenv("SUBSTITUTE_FATIGUE_TOLERANCE", "20"))
    SUBSTITUTE_DURATION_TOLERANCE: float = float(os.getenv("SUBSTITUTE_DURATION_TOLERANCE", "30"))  # minutes
    DURATION_NUDGE_LIMIT: float = float(os.getenv("DURATION_NUDGE_LIMIT", "0.2"))  # +/- 20%
    STRONG_DAY_FATIGUE_BONUS: float = float(os.getenv("STRONG_DAY_FATIGUE_BONUS", "5"))

    # Plan adjustment
    REDISTRIBUTE_LOAD: bool = os.getenv("REDISTRIBUTE_LOAD", "true").lower() == "true"
    PRESERVE_HARD_DAYS: bool = os.getenv("PRESERVE_HARD_DAYS", "true").lower() == "true"
    MAX_DAILY_FATIGUE_INCREASE: float = float(os.getenv("MAX_DAILY_FATIGUE_INCREASE", "15"))

    # Activity pattern analysis
    PATTERN_WINDOW_WEEKS: int = int(os.getenv("PATTERN_WINDOW_WEEKS", "8"))
    PATTERN_EASY_LOAD: float = float(os.getenv("PATTERN_EASY_LOAD", "150"))  # below = easy
    PATTERN_HARD_LOAD: float = float(os.getenv("PATTERN_HARD_LOAD", "300"))  # above = hard
    STRONG_WEEKDAY_MIN_ACTIVITIES: int = int(os.getenv("STRONG_WEEKDAY_MIN_ACTIVITIES", "3"))

    # Workout matching
    MATCH_DATE_TOLERANCE_DAYS: int = int(os.getenv("MATCH_DATE_TOLERANCE_DAYS", "1"))
    MATCH_SCORING_PROFILE: str = os.getenv("MATCH_SCORING_PROFILE", "weighted")  # weighted | compact
    WEIGHTED_AUTO_MATCH_THRESHOLD: float = float(os.getenv("WEIGHTED_AUTO_MATCH_THRESHOLD", "75"))
    COMPACT_AUTO_MATCH_THRESHOLD: float = float(os.getenv("COMPACT_AUTO_MATCH_THRESHOLD", "0.5"))

    # Fitness level scaling applied to catalog archetypes
    FITNESS_LEVEL_MULTIPLIERS: Dict[str, Dict[str, float]] = {
        "beginner": {"duration": 0.7, "fatigue": 0.8},
        "intermediate": {"duration": 1.0, "fatigue": 1.0},
        "advanced": {"duration": 1.3, "fatigue": 1.1},
    }

    @classmethod
    def get_fitness_multipliers(cls, fitness_level: str) -> Dict[str, float]:
        """Get duration/fatigue multipliers for a fitness level."""
        if fitness_level not in cls.FITNESS_LEVEL_MULTIPLIERS:
            raise ValueError(
                f"Unknown fitness level '{fitness_level}'. "
                f"Expected one of: {', '.join(cls.FITNESS_LEVEL_MULTIPLIERS)}"
            )
        return cls.FITNESS_LEVEL_MULTIPLIERS[fitness_level]

    @classmethod
    def validate(cls) -> bool:
        """Validate configuration values."""
        if cls.HARD_CAP_SCOPE not in ("plan", "rolling_week"):
            raise ValueError(f"HARD_CAP_SCOPE must be 'plan' or 'rolling_week', got '{cls.HARD_CAP_SCOPE}'")
        if cls.MATCH_SCORING_PROFILE not in ("weighted", "compact"):
            raise ValueError(
                f"MATCH_SCORING_PROFILE must be 'weighted' or 'compact', got '{cls.MATCH_SCORING_PROFILE}'"
            )
        for name in ("BRICK_PREFERENCE_PROBABILITY", "PREFERRED_SPORT_PROBABILITY"):
            value = getattr(cls, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        return True


config = Config()
