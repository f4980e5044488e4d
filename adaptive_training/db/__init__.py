"""Database module for planned and tracked workouts."""

from .database import Database, close_db, get_db
from .models import WorkoutRecord
from .store import PlanRepository, WorkoutStore

__all__ = ["Database", "close_db", "get_db", "WorkoutRecord", "WorkoutStore", "PlanRepository"]
