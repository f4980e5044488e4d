"""Database models for planned and tracked workouts."""

from datetime import datetime, timezone
from sqlalchemy import Column, Date, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class WorkoutRecord(Base):
    """A planned, completed, skipped or unplanned workout of one user."""

    __tablename__ = "workouts"
    __table_args__ = (Index("ix_workouts_user_date", "user_id", "date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(128), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)  # planned, completed, skipped, unplanned
    sport = Column(String(20), nullable=False)  # SportType value
    name = Column(String(255))
    description = Column(Text)
    notes = Column(Text)

    # Planned side (null for unplanned activities)
    duration_min = Column(Integer)
    expected_fatigue = Column(Float)
    archetype_id = Column(String(64))
    intensity_tag = Column(String(20))
    distance_km = Column(Float)

    # Actual side, stored as JSON strings
    actual_data = Column(Text)
    laps_data = Column(Text)
    comparison_data = Column(Text)
    adherence_score = Column(Integer)

    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self):
        return f"<WorkoutRecord(user_id={self.user_id}, date={self.date}, sport={self.sport}, status={self.status})>"
