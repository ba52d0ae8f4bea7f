"""Lesson rating model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from tutorbase.database import Base

METRIC_NAMES = ('focus', 'skill', 'revision', 'attitude', 'potential')


class LessonRating(Base):
    """Per-lesson scores an admin records for a student."""
    __tablename__ = "lesson_ratings"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    focus = Column(Integer, nullable=False)
    skill = Column(Integer, nullable=False)
    revision = Column(Integer, nullable=False)
    attitude = Column(Integer, nullable=False)
    potential = Column(Integer, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
