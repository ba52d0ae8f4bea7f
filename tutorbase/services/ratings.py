"""Student metrics and lesson history."""

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorbase.core.errors import ErrorKind, PreconditionViolation, TransientFetchError
from tutorbase.models.lesson_rating import METRIC_NAMES, LessonRating
from tutorbase.repositories.rating_repository import RatingRepository

logger = logging.getLogger(__name__)


class StudentMetrics(BaseModel):
    focus: float
    skill: float
    revision: float
    attitude: float
    potential: float
    lesson_count: int


class LessonRatingView(BaseModel):
    id: int
    student_id: int
    admin_id: int | None = None
    focus: int
    skill: int
    revision: int
    attitude: int
    potential: int
    notes: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def summarize_metrics(ratings: list[LessonRating]) -> StudentMetrics | None:
    """Per-metric average across all lessons, or None before the first rating."""
    if not ratings:
        return None

    averages = {
        name: round(sum(getattr(rating, name) for rating in ratings) / len(ratings), 1)
        for name in METRIC_NAMES
    }
    return StudentMetrics(lesson_count=len(ratings), **averages)


class RatingService:
    def __init__(self, db: Session, ratings: RatingRepository | None = None):
        self.db = db
        self.ratings = ratings or RatingRepository(db)

    def record_rating(self, admin_id: int, student_id: int, scores: dict[str, int], notes: str | None = None) -> LessonRating:
        try:
            if not self.ratings.student_exists(student_id):
                raise PreconditionViolation(ErrorKind.STUDENT_NOT_FOUND, 'Student not found.')
            rating = self.ratings.create(student_id=student_id, admin_id=admin_id, notes=notes, **scores)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to submit rating for student %s', student_id)
            raise TransientFetchError('Failed to submit rating.') from exc

        logger.info('Admin %s rated a lesson for student %s', admin_id, student_id)
        return rating

    def lesson_history(self, student_id: int) -> list[LessonRating]:
        try:
            return self.ratings.list_for_student(student_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load lesson history for student %s', student_id)
            raise TransientFetchError() from exc

    def metrics(self, student_id: int) -> StudentMetrics | None:
        return summarize_metrics(self.lesson_history(student_id))
