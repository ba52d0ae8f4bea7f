"""Data access for lesson ratings."""

from sqlalchemy.orm import Session

from tutorbase.models.lesson_rating import LessonRating
from tutorbase.models.user import STUDENT_ROLE, User


class RatingRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_for_student(self, student_id: int) -> list[LessonRating]:
        return (
            self.db.query(LessonRating)
            .filter(LessonRating.student_id == student_id)
            .order_by(LessonRating.created_at.desc(), LessonRating.id.desc())
            .all()
        )

    def student_exists(self, student_id: int) -> bool:
        return (
            self.db.query(User.id)
            .filter(User.id == student_id, User.role == STUDENT_ROLE)
            .first()
            is not None
        )

    def create(self, **rating_data) -> LessonRating:
        rating = LessonRating(**rating_data)
        self.db.add(rating)
        self.db.commit()
        self.db.refresh(rating)
        return rating
