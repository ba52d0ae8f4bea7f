from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorbase.auth.dependencies import get_access_session, require_roles
from tutorbase.core.errors import DomainError, ErrorKind, PreconditionViolation, to_http_exception
from tutorbase.database import ensure_rating_schema, get_db
from tutorbase.models.lesson_rating import METRIC_NAMES
from tutorbase.models.user import ADMIN_ROLE, User
from tutorbase.services.account_session import AccountSession
from tutorbase.services.ratings import LessonRatingView, RatingService, StudentMetrics, summarize_metrics

router = APIRouter(tags=['ratings'])

MAX_RATING_NOTES_LENGTH = 600


class CreateRatingRequest(BaseModel):
    student_id: int
    focus: int = Field(ge=1, le=5)
    skill: int = Field(ge=1, le=5)
    revision: int = Field(ge=1, le=5)
    attitude: int = Field(ge=1, le=5)
    potential: int = Field(ge=1, le=5)
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_RATING_NOTES_LENGTH:
            raise ValueError(f'Notes must be {MAX_RATING_NOTES_LENGTH} characters or fewer.')

        return normalized


class StudentProgressResponse(BaseModel):
    student_id: int
    metrics: StudentMetrics | None = None
    lessons: list[LessonRatingView]


def ensure_database_ready() -> None:
    try:
        ensure_rating_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and Postgres credentials.',
        ) from exc


@router.post('', response_model=LessonRatingView, status_code=status.HTTP_201_CREATED)
def create_rating(
    data: CreateRatingRequest,
    current_user: User = Depends(require_roles(ADMIN_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    scores = {name: getattr(data, name) for name in METRIC_NAMES}
    try:
        return RatingService(db).record_rating(current_user.id, data.student_id, scores, data.notes)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.get('/students/{student_id}', response_model=StudentProgressResponse)
def get_student_progress(
    student_id: int,
    session: AccountSession = Depends(get_access_session),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    if not session.can_view_student(student_id):
        raise to_http_exception(PreconditionViolation(ErrorKind.ACCESS_DENIED))

    try:
        lessons = RatingService(db).lesson_history(student_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return StudentProgressResponse(
        student_id=student_id,
        metrics=summarize_metrics(lessons),
        lessons=[LessonRatingView.model_validate(lesson) for lesson in lessons],
    )
