from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, field_serializer, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorbase.auth.dependencies import require_roles
from tutorbase.core.errors import DomainError, to_http_exception
from tutorbase.database import ensure_availability_schema, get_db
from tutorbase.models.user import TUTOR_ROLE, User
from tutorbase.repositories.availability_repository import AvailabilityRepository
from tutorbase.repositories.profile_repository import ProfileRepository
from tutorbase.services.availability_aggregator import (
    AvailabilityAggregator,
    AvailabilitySlotView,
    YearMonth,
)
from tutorbase.services.availability_slots import create_slots
from tutorbase.services.calendar_grid import MonthGrid, build_month_grid

router = APIRouter(tags=['availability'])

MONTH_PATTERN = r'^\d{4}-\d{2}$'
MAX_SLOTS_PER_REQUEST = 24


class TimeWindowRequest(BaseModel):
    start_time: time
    end_time: time


class CreateSlotsRequest(BaseModel):
    date: date
    slots: list[TimeWindowRequest] = Field(min_length=1, max_length=MAX_SLOTS_PER_REQUEST)

    @field_validator('slots')
    @classmethod
    def validate_slots(cls, value: list[TimeWindowRequest]) -> list[TimeWindowRequest]:
        for window in value:
            if window.start_time >= window.end_time:
                raise ValueError('End time must be after start time.')
        return value


class SlotResponse(BaseModel):
    id: int
    tutor_id: int
    date: date
    start_time: time
    end_time: time

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time')
    def serialize_time_of_day(self, value: time) -> str:
        return value.strftime('%H:%M')


class MonthAvailabilityResponse(BaseModel):
    month: str
    availability: dict[str, list[AvailabilitySlotView]]


def ensure_database_ready() -> None:
    try:
        ensure_availability_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and Postgres credentials.',
        ) from exc


def build_aggregator(db: Session) -> AvailabilityAggregator:
    return AvailabilityAggregator(AvailabilityRepository(db), ProfileRepository(db))


@router.get('/month', response_model=MonthAvailabilityResponse)
def get_month_availability(
    month: str = Query(..., pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        year_month = YearMonth.parse(month)
        index = build_aggregator(db).get_month_availability(year_month)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return MonthAvailabilityResponse(month=str(year_month), availability=index)


@router.get('/calendar', response_model=MonthGrid)
def get_month_calendar(
    month: str = Query(..., pattern=MONTH_PATTERN),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        year_month = YearMonth.parse(month)
        index = build_aggregator(db).get_month_availability(year_month)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return build_month_grid(year_month, index, today=date.today())


@router.post('/slots', response_model=list[SlotResponse], status_code=status.HTTP_201_CREATED)
def create_availability_slots(
    data: CreateSlotsRequest,
    current_user: User = Depends(require_roles(TUTOR_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return create_slots(
            AvailabilityRepository(db),
            tutor_id=current_user.id,
            slot_date=data.date,
            windows=[(window.start_time, window.end_time) for window in data.slots],
            today=date.today(),
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
