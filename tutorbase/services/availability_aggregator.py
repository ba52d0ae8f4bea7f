"""Month view of tutor availability.

One range query fetches the month's slots, then one batched lookup per
profile table resolves the display metadata of every distinct tutor. The
slots are grouped into an index keyed by ISO date.
"""

import calendar
import copy
import logging
from datetime import date, time

from pydantic import BaseModel, Field, field_serializer
from sqlalchemy.exc import SQLAlchemyError

from tutorbase.core import config
from tutorbase.core.errors import ErrorKind, PreconditionViolation, TransientFetchError
from tutorbase.models.availability import TutorAvailability
from tutorbase.models.profile import Profile, TutorProfile
from tutorbase.repositories.availability_repository import AvailabilityRepository
from tutorbase.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class YearMonth(BaseModel):
    year: int = Field(ge=1, le=9999)
    month: int = Field(ge=1, le=12)

    class Config:
        frozen = True

    @classmethod
    def parse(cls, value: str) -> 'YearMonth':
        try:
            year_text, month_text = value.strip().split('-')
            return cls(year=int(year_text), month=int(month_text))
        except ValueError as exc:
            raise PreconditionViolation(ErrorKind.INVALID_MONTH) from exc

    @classmethod
    def of(cls, day: date) -> 'YearMonth':
        return cls(year=day.year, month=day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_month)

    def __str__(self) -> str:
        return f'{self.year:04d}-{self.month:02d}'


class OwnerProfile(BaseModel):
    display_name: str
    display_color: str
    bio: str | None = None
    subject_label: str | None = None


class AvailabilitySlotView(BaseModel):
    id: int
    tutor_id: int
    date: date
    start_time: time
    end_time: time
    owner: OwnerProfile

    @field_serializer('start_time', 'end_time')
    def serialize_time_of_day(self, value: time) -> str:
        return value.strftime('%H:%M')


MonthAvailabilityIndex = dict[str, list[AvailabilitySlotView]]


def fallback_owner() -> OwnerProfile:
    return OwnerProfile(display_name=config.UNKNOWN_TUTOR_NAME, display_color=config.DEFAULT_TUTOR_COLOR)


def build_owner_profiles(
    profiles: list[Profile],
    tutor_profiles: list[TutorProfile],
) -> dict[int, OwnerProfile]:
    extended = {tutor_profile.user_id: tutor_profile for tutor_profile in tutor_profiles}

    owners: dict[int, OwnerProfile] = {}
    for profile in profiles:
        tutor_profile = extended.get(profile.id)
        owners[profile.id] = OwnerProfile(
            display_name=profile.full_name or config.UNKNOWN_TUTOR_NAME,
            display_color=profile.avatar_color or config.DEFAULT_TUTOR_COLOR,
            bio=(tutor_profile.bio or None) if tutor_profile else None,
            subject_label=(tutor_profile.subject or None) if tutor_profile else None,
        )
    return owners


def slot_sort_key(slot: TutorAvailability) -> tuple:
    return (slot.date, slot.start_time, slot.end_time, slot.id)


def group_slots_by_date(
    month: YearMonth,
    slots: list[TutorAvailability],
    owners: dict[int, OwnerProfile],
) -> MonthAvailabilityIndex:
    index: MonthAvailabilityIndex = {}
    for slot in sorted(slots, key=slot_sort_key):
        if not month.first_day <= slot.date <= month.last_day:
            logger.warning('Ignoring slot %s dated %s outside %s', slot.id, slot.date, month)
            continue
        owner = owners.get(slot.tutor_id) or fallback_owner()
        index.setdefault(slot.date.isoformat(), []).append(
            AvailabilitySlotView(
                id=slot.id,
                tutor_id=slot.tutor_id,
                date=slot.date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                owner=owner.model_copy(),
            )
        )
    return index


class AvailabilityAggregator:
    """Builds the availability index for one month at a time.

    Only the last successful index is retained. A failed fetch leaves it
    untouched and raises ``TransientFetchError``; nothing is retried.
    """

    def __init__(self, slots: AvailabilityRepository, profiles: ProfileRepository):
        self.slots = slots
        self.profiles = profiles
        self.month: YearMonth | None = None
        self.index: MonthAvailabilityIndex = {}

    def get_month_availability(self, month: YearMonth) -> MonthAvailabilityIndex:
        self.month = month
        return self.refetch()

    def refetch(self) -> MonthAvailabilityIndex:
        if self.month is None:
            raise PreconditionViolation(ErrorKind.INVALID_MONTH, 'No month has been requested yet.')

        month = self.month
        try:
            slots = self.slots.list_between(month.first_day, month.last_day)
            if not slots:
                index: MonthAvailabilityIndex = {}
            else:
                owner_ids = sorted({slot.tutor_id for slot in slots})
                profiles = self.profiles.find_many_by_ids(owner_ids)
                tutor_profiles = self.profiles.find_tutor_profiles_by_user_ids(owner_ids)
                index = group_slots_by_date(month, slots, build_owner_profiles(profiles, tutor_profiles))
        except SQLAlchemyError as exc:
            logger.exception('Error fetching availability for %s', month)
            raise TransientFetchError('Failed to load availability. Please try again.') from exc

        self.index = index
        return copy.deepcopy(index)
