"""Tutor-side creation of availability slots."""

import logging
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError

from tutorbase.core import config
from tutorbase.core.errors import ErrorKind, PreconditionViolation, TransientFetchError
from tutorbase.models.availability import TutorAvailability
from tutorbase.repositories.availability_repository import AvailabilityRepository
from tutorbase.services.calendar_grid import is_date_writable

logger = logging.getLogger(__name__)


def normalize_time_of_day(value: time) -> time:
    return value.replace(second=0, microsecond=0, tzinfo=None)


def windows_overlap(first: tuple[time, time], second: tuple[time, time]) -> bool:
    return first[0] < second[1] and second[0] < first[1]


def validate_windows(windows: list[tuple[time, time]]) -> list[tuple[time, time]]:
    if not windows:
        raise PreconditionViolation(ErrorKind.INVALID_SLOT, 'At least one time slot is required.')

    normalized = [(normalize_time_of_day(start), normalize_time_of_day(end)) for start, end in windows]
    for start, end in normalized:
        if start >= end:
            raise PreconditionViolation(ErrorKind.INVALID_SLOT)
    return normalized


def find_overlap(
    windows: list[tuple[time, time]],
    existing: list[tuple[time, time]],
) -> tuple[time, time] | None:
    for position, window in enumerate(windows):
        for other in windows[position + 1:] + existing:
            if windows_overlap(window, other):
                return window
    return None


def create_slots(
    repository: AvailabilityRepository,
    tutor_id: int,
    slot_date: date,
    windows: list[tuple[time, time]],
    today: date | None = None,
    overlap_policy: str | None = None,
) -> list[TutorAvailability]:
    """Insert every window for ``slot_date`` in one batch."""
    today = today or date.today()
    overlap_policy = overlap_policy or config.SLOT_OVERLAP_POLICY

    if not is_date_writable(slot_date, today):
        raise PreconditionViolation(ErrorKind.PAST_DATE)

    normalized = validate_windows(windows)

    try:
        if overlap_policy == 'reject':
            existing = [
                (slot.start_time, slot.end_time)
                for slot in repository.list_for_tutor_on(tutor_id, slot_date)
            ]
            clash = find_overlap(normalized, existing)
            if clash is not None:
                raise PreconditionViolation(
                    ErrorKind.SLOT_OVERLAP,
                    f'{clash[0]:%H:%M}-{clash[1]:%H:%M} overlaps another slot on {slot_date.isoformat()}.',
                )

        slots = repository.create_many(tutor_id, slot_date, normalized)
    except SQLAlchemyError as exc:
        repository.db.rollback()
        logger.exception('Error adding availability for tutor %s on %s', tutor_id, slot_date)
        raise TransientFetchError('Failed to add availability.') from exc

    logger.info('Tutor %s added %d slot(s) on %s', tutor_id, len(slots), slot_date)
    return slots
