from datetime import date, time

import pytest

from tutorbase.core.errors import ErrorKind, PreconditionViolation
from tutorbase.models.availability import TutorAvailability
from tutorbase.models.user import TUTOR_ROLE
from tutorbase.repositories.availability_repository import AvailabilityRepository
from tutorbase.services.availability_slots import create_slots, find_overlap, windows_overlap

TODAY = date(2025, 3, 1)


def test_creates_every_window_in_one_batch(db, make_user) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE, 'Tess', 'Tutor')

    slots = create_slots(
        AvailabilityRepository(db),
        tutor.id,
        date(2025, 3, 10),
        [(time(9, 0), time(10, 0)), (time(14, 0), time(15, 0))],
        today=TODAY,
    )

    assert len(slots) == 2
    assert db.query(TutorAvailability).filter(TutorAvailability.tutor_id == tutor.id).count() == 2


def test_drops_seconds_from_times(db, make_user) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE)

    slots = create_slots(
        AvailabilityRepository(db), tutor.id, date(2025, 3, 10), [(time(9, 0, 45), time(10, 0, 5))], today=TODAY
    )

    assert (slots[0].start_time, slots[0].end_time) == (time(9, 0), time(10, 0))


@pytest.mark.parametrize(
    ('windows', 'kind'),
    [
        ([], ErrorKind.INVALID_SLOT),
        ([(time(10, 0), time(9, 0))], ErrorKind.INVALID_SLOT),
        ([(time(9, 0), time(9, 0))], ErrorKind.INVALID_SLOT),
    ],
)
def test_rejects_invalid_windows(db, make_user, windows, kind) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE)

    with pytest.raises(PreconditionViolation) as exception_info:
        create_slots(AvailabilityRepository(db), tutor.id, date(2025, 3, 10), windows, today=TODAY)

    assert exception_info.value.kind == kind
    assert db.query(TutorAvailability).count() == 0


def test_rejects_past_dates(db, make_user) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE)

    with pytest.raises(PreconditionViolation) as exception_info:
        create_slots(
            AvailabilityRepository(db), tutor.id, date(2025, 2, 28), [(time(9, 0), time(10, 0))], today=TODAY
        )

    assert exception_info.value.kind == ErrorKind.PAST_DATE


def test_allow_policy_keeps_overlapping_slots(db, make_user) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE)
    repository = AvailabilityRepository(db)
    create_slots(repository, tutor.id, date(2025, 3, 10), [(time(9, 0), time(10, 0))], today=TODAY)

    create_slots(
        repository, tutor.id, date(2025, 3, 10), [(time(9, 30), time(10, 30))], today=TODAY, overlap_policy='allow'
    )

    assert db.query(TutorAvailability).count() == 2


def test_reject_policy_refuses_overlap_with_existing_slot(db, make_user) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE)
    repository = AvailabilityRepository(db)
    create_slots(repository, tutor.id, date(2025, 3, 10), [(time(9, 0), time(10, 0))], today=TODAY)

    with pytest.raises(PreconditionViolation) as exception_info:
        create_slots(
            repository, tutor.id, date(2025, 3, 10), [(time(9, 30), time(10, 30))], today=TODAY, overlap_policy='reject'
        )

    assert exception_info.value.kind == ErrorKind.SLOT_OVERLAP
    assert db.query(TutorAvailability).count() == 1


def test_reject_policy_ignores_other_tutors_and_touching_windows(db, make_user) -> None:
    tutor = make_user('tutor@example.com', TUTOR_ROLE)
    other = make_user('other@example.com', TUTOR_ROLE)
    repository = AvailabilityRepository(db)
    create_slots(repository, other.id, date(2025, 3, 10), [(time(9, 0), time(10, 0))], today=TODAY)

    create_slots(
        repository,
        tutor.id,
        date(2025, 3, 10),
        [(time(9, 0), time(10, 0)), (time(10, 0), time(11, 0))],
        today=TODAY,
        overlap_policy='reject',
    )

    assert db.query(TutorAvailability).filter(TutorAvailability.tutor_id == tutor.id).count() == 2


def test_overlap_helpers() -> None:
    assert windows_overlap((time(9, 0), time(10, 0)), (time(9, 59), time(11, 0)))
    assert not windows_overlap((time(9, 0), time(10, 0)), (time(10, 0), time(11, 0)))
    assert find_overlap([(time(9, 0), time(10, 0)), (time(9, 30), time(9, 45))], []) == (time(9, 0), time(10, 0))
    assert find_overlap([(time(9, 0), time(10, 0))], [(time(11, 0), time(12, 0))]) is None
