"""Data access for tutor availability slots."""

from datetime import date, time

from sqlalchemy.orm import Session

from tutorbase.models.availability import TutorAvailability


class AvailabilityRepository:
    def __init__(self, db: Session):
        self.db = db

    def list_between(self, start_date: date, end_date: date) -> list[TutorAvailability]:
        """All slots with ``start_date <= date <= end_date`` in one range query."""
        return (
            self.db.query(TutorAvailability)
            .filter(
                TutorAvailability.date >= start_date,
                TutorAvailability.date <= end_date,
            )
            .order_by(
                TutorAvailability.date.asc(),
                TutorAvailability.start_time.asc(),
                TutorAvailability.end_time.asc(),
                TutorAvailability.id.asc(),
            )
            .all()
        )

    def list_for_tutor_on(self, tutor_id: int, slot_date: date) -> list[TutorAvailability]:
        return (
            self.db.query(TutorAvailability)
            .filter(
                TutorAvailability.tutor_id == tutor_id,
                TutorAvailability.date == slot_date,
            )
            .all()
        )

    def create_many(self, tutor_id: int, slot_date: date, windows: list[tuple[time, time]]) -> list[TutorAvailability]:
        slots = [
            TutorAvailability(tutor_id=tutor_id, date=slot_date, start_time=start, end_time=end)
            for start, end in windows
        ]
        self.db.add_all(slots)
        self.db.commit()
        for slot in slots:
            self.db.refresh(slot)
        return slots
