"""Data access for profiles.

Reads are batched by id set. There is deliberately no single-id lookup so
callers resolving several owners issue one query, not one per owner.
"""

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from tutorbase.models.profile import Profile, TutorProfile
from tutorbase.models.user import STUDENT_ROLE, User


def normalize_search_term(term: str) -> str:
    return ' '.join(term.split()).lower()


class ProfileRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_many_by_ids(self, user_ids) -> list[Profile]:
        ids = list(user_ids)
        if not ids:
            return []
        return self.db.query(Profile).filter(Profile.id.in_(ids)).all()

    def find_tutor_profiles_by_user_ids(self, user_ids) -> list[TutorProfile]:
        ids = list(user_ids)
        if not ids:
            return []
        return self.db.query(TutorProfile).filter(TutorProfile.user_id.in_(ids)).all()

    def find_students_by_exact_name_or_email(self, term: str) -> list[Profile]:
        """Students whose full name or email equals ``term`` (case-insensitive).

        Partial matches never qualify.
        """
        normalized = normalize_search_term(term)
        if not normalized:
            return []

        full_name = func.lower(
            func.trim(func.coalesce(Profile.first_name, '') + ' ' + func.coalesce(Profile.last_name, ''))
        )
        return (
            self.db.query(Profile)
            .join(User, User.id == Profile.id)
            .filter(
                User.role == STUDENT_ROLE,
                or_(full_name == normalized, func.lower(User.email) == normalized),
            )
            .order_by(Profile.id.asc())
            .all()
        )
