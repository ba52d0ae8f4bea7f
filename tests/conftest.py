import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from tutorbase.database import Base  # noqa: E402
from tutorbase.models import availability, bond, lesson_rating  # noqa: E402,F401
from tutorbase.models.profile import Profile, TutorProfile  # noqa: E402
from tutorbase.models.user import User  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    def _make_user(
        email: str,
        role: str,
        first_name: str | None = None,
        last_name: str | None = None,
        avatar_color: str | None = None,
    ) -> User:
        user = User(email=email, hashed_password='', role=role)
        db.add(user)
        db.flush()
        db.add(
            Profile(
                id=user.id,
                first_name=first_name,
                last_name=last_name,
                avatar_color=avatar_color,
                avatar_letter=(first_name or email)[0].upper(),
            )
        )
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_tutor_profile(db):
    def _make_tutor_profile(user: User, bio: str | None = None, subject: str | None = None) -> TutorProfile:
        tutor_profile = TutorProfile(user_id=user.id, bio=bio, subject=subject)
        db.add(tutor_profile)
        db.commit()
        return tutor_profile

    return _make_tutor_profile
