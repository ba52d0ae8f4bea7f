"""User model definitions."""

from sqlalchemy import Column, Integer, String
from tutorbase.database import Base

ADMIN_ROLE = 'admin'
STUDENT_ROLE = 'student'
PARENT_ROLE = 'parent'
TUTOR_ROLE = 'tutor'
ROLES = (ADMIN_ROLE, STUDENT_ROLE, PARENT_ROLE, TUTOR_ROLE)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    hashed_password = Column(String)
    role = Column(String, default=STUDENT_ROLE)  # admin/student/parent/tutor
