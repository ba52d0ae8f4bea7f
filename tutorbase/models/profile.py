"""Profile model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import validates
from tutorbase.database import Base


def normalize_name_part(value: str | None) -> str | None:
    if value is None:
        return None
    return " ".join(value.split()) or None


class Profile(Base):
    """Public display data for an account. Shares its id with the user."""
    __tablename__ = "profiles"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    first_name = Column(String)
    last_name = Column(String)
    avatar_color = Column(String)
    avatar_letter = Column(String(1))
    created_at = Column(DateTime, default=datetime.utcnow)

    @validates("first_name", "last_name")
    def _normalize_name(self, key, value):
        return normalize_name_part(value)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class TutorProfile(Base):
    """Extended profile for tutor accounts."""
    __tablename__ = "tutor_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)
    bio = Column(Text)
    subject = Column(String)
    standard_qualifications = Column(JSON, default=list)
    custom_qualifications = Column(JSON, default=list)
