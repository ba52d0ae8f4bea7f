"""Bond request and parent-child bond model definitions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from tutorbase.database import Base


class BondStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    DENIED = 'denied'


class BondRequest(Base):
    """A parent's request to link with a student account."""
    __tablename__ = "bond_requests"

    id = Column(Integer, primary_key=True)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    child_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String, default=BondStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class ParentChildBond(Base):
    """An approved link giving a parent read access to a student's progress."""
    __tablename__ = "parent_child_bonds"

    id = Column(Integer, primary_key=True)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    child_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("parent_id", "child_id", name="uq_parent_child_bond"),
    )
