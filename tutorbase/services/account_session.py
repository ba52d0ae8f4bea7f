"""Per-user session state.

An ``AccountSession`` is opened when a user signs in, passed explicitly to
whatever needs it, refreshed on demand and closed on sign-out. Which parts
are loaded depends on the role: parents see their bonded children,
students see their pending bond requests and their metrics.
"""

from pydantic import BaseModel
from sqlalchemy.orm import Session

from tutorbase.models.user import ADMIN_ROLE, PARENT_ROLE, STUDENT_ROLE, User
from tutorbase.services.bonding import BondedChild, BondingService, PendingBondRequest
from tutorbase.services.ratings import RatingService, StudentMetrics


class AccountSessionSummary(BaseModel):
    user_id: int
    email: str
    role: str
    bonded_children: list[BondedChild]
    pending_requests: list[PendingBondRequest]
    metrics: StudentMetrics | None = None


class AccountSession:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user_id = user.id
        self.email = user.email
        self.role = user.role
        self.bonded_children: list[BondedChild] = []
        self.pending_requests: list[PendingBondRequest] = []
        self.metrics: StudentMetrics | None = None
        self.is_open = True

    @classmethod
    def open(cls, db: Session, user: User) -> 'AccountSession':
        session = cls(db, user)
        session.refresh()
        return session

    @classmethod
    def open_for_access_check(cls, db: Session, user: User) -> 'AccountSession':
        """Open a session holding only what ``can_view_student`` reads."""
        session = cls(db, user)
        if session.role == PARENT_ROLE:
            session.refresh_bonded_children()
        return session

    def _require_open(self) -> None:
        if not self.is_open:
            raise RuntimeError('Account session is closed.')

    def refresh(self) -> None:
        if self.role == PARENT_ROLE:
            self.refresh_bonded_children()
        elif self.role == STUDENT_ROLE:
            self.refresh_pending_requests()
            self.refresh_metrics()

    def refresh_bonded_children(self) -> list[BondedChild]:
        self._require_open()
        self.bonded_children = BondingService(self.db).list_bonded_children(self.user_id)
        return self.bonded_children

    def refresh_pending_requests(self) -> list[PendingBondRequest]:
        self._require_open()
        self.pending_requests = BondingService(self.db).list_pending_for_child(self.user_id)
        return self.pending_requests

    def refresh_metrics(self) -> StudentMetrics | None:
        self._require_open()
        self.metrics = RatingService(self.db).metrics(self.user_id)
        return self.metrics

    def can_view_student(self, student_id: int) -> bool:
        self._require_open()
        if self.role == ADMIN_ROLE or student_id == self.user_id:
            return True
        if self.role == PARENT_ROLE:
            return any(child.child_id == student_id for child in self.bonded_children)
        return False

    def summary(self) -> AccountSessionSummary:
        self._require_open()
        return AccountSessionSummary(
            user_id=self.user_id,
            email=self.email,
            role=self.role,
            bonded_children=self.bonded_children,
            pending_requests=self.pending_requests,
            metrics=self.metrics,
        )

    def close(self) -> None:
        self.bonded_children = []
        self.pending_requests = []
        self.metrics = None
        self.is_open = False
