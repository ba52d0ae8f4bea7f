"""Parent-child bonding.

A parent finds a student by exact full name or email and sends a bond
request. Only that student can approve or deny it. Approval flips the
request to ``approved`` and inserts the bond in the same transaction.
Running approval again on an approved request whose bond is missing
creates the bond, and ``reconcile_missing_bonds`` does the same in bulk.

There is no version check: concurrent approve and deny calls resolve as
last write wins.
"""

import logging
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorbase.core import config
from tutorbase.core.errors import (
    ErrorKind,
    PartialConsistencyError,
    PreconditionViolation,
    TransientFetchError,
)
from tutorbase.models.bond import BondRequest, BondStatus, ParentChildBond
from tutorbase.models.profile import Profile
from tutorbase.repositories.bond_repository import BondRepository
from tutorbase.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class StudentMatch(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None


class PendingBondRequest(BaseModel):
    id: int
    parent_id: int
    parent_name: str
    created_at: datetime | None = None


class SentBondRequest(BaseModel):
    id: int
    child_id: int
    child_name: str
    status: BondStatus
    created_at: datetime | None = None


class BondedChild(BaseModel):
    child_id: int
    name: str
    avatar_color: str | None = None
    avatar_letter: str | None = None
    bonded_at: datetime | None = None


def display_name(profile: Profile | None, placeholder: str) -> str:
    if profile is None:
        return placeholder
    return profile.full_name or placeholder


class BondingService:
    def __init__(
        self,
        db: Session,
        bonds: BondRepository | None = None,
        profiles: ProfileRepository | None = None,
    ):
        self.db = db
        self.bonds = bonds or BondRepository(db)
        self.profiles = profiles or ProfileRepository(db)

    def _profiles_by_id(self, user_ids) -> dict[int, Profile]:
        return {profile.id: profile for profile in self.profiles.find_many_by_ids(sorted(set(user_ids)))}

    def search_students(self, term: str) -> list[StudentMatch]:
        try:
            matches = self.profiles.find_students_by_exact_name_or_email(term)
        except SQLAlchemyError as exc:
            logger.exception('Student search failed')
            raise TransientFetchError('Search failed.') from exc

        return [
            StudentMatch(id=profile.id, first_name=profile.first_name, last_name=profile.last_name)
            for profile in matches
        ]

    def create_request_by_search(self, parent_id: int, search_term: str) -> BondRequest:
        matches = self.search_students(search_term)
        if not matches:
            raise PreconditionViolation(ErrorKind.STUDENT_NOT_FOUND)
        return self.create_request(parent_id, matches[0].id)

    def create_request(self, parent_id: int, child_id: int) -> BondRequest:
        try:
            if self.bonds.get_bond(parent_id, child_id) is not None:
                raise PreconditionViolation(ErrorKind.ALREADY_BONDED)

            existing = self.bonds.get_request_for_pair(parent_id, child_id)
            if existing is not None:
                if existing.status == BondStatus.PENDING.value:
                    raise PreconditionViolation(ErrorKind.REQUEST_ALREADY_PENDING)
                if existing.status == BondStatus.DENIED.value:
                    raise PreconditionViolation(ErrorKind.PREVIOUSLY_DENIED)
                # Approved but the bond row is missing; reconciliation restores it.
                raise PreconditionViolation(ErrorKind.ALREADY_BONDED)

            request = self.bonds.add_request(parent_id, child_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to create bond request from parent %s to child %s', parent_id, child_id)
            raise TransientFetchError('Failed to send bond request.') from exc

        logger.info('Bond request %s created: parent %s -> child %s', request.id, parent_id, child_id)
        return request

    def list_sent_requests(self, parent_id: int) -> list[SentBondRequest]:
        try:
            requests = self.bonds.list_requests_from_parent(parent_id)
            profiles = self._profiles_by_id(request.child_id for request in requests) if requests else {}
        except SQLAlchemyError as exc:
            logger.exception('Failed to load bond requests sent by parent %s', parent_id)
            raise TransientFetchError() from exc

        return [
            SentBondRequest(
                id=request.id,
                child_id=request.child_id,
                child_name=display_name(profiles.get(request.child_id), config.UNKNOWN_STUDENT_NAME),
                status=BondStatus(request.status),
                created_at=request.created_at,
            )
            for request in requests
        ]

    def list_pending_for_child(self, child_id: int) -> list[PendingBondRequest]:
        """Every pending request addressed to ``child_id``, answered as one queue."""
        try:
            requests = self.bonds.list_pending_for_child(child_id)
            profiles = self._profiles_by_id(request.parent_id for request in requests) if requests else {}
        except SQLAlchemyError as exc:
            logger.exception('Failed to load pending bond requests for child %s', child_id)
            raise TransientFetchError() from exc

        return [
            PendingBondRequest(
                id=request.id,
                parent_id=request.parent_id,
                parent_name=display_name(profiles.get(request.parent_id), config.UNKNOWN_PARENT_NAME),
                created_at=request.created_at,
            )
            for request in requests
        ]

    def _get_request_for_recipient(self, child_id: int, request_id: int) -> BondRequest:
        try:
            request = self.bonds.get_request(request_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load bond request %s', request_id)
            raise TransientFetchError() from exc

        if request is None:
            raise PreconditionViolation(ErrorKind.REQUEST_NOT_FOUND)
        if request.child_id != child_id:
            raise PreconditionViolation(ErrorKind.NOT_REQUEST_RECIPIENT)
        return request

    def approve(self, child_id: int, request_id: int) -> ParentChildBond:
        request = self._get_request_for_recipient(child_id, request_id)
        if request.status == BondStatus.DENIED.value:
            raise PreconditionViolation(ErrorKind.INVALID_TRANSITION, 'This request was already denied.')

        try:
            request.status = BondStatus.APPROVED.value
            self.db.flush()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to approve bond request %s', request_id)
            raise TransientFetchError('Failed to process request.') from exc

        parent_id = request.parent_id
        try:
            bond = self.bonds.get_bond(parent_id, child_id) or self.bonds.add_bond(parent_id, child_id)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to create bond for request %s; approval rolled back', request_id)
            raise PartialConsistencyError() from exc

        logger.info('Bond request %s approved: parent %s bonded to child %s', request_id, parent_id, child_id)
        return bond

    def deny(self, child_id: int, request_id: int) -> BondRequest:
        request = self._get_request_for_recipient(child_id, request_id)
        if request.status == BondStatus.APPROVED.value:
            raise PreconditionViolation(ErrorKind.INVALID_TRANSITION, 'This request was already approved.')
        if request.status == BondStatus.DENIED.value:
            return request

        try:
            request.status = BondStatus.DENIED.value
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Failed to deny bond request %s', request_id)
            raise TransientFetchError('Failed to process request.') from exc

        logger.info('Bond request %s denied by child %s', request_id, child_id)
        return request

    def reconcile_missing_bonds(self) -> list[tuple[int, int]]:
        """Create the bond for every approved request that lacks one."""
        repaired: list[tuple[int, int]] = []
        try:
            for request in self.bonds.list_approved_without_bond():
                pair = (request.parent_id, request.child_id)
                if pair in repaired:
                    continue
                self.bonds.add_bond(*pair)
                repaired.append(pair)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Bond reconciliation failed')
            raise TransientFetchError('Bond reconciliation failed.') from exc

        for parent_id, child_id in repaired:
            logger.info('Reconciled missing bond: parent %s -> child %s', parent_id, child_id)
        return repaired

    def list_bonded_children(self, parent_id: int) -> list[BondedChild]:
        try:
            bonds = self.bonds.list_bonds_for_parent(parent_id)
            profiles = self._profiles_by_id(bond.child_id for bond in bonds) if bonds else {}
        except SQLAlchemyError as exc:
            logger.exception('Failed to load bonded children for parent %s', parent_id)
            raise TransientFetchError() from exc

        children = []
        for bond in bonds:
            profile = profiles.get(bond.child_id)
            children.append(
                BondedChild(
                    child_id=bond.child_id,
                    name=display_name(profile, config.UNKNOWN_STUDENT_NAME),
                    avatar_color=profile.avatar_color if profile else None,
                    avatar_letter=profile.avatar_letter if profile else None,
                    bonded_at=bond.created_at,
                )
            )
        return children
