from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorbase.auth.dependencies import require_roles
from tutorbase.core.errors import DomainError, to_http_exception
from tutorbase.database import ensure_bond_schema, get_db
from tutorbase.models.bond import BondStatus
from tutorbase.models.user import ADMIN_ROLE, PARENT_ROLE, STUDENT_ROLE, User
from tutorbase.services.bonding import (
    BondedChild,
    BondingService,
    PendingBondRequest,
    SentBondRequest,
    StudentMatch,
)

router = APIRouter(tags=['bonds'])

MAX_SEARCH_TERM_LENGTH = 200


class CreateBondRequest(BaseModel):
    search_term: str

    @field_validator('search_term')
    @classmethod
    def validate_search_term(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Please enter a name or email.')
        if len(normalized) > MAX_SEARCH_TERM_LENGTH:
            raise ValueError(f'Search term must be {MAX_SEARCH_TERM_LENGTH} characters or fewer.')
        return normalized


class BondRequestResponse(BaseModel):
    id: int
    parent_id: int
    child_id: int
    status: BondStatus
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BondResponse(BaseModel):
    id: int
    parent_id: int
    child_id: int
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class RepairedBond(BaseModel):
    parent_id: int
    child_id: int


class ReconcileResponse(BaseModel):
    repaired: list[RepairedBond]


def ensure_database_ready() -> None:
    try:
        ensure_bond_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and Postgres credentials.',
        ) from exc


@router.get('/students/search', response_model=list[StudentMatch])
def search_students(
    term: str = Query(..., min_length=1, max_length=MAX_SEARCH_TERM_LENGTH),
    current_user: User = Depends(require_roles(PARENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).search_students(term)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post('/requests', response_model=BondRequestResponse, status_code=status.HTTP_201_CREATED)
def create_bond_request(
    data: CreateBondRequest,
    current_user: User = Depends(require_roles(PARENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).create_request_by_search(current_user.id, data.search_term)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.get('/requests/sent', response_model=list[SentBondRequest])
def list_sent_requests(
    current_user: User = Depends(require_roles(PARENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).list_sent_requests(current_user.id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.get('/requests/pending', response_model=list[PendingBondRequest])
def list_pending_requests(
    current_user: User = Depends(require_roles(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).list_pending_for_child(current_user.id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post('/requests/{request_id}/approve', response_model=BondResponse)
def approve_bond_request(
    request_id: int,
    current_user: User = Depends(require_roles(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).approve(current_user.id, request_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post('/requests/{request_id}/deny', response_model=BondRequestResponse)
def deny_bond_request(
    request_id: int,
    current_user: User = Depends(require_roles(STUDENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).deny(current_user.id, request_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.get('/children', response_model=list[BondedChild])
def list_bonded_children(
    current_user: User = Depends(require_roles(PARENT_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return BondingService(db).list_bonded_children(current_user.id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc


@router.post('/reconcile', response_model=ReconcileResponse)
def reconcile_bonds(
    current_user: User = Depends(require_roles(ADMIN_ROLE)),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        repaired = BondingService(db).reconcile_missing_bonds()
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    return ReconcileResponse(
        repaired=[RepairedBond(parent_id=parent_id, child_id=child_id) for parent_id, child_id in repaired]
    )
