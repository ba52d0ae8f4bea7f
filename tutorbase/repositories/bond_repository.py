"""Data access for bond requests and parent-child bonds.

Writes only flush; the bonding service owns commit and rollback so that a
status change and its bond land in the same transaction.
"""

from sqlalchemy import exists
from sqlalchemy.orm import Session

from tutorbase.models.bond import BondRequest, BondStatus, ParentChildBond


class BondRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_bond(self, parent_id: int, child_id: int) -> ParentChildBond | None:
        return (
            self.db.query(ParentChildBond)
            .filter(ParentChildBond.parent_id == parent_id, ParentChildBond.child_id == child_id)
            .first()
        )

    def get_request_for_pair(self, parent_id: int, child_id: int) -> BondRequest | None:
        # Rows are not unique per pair; the most recent one speaks for the pair.
        return (
            self.db.query(BondRequest)
            .filter(BondRequest.parent_id == parent_id, BondRequest.child_id == child_id)
            .order_by(BondRequest.created_at.desc(), BondRequest.id.desc())
            .first()
        )

    def get_request(self, request_id: int) -> BondRequest | None:
        return self.db.query(BondRequest).filter(BondRequest.id == request_id).first()

    def list_requests_from_parent(self, parent_id: int) -> list[BondRequest]:
        return (
            self.db.query(BondRequest)
            .filter(BondRequest.parent_id == parent_id)
            .order_by(BondRequest.created_at.desc(), BondRequest.id.desc())
            .all()
        )

    def list_pending_for_child(self, child_id: int) -> list[BondRequest]:
        return (
            self.db.query(BondRequest)
            .filter(
                BondRequest.child_id == child_id,
                BondRequest.status == BondStatus.PENDING.value,
            )
            .order_by(BondRequest.created_at.asc(), BondRequest.id.asc())
            .all()
        )

    def list_approved_without_bond(self) -> list[BondRequest]:
        missing_bond = ~exists().where(
            ParentChildBond.parent_id == BondRequest.parent_id,
            ParentChildBond.child_id == BondRequest.child_id,
        )
        return (
            self.db.query(BondRequest)
            .filter(BondRequest.status == BondStatus.APPROVED.value, missing_bond)
            .order_by(BondRequest.id.asc())
            .all()
        )

    def list_bonds_for_parent(self, parent_id: int) -> list[ParentChildBond]:
        return (
            self.db.query(ParentChildBond)
            .filter(ParentChildBond.parent_id == parent_id)
            .order_by(ParentChildBond.created_at.asc(), ParentChildBond.id.asc())
            .all()
        )

    def add_request(self, parent_id: int, child_id: int) -> BondRequest:
        request = BondRequest(parent_id=parent_id, child_id=child_id, status=BondStatus.PENDING.value)
        self.db.add(request)
        self.db.flush()
        return request

    def add_bond(self, parent_id: int, child_id: int) -> ParentChildBond:
        bond = ParentChildBond(parent_id=parent_id, child_id=child_id)
        self.db.add(bond)
        self.db.flush()
        return bond
