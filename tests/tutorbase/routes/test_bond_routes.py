import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from tutorbase.models.bond import BondRequest, BondStatus, ParentChildBond
from tutorbase.models.user import ADMIN_ROLE, PARENT_ROLE, STUDENT_ROLE
from tutorbase.routes.bond_routes import (
    CreateBondRequest,
    approve_bond_request,
    create_bond_request,
    deny_bond_request,
    list_bonded_children,
    list_pending_requests,
    reconcile_bonds,
    search_students,
)


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('tutorbase.routes.bond_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def family(make_user):
    parent = make_user('pat@example.com', PARENT_ROLE, 'Pat', 'Doe')
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    return parent, child


def test_create_bond_request_rejects_blank_search_term() -> None:
    with pytest.raises(ValidationError):
        CreateBondRequest(search_term='   ')


def test_search_students_is_exact(db, family) -> None:
    parent, child = family

    assert [match.id for match in search_students(term='Jane Doe', current_user=parent, db=db)] == [child.id]
    assert search_students(term='Jane', current_user=parent, db=db) == []


def test_request_then_approve_links_accounts(db, family) -> None:
    parent, child = family

    request = create_bond_request(data=CreateBondRequest(search_term='jane@example.com'), current_user=parent, db=db)
    pending = list_pending_requests(current_user=child, db=db)
    bond = approve_bond_request(request_id=request.id, current_user=child, db=db)
    children = list_bonded_children(current_user=parent, db=db)

    assert [item.parent_name for item in pending] == ['Pat Doe']
    assert (bond.parent_id, bond.child_id) == (parent.id, child.id)
    assert [item.name for item in children] == ['Jane Doe']
    assert list_pending_requests(current_user=child, db=db) == []


def test_duplicate_request_returns_conflict_code(db, family) -> None:
    parent, _ = family
    data = CreateBondRequest(search_term='Jane Doe')
    create_bond_request(data=data, current_user=parent, db=db)

    with pytest.raises(HTTPException) as exception_info:
        create_bond_request(data=data, current_user=parent, db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'request_already_pending'


def test_request_for_partial_name_is_not_found(db, family) -> None:
    parent, _ = family

    with pytest.raises(HTTPException) as exception_info:
        create_bond_request(data=CreateBondRequest(search_term='Jane'), current_user=parent, db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail['code'] == 'student_not_found'


def test_deny_leaves_accounts_unlinked(db, family) -> None:
    parent, child = family
    request = create_bond_request(data=CreateBondRequest(search_term='Jane Doe'), current_user=parent, db=db)

    denied = deny_bond_request(request_id=request.id, current_user=child, db=db)

    assert denied.status == BondStatus.DENIED.value
    assert db.query(ParentChildBond).count() == 0


def test_other_student_cannot_approve(db, family, make_user) -> None:
    parent, _ = family
    other = make_user('sam@example.com', STUDENT_ROLE, 'Sam', 'Smith')
    request = create_bond_request(data=CreateBondRequest(search_term='Jane Doe'), current_user=parent, db=db)

    with pytest.raises(HTTPException) as exception_info:
        approve_bond_request(request_id=request.id, current_user=other, db=db)

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail['code'] == 'not_request_recipient'


def test_reconcile_reports_repaired_pairs(db, family, make_user) -> None:
    parent, child = family
    admin = make_user('admin@example.com', ADMIN_ROLE)
    db.add(BondRequest(parent_id=parent.id, child_id=child.id, status=BondStatus.APPROVED.value))
    db.commit()

    response = reconcile_bonds(current_user=admin, db=db)

    assert [(item.parent_id, item.child_id) for item in response.repaired] == [(parent.id, child.id)]
