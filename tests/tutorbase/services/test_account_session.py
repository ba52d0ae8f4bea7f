import pytest

from tutorbase.models.user import ADMIN_ROLE, PARENT_ROLE, STUDENT_ROLE
from tutorbase.services.account_session import AccountSession
from tutorbase.services.bonding import BondingService
from tutorbase.services.ratings import RatingService


def test_parent_session_loads_bonded_children(db, make_user) -> None:
    parent = make_user('pat@example.com', PARENT_ROLE, 'Pat', 'Doe')
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    stranger = make_user('sam@example.com', STUDENT_ROLE, 'Sam', 'Smith')
    service = BondingService(db)
    service.approve(child.id, service.create_request(parent.id, child.id).id)

    session = AccountSession.open(db, parent)

    assert [item.child_id for item in session.bonded_children] == [child.id]
    assert session.can_view_student(child.id)
    assert not session.can_view_student(stranger.id)


def test_parent_session_sees_new_bond_after_refresh(db, make_user) -> None:
    parent = make_user('pat@example.com', PARENT_ROLE, 'Pat', 'Doe')
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    session = AccountSession.open(db, parent)
    assert not session.can_view_student(child.id)

    service = BondingService(db)
    service.approve(child.id, service.create_request(parent.id, child.id).id)
    session.refresh_bonded_children()

    assert session.can_view_student(child.id)


def test_student_session_loads_pending_requests_and_metrics(db, make_user) -> None:
    parent = make_user('pat@example.com', PARENT_ROLE, 'Pat', 'Doe')
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    admin = make_user('admin@example.com', ADMIN_ROLE)
    BondingService(db).create_request(parent.id, child.id)
    RatingService(db).record_rating(
        admin.id, child.id, {'focus': 4, 'skill': 4, 'revision': 4, 'attitude': 4, 'potential': 4}
    )

    session = AccountSession.open(db, child)
    summary = session.summary()

    assert [item.parent_name for item in summary.pending_requests] == ['Pat Doe']
    assert summary.metrics.lesson_count == 1
    assert summary.bonded_children == []
    assert session.can_view_student(child.id)
    assert not session.can_view_student(parent.id)


def test_admin_can_view_any_student(db, make_user) -> None:
    admin = make_user('admin@example.com', ADMIN_ROLE)
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')

    assert AccountSession.open(db, admin).can_view_student(child.id)


def test_closed_session_clears_state_and_refuses_use(db, make_user) -> None:
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    session = AccountSession.open(db, child)

    session.close()

    assert session.pending_requests == []
    assert session.metrics is None
    with pytest.raises(RuntimeError):
        session.refresh_metrics()


def test_access_check_session_skips_student_dashboard_queries(db, make_user) -> None:
    parent = make_user('pat@example.com', PARENT_ROLE, 'Pat', 'Doe')
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    admin = make_user('admin@example.com', ADMIN_ROLE)
    BondingService(db).create_request(parent.id, child.id)
    RatingService(db).record_rating(
        admin.id, child.id, {'focus': 4, 'skill': 4, 'revision': 4, 'attitude': 4, 'potential': 4}
    )

    session = AccountSession.open_for_access_check(db, child)

    assert session.pending_requests == []
    assert session.metrics is None
    assert session.can_view_student(child.id)
    assert not session.can_view_student(parent.id)


def test_access_check_session_loads_bonds_for_parents(db, make_user) -> None:
    parent = make_user('pat@example.com', PARENT_ROLE, 'Pat', 'Doe')
    child = make_user('jane@example.com', STUDENT_ROLE, 'Jane', 'Doe')
    service = BondingService(db)
    service.approve(child.id, service.create_request(parent.id, child.id).id)

    assert AccountSession.open_for_access_check(db, parent).can_view_student(child.id)
