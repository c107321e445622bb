from mudhalvan.auth.permissions import (
    has_admin_privileges, has_instructor_privileges, has_staff_privileges, is_admin, is_instructor,
    is_super_admin,
)
from mudhalvan.auth.session import Session
from mudhalvan.config import DEFAULT_SUPER_ADMIN_EMAIL


def test_no_session_has_no_capabilities():
    assert not is_instructor(None)
    assert not is_admin(None)
    assert not is_super_admin(None)
    assert not has_instructor_privileges(None)
    assert not has_admin_privileges(None)


def test_instructor_role_grants_instructor_privileges():
    session = Session(email="someone@example.com", role="instructor")
    assert is_instructor(session)
    assert has_instructor_privileges(session)
    assert not has_admin_privileges(session)


def test_super_admin_email_grants_everything_regardless_of_role():
    session = Session(email=DEFAULT_SUPER_ADMIN_EMAIL, role="student")
    assert is_super_admin(session)
    assert not is_instructor(session)
    assert has_instructor_privileges(session)
    assert has_admin_privileges(session)


def test_admin_role_is_not_instructor():
    session = Session(email="admin@example.com", role="admin")
    assert is_admin(session)
    assert has_admin_privileges(session)
    assert not has_instructor_privileges(session)


def test_super_admin_match_is_exact():
    session = Session(email=DEFAULT_SUPER_ADMIN_EMAIL.upper(), role=None)
    assert not is_super_admin(session)


def test_configured_super_admin_address():
    session = Session(email="root@example.com")
    assert has_instructor_privileges(session, super_admin_email="root@example.com")
    assert not has_instructor_privileges(session)


def test_staff_covers_instructors_and_admins():
    assert has_staff_privileges(Session(email="i@example.com", role="instructor"))
    assert has_staff_privileges(Session(email="a@example.com", role="admin"))
    assert has_staff_privileges(Session(email=DEFAULT_SUPER_ADMIN_EMAIL))
    assert not has_staff_privileges(Session(email="s@example.com", role="student"))
    assert not has_staff_privileges(None)
