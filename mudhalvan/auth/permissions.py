from typing import Callable, Optional

from fastapi import Depends, HTTPException

from mudhalvan.auth.session import Session, get_optional_session, get_settings, require_email_session
from mudhalvan.config import DEFAULT_SUPER_ADMIN_EMAIL, Settings

INSTRUCTOR_ROLE = "instructor"
ADMIN_ROLE = "admin"
STUDENT_ROLE = "student"


def is_super_admin(session: Optional[Session], super_admin_email: str = DEFAULT_SUPER_ADMIN_EMAIL) -> bool:
    """True when the session email is the allow-listed super admin address"""
    if session is None or not session.email:
        return False
    return session.email == super_admin_email


def is_instructor(session: Optional[Session]) -> bool:
    return session is not None and session.role == INSTRUCTOR_ROLE


def is_admin(session: Optional[Session]) -> bool:
    return session is not None and session.role == ADMIN_ROLE


def has_instructor_privileges(session: Optional[Session],
                              super_admin_email: str = DEFAULT_SUPER_ADMIN_EMAIL) -> bool:
    return is_instructor(session) or is_super_admin(session, super_admin_email)


def has_admin_privileges(session: Optional[Session],
                         super_admin_email: str = DEFAULT_SUPER_ADMIN_EMAIL) -> bool:
    return is_admin(session) or is_super_admin(session, super_admin_email)


def has_staff_privileges(session: Optional[Session],
                         super_admin_email: str = DEFAULT_SUPER_ADMIN_EMAIL) -> bool:
    """Instructors and admins; the audience of the reporting routes"""
    return (has_instructor_privileges(session, super_admin_email)
            or has_admin_privileges(session, super_admin_email))


# ==================== DEPENDENCIES ====================

class InstructorGuard:
    """
    Dependency: caller must hold instructor privileges

    Course routes answer 403 and assessment routes answer 401 when the
    check fails, so the status code is a parameter.
    """

    def __init__(self, status_code: int = 401, detail: str = "Unauthorized. Instructor privileges required."):
        self.status_code = status_code
        self.detail = detail

    def __call__(
        self,
        session: Optional[Session] = Depends(get_optional_session),
        settings: Settings = Depends(get_settings),
    ) -> Session:
        if not has_instructor_privileges(session, settings.super_admin_email):
            raise HTTPException(status_code=self.status_code, detail=self.detail)
        return session


class PrivilegeGuard:
    """
    Dependency: logged-in caller must satisfy `allows`

    No session is 401; a session without the privilege is 403.
    """

    def __init__(self, allows: Callable[[Optional[Session], str], bool], detail: str):
        self.allows = allows
        self.detail = detail

    def __call__(
        self,
        session: Session = Depends(require_email_session),
        settings: Settings = Depends(get_settings),
    ) -> Session:
        if not self.allows(session, settings.super_admin_email):
            raise HTTPException(status_code=403, detail=self.detail)
        return session
