"""
Identity & Role Resolver.

A SessionContext is an explicit per-session object: it is created when a
session is authenticated, resolves the identity's role, profile and (for
faculty) faculty profile, and is cleared on sign-out. Nothing about the
current identity is held in module state.

Resolution never grants privilege by accident: a missing role row means
role None, and a database failure is logged and leaves the previously
resolved values untouched.
"""

from collections import namedtuple
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from academic_quality.logging_config import get_logger, log_with_context
from academic_quality.models.faculty_profile import FacultyProfile
from academic_quality.models.identity import AuthSession
from academic_quality.models.profile import Profile, Role, UserRole
from academic_quality.services.auth_service import AuthEvent, AuthEventStream

logger = get_logger("auth")

MenuItem = namedtuple("MenuItem", ["path", "label"])

ADMIN_MENU = (
    MenuItem("/dashboard", "Dashboard"),
    MenuItem("/faculty", "Faculty Management"),
    MenuItem("/departments", "Departments"),
    MenuItem("/courses", "Courses"),
    MenuItem("/feedback", "Feedback Analysis"),
    MenuItem("/reports", "Reports"),
    MenuItem("/settings", "Settings"),
)

FACULTY_MENU = (
    MenuItem("/dashboard", "My Dashboard"),
    MenuItem("/my-courses", "My Courses"),
    MenuItem("/my-feedback", "My Feedback"),
    MenuItem("/my-metrics", "My Metrics"),
    MenuItem("/settings", "Settings"),
)

DEFAULT_MENU = (
    MenuItem("/dashboard", "Dashboard"),
    MenuItem("/settings", "Settings"),
)


def menu_for_role(role: Optional[Role]) -> tuple:
    """Static navigation menu for a role tag."""
    if role == Role.ADMIN:
        return ADMIN_MENU
    if role == Role.FACULTY:
        return FACULTY_MENU
    return DEFAULT_MENU


class SessionContext:
    """Resolved identity state for one authenticated session."""

    def __init__(self):
        self.session: Optional[AuthSession] = None
        self.identity_id: Optional[str] = None
        self.role: Optional[Role] = None
        self.profile: Optional[Profile] = None
        self.faculty_profile: Optional[FacultyProfile] = None
        self.resolved = False

    @property
    def is_authenticated(self) -> bool:
        return self.identity_id is not None

    def resolve(self, db: Session, identity_id: str) -> "SessionContext":
        """Look up role, profile and faculty profile for an identity."""
        self.identity_id = identity_id
        try:
            role_row = db.query(UserRole).filter(UserRole.user_id == identity_id).first()
            profile = db.query(Profile).filter(Profile.user_id == identity_id).first()
            faculty_profile = None
            if role_row and role_row.role == Role.FACULTY and profile:
                faculty_profile = db.query(FacultyProfile).filter(
                    FacultyProfile.profile_id == profile.id
                ).first()
        except SQLAlchemyError as e:
            log_with_context(logger, "ERROR", "Role resolution failed: {}".format(e),
                             context={"identity_id": identity_id})
            return self

        self.role = role_row.role if role_row else None
        self.profile = profile
        self.faculty_profile = faculty_profile
        self.resolved = True

        log_with_context(logger, "DEBUG", "Resolved role {}".format(self.role.value if self.role else "none"),
                         context={"identity_id": identity_id})
        return self

    def clear(self):
        """Sign-out teardown: forget everything about the identity."""
        self.session = None
        self.identity_id = None
        self.role = None
        self.profile = None
        self.faculty_profile = None
        self.resolved = False

    def handle_auth_event(self, db: Session, event: AuthEvent, session: Optional[AuthSession]):
        if event == AuthEvent.SIGNED_IN and session is not None:
            self.session = session
            self.resolve(db, session.identity_id)
        elif event == AuthEvent.SIGNED_OUT:
            self.clear()

    def bind(self, stream: AuthEventStream, db: Session) -> Callable[[], None]:
        """Follow session changes published on a stream; returns the unsubscribe function."""
        return stream.subscribe(lambda event, session: self.handle_auth_event(db, event, session))

    def allows(self, allowed_roles: Optional[Iterable[Role]] = None) -> bool:
        """
        Access check for a protected operation.

        An empty or missing role set admits any authenticated identity;
        otherwise the resolved role must be a member of the set.
        """
        if not self.is_authenticated:
            return False
        allowed = set(allowed_roles or ())
        if not allowed:
            return True
        return self.role is not None and self.role in allowed

    @property
    def menu(self) -> tuple:
        return menu_for_role(self.role)
