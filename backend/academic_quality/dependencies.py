"""
FastAPI dependencies for authentication and role gating.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from academic_quality.database import get_db
from academic_quality.models.profile import Role
from academic_quality.services.auth_service import AuthEvent, AuthEventStream, authenticate_token
from academic_quality.services.identity import SessionContext

_bearer = HTTPBearer(auto_error=False)


def get_auth_events(request: Request) -> AuthEventStream:
    """The application's session-change stream."""
    return request.app.state.auth_events


def get_session_context(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer),
    db: Session = Depends(get_db),
) -> SessionContext:
    """Authenticate the bearer token and resolve a fresh SessionContext for it."""
    session = authenticate_token(db, credentials.credentials) if credentials else None
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    context = SessionContext()
    context.handle_auth_event(db, AuthEvent.SIGNED_IN, session)
    return context


def require_roles(*roles: Role):
    """
    Dependency factory gating an operation to a set of roles.

    require_roles() admits any authenticated identity.
    """
    allowed = frozenset(roles)

    def dependency(context: SessionContext = Depends(get_session_context)) -> SessionContext:
        if not context.allows(allowed):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                                detail="You do not have access to this resource")
        return context

    return dependency
