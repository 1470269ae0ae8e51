"""
Authentication Service - sign-up, sign-in, sign-out and token checks.

Passwords are hashed with bcrypt. Access tokens are short JWTs carrying
the identity id ('sub') and the backing session id ('sid'); a token is
only honoured while its auth_sessions row is active, so sign-out takes
effect immediately.

Session changes are announced on an AuthEventStream. Listeners (the
session context, the audit log) subscribe to it and receive
(event, session) pairs.
"""

import enum
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import bcrypt as _bcrypt
from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from academic_quality.config import (
    JWT_SECRET_KEY, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, REQUIRE_EMAIL_VERIFICATION,
)
from academic_quality.errors import AuthError, StoreError
from academic_quality.logging_config import get_logger, log_with_context
from academic_quality.models.identity import Identity, AuthSession
from academic_quality.models.profile import Profile
from academic_quality.services.entity_store import commit_or_raise
from academic_quality.services.validation import sign_up_errors, raise_if_errors

logger = get_logger("auth")

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


class AuthEventStream:
    """Fan-out of session change notifications to subscribed listeners."""

    def __init__(self):
        self._listeners: List[Callable] = []

    def subscribe(self, listener: Callable) -> Callable[[], None]:
        """Register a listener(event, session); returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: AuthEvent, session: Optional[AuthSession]):
        for listener in list(self._listeners):
            listener(event, session)


@dataclass
class SignUpResult:
    identity: Identity
    profile: Profile
    status: str
    verification_token: Optional[str] = None


@dataclass
class SignInResult:
    access_token: str
    session: AuthSession
    expires_at: datetime


# ── Password & token helpers ─────────────────────────────────

def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return _bcrypt.hashpw(_password_bytes(password), _bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return _bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))


def create_access_token(identity_id: str, session_id: str, expires_at: datetime) -> str:
    payload = {"sub": identity_id, "sid": session_id, "exp": expires_at}
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT. Returns the payload, or None if invalid or expired."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except (JWTError, ValueError, TypeError):
        return None


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


# ── Operations ───────────────────────────────────────────────

def sign_up(db: Session, email: str, password: str,
            first_name: str, last_name: str) -> SignUpResult:
    """
    Register an identity and its profile in one transaction.

    When email verification is required the identity starts unconfirmed
    and a one-time verification token is issued.
    """
    raise_if_errors(sign_up_errors(email, password, first_name, last_name))
    email = _normalize_email(email)

    if db.query(Identity).filter(Identity.email == email).first():
        raise AuthError("User already registered", status_code=400)

    now = datetime.now(timezone.utc)
    token = secrets.token_urlsafe(32) if REQUIRE_EMAIL_VERIFICATION else None
    identity = Identity(
        email=email,
        password_hash=hash_password(password),
        email_confirmed_at=None if REQUIRE_EMAIL_VERIFICATION else now,
        verification_token=token,
        created_at=now,
    )
    profile = Profile(
        identity=identity,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        email=email,
    )
    db.add_all([identity, profile])
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AuthError("User already registered", status_code=400)
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Sign-up failed: {}".format(e))
        raise StoreError("Sign-up failed")
    db.refresh(identity)
    db.refresh(profile)

    status = "pending_verification" if token else "confirmed"
    log_with_context(logger, "INFO", "Identity registered ({})".format(status),
                     context={"identity_id": identity.id})
    if token:
        # Mail delivery is outside this service; the link is logged for operators
        log_with_context(logger, "DEBUG", "Verification link issued",
                         context={"identity_id": identity.id},
                         extra_data={"path": "/api/auth/verify", "token": token})

    return SignUpResult(identity=identity, profile=profile, status=status,
                        verification_token=token)


def verify_email(db: Session, token: str) -> Identity:
    identity = None
    if token:
        identity = db.query(Identity).filter(Identity.verification_token == token).first()
    if not identity:
        raise AuthError("Invalid or expired verification token", status_code=400)

    identity.email_confirmed_at = datetime.now(timezone.utc)
    identity.verification_token = None
    commit_or_raise(db, "verify", "email", {"identity_id": identity.id})
    db.refresh(identity)

    log_with_context(logger, "INFO", "Email verified", context={"identity_id": identity.id})
    return identity


def sign_in(db: Session, email: str, password: str,
            events: Optional[AuthEventStream] = None) -> SignInResult:
    """Check credentials, open a session and issue its access token."""
    identity = db.query(Identity).filter(Identity.email == _normalize_email(email)).first()
    if not identity or not password or not verify_password(password, identity.password_hash):
        log_with_context(logger, "WARNING", "Sign-in rejected: invalid credentials")
        raise AuthError("Invalid login credentials")
    if not identity.is_confirmed:
        raise AuthError("Email not confirmed", status_code=403)

    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    session = AuthSession(identity_id=identity.id, created_at=now, expires_at=expires_at)
    db.add(session)
    commit_or_raise(db, "open", "session", {"identity_id": identity.id})
    db.refresh(session)

    token = create_access_token(identity.id, session.id, expires_at)
    if events:
        events.publish(AuthEvent.SIGNED_IN, session)
    return SignInResult(access_token=token, session=session, expires_at=expires_at)


def sign_out(db: Session, session: AuthSession,
             events: Optional[AuthEventStream] = None):
    """Revoke the session so its token stops working."""
    if session.revoked_at is None:
        session.revoked_at = datetime.now(timezone.utc)
        commit_or_raise(db, "revoke", "session", {"session_id": session.id})
    if events:
        events.publish(AuthEvent.SIGNED_OUT, session)


def authenticate_token(db: Session, token: str) -> Optional[AuthSession]:
    """Return the active session behind a bearer token, or None."""
    payload = decode_token(token) if token else None
    if not payload or not payload.get("sid"):
        return None

    session = db.query(AuthSession).filter(AuthSession.id == payload["sid"]).first()
    if not session or session.identity_id != payload.get("sub"):
        return None
    if not session.is_active(datetime.now(timezone.utc)):
        return None
    return session
