"""
Identity and AuthSession models - the authentication service's own tables.

An identity is an email/password principal. Each signed-in session is
backed by an auth_sessions row so that sign-out can invalidate its token.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from academic_quality.database import Base


class Identity(Base):
    """SQLAlchemy model for the identities table."""
    __tablename__ = "identities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique identity identifier")
    email = Column(Text, nullable=False, unique=True,
                   doc="Lowercased sign-in email")
    password_hash = Column(Text, nullable=False,
                           doc="bcrypt hash of the password")
    email_confirmed_at = Column(DateTime, nullable=True,
                                doc="When the email was verified (NULL while pending)")
    verification_token = Column(Text, nullable=True, unique=True,
                                doc="One-time email verification token")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    profile = relationship("Profile", back_populates="identity", uselist=False,
                           passive_deletes="all")
    role_assignment = relationship("UserRole", back_populates="identity", uselist=False,
                                   passive_deletes="all")
    sessions = relationship("AuthSession", back_populates="identity", passive_deletes="all")

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    def __repr__(self):
        return f"<Identity(id={self.id}, email='{self.email}')>"


class AuthSession(Base):
    """
    SQLAlchemy model for the auth_sessions table.

    A session is valid while it is not revoked and not expired.
    """
    __tablename__ = "auth_sessions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Session identifier, embedded in the access token as 'sid'")
    identity_id = Column(String(36), ForeignKey("identities.id", ondelete="RESTRICT"),
                         nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True,
                        doc="Set on sign-out")

    identity = relationship("Identity", back_populates="sessions")

    __table_args__ = (
        Index("ix_auth_sessions_identity_id", "identity_id"),
    )

    def is_active(self, now: datetime) -> bool:
        expires_at = self.expires_at
        # SQLite hands back naive datetimes; every stored stamp is UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return self.revoked_at is None and expires_at > now

    def __repr__(self):
        return f"<AuthSession(id={self.id}, identity={self.identity_id}, revoked={self.revoked_at is not None})>"
