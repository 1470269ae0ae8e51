"""
Profile and UserRole models.

Every identity has exactly one profile, created at sign-up. Role
assignment is a separate table with at most one row per identity;
no row means no elevated privilege.
"""

import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, ForeignKey, String, Enum
from sqlalchemy.orm import relationship
from academic_quality.database import Base


class Role(str, enum.Enum):
    """Elevated roles an identity can hold."""
    ADMIN = "admin"
    FACULTY = "faculty"


class Profile(Base):
    """SQLAlchemy model for the profiles table."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("identities.id", ondelete="RESTRICT"),
                     nullable=False, unique=True,
                     doc="Owning identity (one profile per identity)")
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    identity = relationship("Identity", back_populates="profile")
    faculty_profile = relationship("FacultyProfile", back_populates="profile", uselist=False,
                                   passive_deletes="all")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Profile(id={self.id}, name='{self.full_name}')>"


class UserRole(Base):
    """SQLAlchemy model for the user_roles table."""
    __tablename__ = "user_roles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("identities.id", ondelete="RESTRICT"),
                     nullable=False, unique=True,
                     doc="At most one role row per identity")
    role = Column(Enum(Role, name="app_role", values_callable=lambda e: [m.value for m in e]),
                  nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    identity = relationship("Identity", back_populates="role_assignment")

    def __repr__(self):
        return f"<UserRole(user={self.user_id}, role='{self.role.value}')>"
