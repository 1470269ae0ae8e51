"""
FacultyProfile model - employment attributes of a faculty member.

Extends a Profile one-to-one. Exists only for identities holding the
faculty role. The department link is optional.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, Date, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from academic_quality.config import DEFAULT_DESIGNATION
from academic_quality.database import Base


class FacultyProfile(Base):
    """SQLAlchemy model for the faculty_profiles table."""
    __tablename__ = "faculty_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    profile_id = Column(String(36), ForeignKey("profiles.id", ondelete="RESTRICT"),
                        nullable=False, unique=True)
    employee_id = Column(Text, nullable=False, unique=True)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="RESTRICT"),
                           nullable=True,
                           doc="Optional; NULL renders as unassigned")
    designation = Column(Text, nullable=False, default=DEFAULT_DESIGNATION)
    qualification = Column(Text, nullable=True)
    specialization = Column(Text, nullable=True)
    experience_years = Column(Integer, nullable=False, default=0)
    date_of_joining = Column(Date, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    profile = relationship("Profile", back_populates="faculty_profile")
    department = relationship("Department", back_populates="faculty_members")
    courses = relationship("Course", back_populates="faculty", passive_deletes="all")
    quality_metrics = relationship("QualityMetric", back_populates="faculty",
                                   passive_deletes="all")

    __table_args__ = (
        Index("ix_faculty_profiles_department_id", "department_id"),
    )

    def __repr__(self):
        return f"<FacultyProfile(id={self.id}, employee_id='{self.employee_id}')>"
