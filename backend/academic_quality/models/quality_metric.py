"""
QualityMetric model - precomputed feedback aggregates.

One row per (faculty, course, semester, academic year). Rows are written
only by the refresh batch process; the API exposes them read-only.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, Float, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from academic_quality.database import Base


class QualityMetric(Base):
    """SQLAlchemy model for the quality_metrics table."""
    __tablename__ = "quality_metrics"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    faculty_id = Column(String(36), ForeignKey("faculty_profiles.id", ondelete="RESTRICT"),
                        nullable=False)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="RESTRICT"), nullable=True)
    semester = Column(Text, nullable=False)
    academic_year = Column(Text, nullable=False)
    teaching_score = Column(Float, nullable=True)
    content_score = Column(Float, nullable=True)
    communication_score = Column(Float, nullable=True)
    punctuality_score = Column(Float, nullable=True)
    availability_score = Column(Float, nullable=True)
    overall_score = Column(Float, nullable=True)
    total_responses = Column(Integer, nullable=False, default=0)
    calculated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    faculty = relationship("FacultyProfile", back_populates="quality_metrics")
    course = relationship("Course", back_populates="quality_metrics")

    __table_args__ = (
        UniqueConstraint("faculty_id", "course_id", "semester", "academic_year",
                         name="uq_quality_metrics_scope"),
    )

    def __repr__(self):
        return (f"<QualityMetric(faculty={self.faculty_id}, course={self.course_id}, "
                f"semester='{self.semester}', overall={self.overall_score})>")
