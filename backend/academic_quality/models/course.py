"""
Course model - a course offering in a given semester and academic year.

Department and assigned faculty are both optional links.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, String, Index
from sqlalchemy.orm import relationship
from academic_quality.database import Base


class Course(Base):
    """SQLAlchemy model for the courses table."""
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique course identifier")
    code = Column(Text, nullable=False, unique=True,
                  doc="Uppercase course code, unique across courses")
    name = Column(Text, nullable=False)
    semester = Column(Integer, nullable=False,
                      doc="Semester number, 1-8")
    academic_year = Column(Text, nullable=False,
                           doc="Academic year tag, e.g. '2024-25'")
    credits = Column(Integer, nullable=False, default=3)
    department_id = Column(String(36), ForeignKey("departments.id", ondelete="RESTRICT"),
                           nullable=True)
    faculty_id = Column(String(36), ForeignKey("faculty_profiles.id", ondelete="RESTRICT"),
                        nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    department = relationship("Department", back_populates="courses")
    faculty = relationship("FacultyProfile", back_populates="courses")
    feedback = relationship("StudentFeedback", back_populates="course", passive_deletes="all")
    quality_metrics = relationship("QualityMetric", back_populates="course", passive_deletes="all")

    __table_args__ = (
        Index("ix_courses_department_id", "department_id"),
        Index("ix_courses_faculty_id", "faculty_id"),
    )

    @property
    def semester_label(self) -> str:
        """Semester tag copied onto feedback rows, e.g. 'Semester 3'."""
        return f"Semester {self.semester}"

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}', semester={self.semester})>"
