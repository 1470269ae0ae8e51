"""
StudentFeedback model - one anonymous rating submission for a course.

The row is linked only to a course. It carries no identity reference;
the anonymous_token is random and exists solely for row uniqueness.
Semester and academic year are snapshots taken at submission time.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, Integer, DateTime, ForeignKey, String, Index, CheckConstraint
from sqlalchemy.orm import relationship
from academic_quality.database import Base

RATING_COLUMNS = ("teaching_quality", "course_content", "communication",
                  "punctuality", "availability", "overall_rating")


class StudentFeedback(Base):
    """
    SQLAlchemy model for the student_feedback table.

    Create-only: there is no update or delete path for feedback rows.
    """
    __tablename__ = "student_feedback"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False)
    teaching_quality = Column(Integer, nullable=False)
    course_content = Column(Integer, nullable=False)
    communication = Column(Integer, nullable=False)
    punctuality = Column(Integer, nullable=False)
    availability = Column(Integer, nullable=False)
    overall_rating = Column(Integer, nullable=False,
                            doc="Half-up rounded mean of the five ratings")
    comments = Column(Text, nullable=True)
    anonymous_token = Column(Text, nullable=False, unique=True)
    semester = Column(Text, nullable=False,
                      doc="Snapshot of the course semester, e.g. 'Semester 3'")
    academic_year = Column(Text, nullable=False)
    submitted_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    course = relationship("Course", back_populates="feedback")

    __table_args__ = tuple(
        CheckConstraint(f"{col} BETWEEN 1 AND 5", name=f"ck_student_feedback_{col}")
        for col in RATING_COLUMNS
    ) + (
        Index("ix_student_feedback_course_id", "course_id"),
        Index("ix_student_feedback_semester", "semester"),
    )

    def __repr__(self):
        return f"<StudentFeedback(id={self.id}, course={self.course_id}, overall={self.overall_rating})>"
