"""
Department model - academic departments identified by a unique short code.

Courses and faculty profiles may reference a department. Deleting a
department that is still referenced is rejected by the database.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Text, DateTime, String
from sqlalchemy.orm import relationship
from academic_quality.database import Base


class Department(Base):
    """SQLAlchemy model for the departments table."""
    __tablename__ = "departments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique department identifier")
    name = Column(Text, nullable=False,
                  doc="Department name")
    code = Column(Text, nullable=False, unique=True,
                  doc="Uppercase short code, unique across departments")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # passive_deletes="all": never nullify children, let the FK reject the delete
    courses = relationship("Course", back_populates="department", passive_deletes="all")
    faculty_members = relationship("FacultyProfile", back_populates="department",
                                   passive_deletes="all")

    def __repr__(self):
        return f"<Department(id={self.id}, code='{self.code}')>"
