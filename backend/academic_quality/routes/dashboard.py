"""
Dashboard API route - summary counts for any signed-in identity.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from academic_quality.database import get_db
from academic_quality.dependencies import require_roles
from academic_quality.models.course import Course
from academic_quality.models.department import Department
from academic_quality.models.faculty_profile import FacultyProfile
from academic_quality.models.student_feedback import StudentFeedback
from academic_quality.services.aggregation import average_overall
from academic_quality.services.entity_store import count_rows

router = APIRouter()


@router.get("/api/dashboard/stats", dependencies=[Depends(require_roles())])
def dashboard_stats(db: Session = Depends(get_db)):
    ratings = db.query(StudentFeedback.overall_rating).all()
    return {
        "total_faculty": count_rows(db, FacultyProfile),
        "total_courses": count_rows(db, Course),
        "total_departments": count_rows(db, Department),
        "total_feedback": len(ratings),
        "average_rating": average_overall(ratings),
    }
