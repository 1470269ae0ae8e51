"""
Quality metric and faculty self-service routes.

Quality metrics are read-only here; they are produced by the refresh
batch process. Faculty members see only their own courses, feedback
and metrics.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from academic_quality.database import get_db
from academic_quality.dependencies import require_roles
from academic_quality.models.profile import Role
from academic_quality.serializers import serialize_course, serialize_quality_metric
from academic_quality.services import entity_store
from academic_quality.services.aggregation import summarize
from academic_quality.services.identity import SessionContext

router = APIRouter()


@router.get("/api/quality-metrics", dependencies=[Depends(require_roles(Role.ADMIN))])
def list_quality_metrics(faculty_id: Optional[str] = Query(None),
                         semester: Optional[str] = Query(None),
                         academic_year: Optional[str] = Query(None),
                         db: Session = Depends(get_db)):
    metrics = entity_store.list_quality_metrics(db, faculty_id=faculty_id, semester=semester,
                                                academic_year=academic_year)
    return {"data": [serialize_quality_metric(m) for m in metrics], "total": len(metrics)}


@router.get("/api/my/courses")
def my_courses(context: SessionContext = Depends(require_roles(Role.FACULTY)),
               db: Session = Depends(get_db)):
    if context.faculty_profile is None:
        return {"data": [], "total": 0}
    courses = entity_store.list_courses_for_faculty(db, context.faculty_profile.id)
    return {"data": [serialize_course(c) for c in courses], "total": len(courses)}


@router.get("/api/my/feedback")
def my_feedback(semester: Optional[str] = Query(None),
                context: SessionContext = Depends(require_roles(Role.FACULTY)),
                db: Session = Depends(get_db)):
    """Aggregates and comments for feedback on the caller's own courses."""
    if context.faculty_profile is None:
        return {**summarize([]), "comments": [], "semesters": []}

    faculty_id = context.faculty_profile.id
    rows = entity_store.list_feedback(db, semester=semester, faculty_id=faculty_id)
    result = summarize(rows)
    result["comments"] = [
        {"course_code": f.course.code, "comments": f.comments, "semester": f.semester}
        for f in rows if f.comments
    ]
    result["semesters"] = entity_store.list_feedback_semesters(db, faculty_id=faculty_id)
    return result


@router.get("/api/my/metrics")
def my_metrics(context: SessionContext = Depends(require_roles(Role.FACULTY)),
               db: Session = Depends(get_db)):
    if context.faculty_profile is None:
        return {"data": [], "total": 0}
    metrics = entity_store.list_quality_metrics(db, faculty_id=context.faculty_profile.id)
    return {"data": [serialize_quality_metric(m) for m in metrics], "total": len(metrics)}
