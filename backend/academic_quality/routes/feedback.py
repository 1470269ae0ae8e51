"""
Feedback API routes.

Public (no authentication, no identity recorded):
- GET  /api/feedback/courses   course picker
- POST /api/feedback           anonymous submission

Admin:
- GET  /api/feedback           submitted rows with search and semester filter
- GET  /api/feedback/analysis  category averages and rating distribution
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from academic_quality.database import get_db
from academic_quality.dependencies import require_roles
from academic_quality.logging_config import get_logger, log_with_context
from academic_quality.models.profile import Role
from academic_quality.serializers import serialize_course_option, serialize_feedback
from academic_quality.services import entity_store
from academic_quality.services.aggregation import rating_band, summarize
from academic_quality.services.feedback import submit_feedback

router = APIRouter()
logger = get_logger("http")

admin_only = require_roles(Role.ADMIN)


class FeedbackSubmission(BaseModel):
    """
    Unset ratings default to 0 and are reported as field errors.

    Any overall rating sent by the client is ignored; it is derived
    from the five ratings on the server.
    """
    course_id: Optional[str] = None
    teaching_quality: int = 0
    course_content: int = 0
    communication: int = 0
    punctuality: int = 0
    availability: int = 0
    comments: Optional[str] = None


class FeedbackReceipt(BaseModel):
    message: str
    overall_rating: int
    rating_band: str
    semester: str
    academic_year: str


@router.get("/api/feedback/courses")
def list_feedback_courses(db: Session = Depends(get_db)):
    courses = entity_store.list_course_options(db)
    return {"data": [serialize_course_option(c) for c in courses]}


@router.post("/api/feedback", response_model=FeedbackReceipt, status_code=status.HTTP_201_CREATED)
def submit(request: FeedbackSubmission, db: Session = Depends(get_db)):
    """Record one anonymous feedback submission."""
    ratings = request.model_dump(exclude={"course_id", "comments"})
    feedback = submit_feedback(db, request.course_id, ratings, request.comments)
    return FeedbackReceipt(
        message="Thank you for your anonymous feedback!",
        overall_rating=feedback.overall_rating,
        rating_band=rating_band(feedback.overall_rating),
        semester=feedback.semester,
        academic_year=feedback.academic_year,
    )


@router.get("/api/feedback", dependencies=[Depends(admin_only)])
def list_feedback(search: Optional[str] = Query(None, description="Search course code, name or comments"),
                  semester: Optional[str] = Query(None, description="Exact semester tag, e.g. 'Semester 3'"),
                  db: Session = Depends(get_db)):
    rows = entity_store.list_feedback(db, search=search, semester=semester)
    return {
        "data": [serialize_feedback(f) for f in rows],
        "total": len(rows),
        "semesters": entity_store.list_feedback_semesters(db),
    }


@router.get("/api/feedback/analysis", dependencies=[Depends(admin_only)])
def feedback_analysis(search: Optional[str] = Query(None),
                      semester: Optional[str] = Query(None),
                      db: Session = Depends(get_db)):
    """Aggregate the filtered feedback into chart-ready views."""
    start_time = time.time()
    rows = entity_store.list_feedback(db, search=search, semester=semester)
    result = summarize(rows)
    result["semesters"] = entity_store.list_feedback_semesters(db)

    log_with_context(logger, "INFO", "Feedback analysis over {} rows".format(result["total"]),
                     extra_data={"duration_ms": round((time.time() - start_time) * 1000, 2),
                                 "semester": semester})
    return result
