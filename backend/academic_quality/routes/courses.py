"""
Course API routes - admin CRUD with code/name/department search.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from academic_quality.config import DEFAULT_ACADEMIC_YEAR
from academic_quality.database import get_db
from academic_quality.dependencies import require_roles
from academic_quality.models.profile import Role
from academic_quality.serializers import serialize_course
from academic_quality.services import entity_store

router = APIRouter()

admin_only = require_roles(Role.ADMIN)


class CourseRequest(BaseModel):
    """Bounds (semester 1-8, credits 1-6) are checked by the store's shared validator."""
    code: str
    name: str
    semester: int = 1
    academic_year: str = DEFAULT_ACADEMIC_YEAR
    credits: int = 3
    department_id: Optional[str] = None
    faculty_id: Optional[str] = None


@router.get("/api/courses", dependencies=[Depends(admin_only)])
def list_courses(search: Optional[str] = Query(None, description="Search code, name or department"),
                 db: Session = Depends(get_db)):
    courses = entity_store.list_courses(db, search)
    return {"data": [serialize_course(c) for c in courses], "total": len(courses)}


@router.post("/api/courses", status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(admin_only)])
def create_course(request: CourseRequest, db: Session = Depends(get_db)):
    return serialize_course(entity_store.create_course(db, request.model_dump()))


@router.put("/api/courses/{course_id}", dependencies=[Depends(admin_only)])
def update_course(course_id: str, request: CourseRequest, db: Session = Depends(get_db)):
    return serialize_course(entity_store.update_course(db, course_id, request.model_dump()))


@router.delete("/api/courses/{course_id}", dependencies=[Depends(admin_only)])
def delete_course(course_id: str, db: Session = Depends(get_db)):
    entity_store.delete_course(db, course_id)
    return {"message": "Course deleted successfully", "id": course_id}
