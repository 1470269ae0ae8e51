"""
Faculty API routes - admin CRUD over faculty profiles.

Search matches first name, last name, employee id or department name.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from academic_quality.config import DEFAULT_DESIGNATION
from academic_quality.database import get_db
from academic_quality.dependencies import require_roles
from academic_quality.models.profile import Role
from academic_quality.serializers import serialize_faculty
from academic_quality.services import entity_store

router = APIRouter()

admin_only = require_roles(Role.ADMIN)


class FacultyUpdate(BaseModel):
    employee_id: str
    designation: str = DEFAULT_DESIGNATION
    department_id: Optional[str] = None
    qualification: Optional[str] = None
    specialization: Optional[str] = None
    experience_years: int = 0
    date_of_joining: Optional[date] = None


class FacultyCreate(FacultyUpdate):
    profile_id: str


@router.get("/api/faculty", dependencies=[Depends(admin_only)])
def list_faculty(search: Optional[str] = Query(None, description="Search name, employee ID or department"),
                 db: Session = Depends(get_db)):
    faculty = entity_store.list_faculty(db, search)
    return {"data": [serialize_faculty(f) for f in faculty], "total": len(faculty)}


@router.post("/api/faculty", status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(admin_only)])
def create_faculty(request: FacultyCreate, db: Session = Depends(get_db)):
    return serialize_faculty(entity_store.create_faculty(db, request.model_dump()))


@router.put("/api/faculty/{faculty_id}", dependencies=[Depends(admin_only)])
def update_faculty(faculty_id: str, request: FacultyUpdate, db: Session = Depends(get_db)):
    return serialize_faculty(entity_store.update_faculty(db, faculty_id, request.model_dump()))


@router.delete("/api/faculty/{faculty_id}", dependencies=[Depends(admin_only)])
def delete_faculty(faculty_id: str, db: Session = Depends(get_db)):
    entity_store.delete_faculty(db, faculty_id)
    return {"message": "Faculty member deleted successfully", "id": faculty_id}
