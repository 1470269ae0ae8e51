"""
Department API routes - admin CRUD with name/code search.
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
from academic_quality.serializers import serialize_department
from academic_quality.services import entity_store

router = APIRouter()
logger = get_logger("http")

admin_only = require_roles(Role.ADMIN)


class DepartmentRequest(BaseModel):
    name: str
    code: str


@router.get("/api/departments", dependencies=[Depends(admin_only)])
def list_departments(search: Optional[str] = Query(None, description="Search name or code"),
                     db: Session = Depends(get_db)):
    """Departments ordered by name, with course and faculty counts."""
    start_time = time.time()
    rows = entity_store.list_departments(db, search)

    log_with_context(logger, "INFO", "Listed {} departments".format(len(rows)),
                     extra_data={"duration_ms": round((time.time() - start_time) * 1000, 2)})
    return {
        "data": [serialize_department(d, course_count, faculty_count)
                 for d, course_count, faculty_count in rows],
        "total": len(rows),
    }


@router.post("/api/departments", status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(admin_only)])
def create_department(request: DepartmentRequest, db: Session = Depends(get_db)):
    department = entity_store.create_department(db, request.model_dump())
    return serialize_department(department)


@router.put("/api/departments/{department_id}", dependencies=[Depends(admin_only)])
def update_department(department_id: str, request: DepartmentRequest,
                      db: Session = Depends(get_db)):
    department = entity_store.update_department(db, department_id, request.model_dump())
    return serialize_department(department)


@router.delete("/api/departments/{department_id}", dependencies=[Depends(admin_only)])
def delete_department(department_id: str, db: Session = Depends(get_db)):
    """Delete one department. Rejected while courses or faculty still reference it."""
    entity_store.delete_department(db, department_id)
    return {"message": "Department deleted successfully", "id": department_id}
