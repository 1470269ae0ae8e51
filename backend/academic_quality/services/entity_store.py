"""
Entity Store - CRUD over departments, courses, faculty profiles, profiles,
role assignments, feedback and quality metrics.

Rules every write follows:
1. Fields are checked with the shared validators before anything is sent
2. Codes are stripped and uppercased
3. One write = one commit; there is no client-side multi-step transaction
4. Integrity failures (duplicate code, delete blocked by dependent rows)
   roll back and surface as StoreError carrying the backend message

Deletes are single-row by id with no cascade and no pre-check: the
foreign keys are ON DELETE RESTRICT, so a referenced row stays put.
"""

import time
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from academic_quality.errors import FieldValidationError, NotFoundError, StoreError
from academic_quality.logging_config import get_logger, log_with_context
from academic_quality.models.course import Course
from academic_quality.models.department import Department
from academic_quality.models.faculty_profile import FacultyProfile
from academic_quality.models.identity import Identity
from academic_quality.models.profile import Profile, Role, UserRole
from academic_quality.models.quality_metric import QualityMetric
from academic_quality.models.student_feedback import StudentFeedback
from academic_quality.services.validation import (
    course_errors, department_errors, faculty_errors, name_errors,
    normalize_code, raise_if_errors,
)

logger = get_logger("db")


# ── Helpers ──────────────────────────────────────────────────

def _search_clause(search: Optional[str], *columns):
    """Case-insensitive substring match OR-combined across columns."""
    if not search or not search.strip():
        return None
    term = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = "%{}%".format(term)
    return or_(*[col.ilike(pattern, escape="\\") for col in columns])


def _optional_id(value) -> Optional[str]:
    """Blank link ids mean 'unassigned'."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


def commit_or_raise(db: Session, action: str, entity: str, context: dict = None):
    """Commit the pending write, converting any database failure to StoreError."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        reason = str(e.orig) if e.orig is not None else str(e)
        log_with_context(logger, "WARNING", "Failed to {} {}: {}".format(action, entity, reason),
                         context=context)
        raise StoreError("Failed to {} {}: {}".format(action, entity, reason))
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to {} {}: {}".format(action, entity, e),
                         context=context)
        raise StoreError("Failed to {} {}".format(action, entity))


def _delete_by_id(db: Session, model, row_id: str, entity: str):
    start_time = time.time()
    try:
        deleted = db.query(model).filter(model.id == row_id).delete(synchronize_session=False)
    except IntegrityError as e:
        db.rollback()
        reason = str(e.orig) if e.orig is not None else str(e)
        log_with_context(logger, "WARNING", "Delete of {} blocked: {}".format(entity, reason),
                         context={"id": row_id})
        raise StoreError("Failed to delete {}: {}".format(entity, reason))
    except SQLAlchemyError as e:
        db.rollback()
        log_with_context(logger, "ERROR", "Failed to delete {}: {}".format(entity, e),
                         context={"id": row_id})
        raise StoreError("Failed to delete {}".format(entity))
    if not deleted:
        db.rollback()
        raise NotFoundError(entity.capitalize())
    commit_or_raise(db, "delete", entity, {"id": row_id})

    log_with_context(logger, "INFO", "Deleted {}".format(entity),
                     context={"id": row_id},
                     extra_data={"duration_ms": round((time.time() - start_time) * 1000, 2)})


def count_rows(db: Session, model) -> int:
    """Count rows of a table without loading them."""
    return db.query(func.count(model.id)).scalar() or 0


# ── Departments ──────────────────────────────────────────────

def list_departments(db: Session, search: Optional[str] = None) -> list:
    """
    Departments ordered by name, each as (department, course_count, faculty_count).
    """
    course_count = (
        select(func.count(Course.id))
        .where(Course.department_id == Department.id)
        .correlate(Department)
        .scalar_subquery()
    )
    faculty_count = (
        select(func.count(FacultyProfile.id))
        .where(FacultyProfile.department_id == Department.id)
        .correlate(Department)
        .scalar_subquery()
    )
    query = db.query(Department, course_count, faculty_count)
    clause = _search_clause(search, Department.name, Department.code)
    if clause is not None:
        query = query.filter(clause)
    return [tuple(row) for row in query.order_by(Department.name).all()]


def get_department(db: Session, department_id: str) -> Department:
    department = db.query(Department).filter(Department.id == department_id).first()
    if not department:
        raise NotFoundError("Department")
    return department


def _department_values(data: dict) -> dict:
    raise_if_errors(department_errors(data))
    return {"name": data["name"].strip(), "code": normalize_code(data["code"])}


def create_department(db: Session, data: dict) -> Department:
    department = Department(**_department_values(data))
    db.add(department)
    commit_or_raise(db, "create", "department", {"code": department.code})
    db.refresh(department)
    log_with_context(logger, "INFO", "Created department {}".format(department.code),
                     context={"department_id": department.id})
    return department


def update_department(db: Session, department_id: str, data: dict) -> Department:
    values = _department_values(data)
    department = get_department(db, department_id)
    department.name = values["name"]
    department.code = values["code"]
    commit_or_raise(db, "update", "department", {"department_id": department_id})
    db.refresh(department)
    return department


def delete_department(db: Session, department_id: str):
    _delete_by_id(db, Department, department_id, "department")


# ── Courses ──────────────────────────────────────────────────

def _course_query(db: Session):
    return db.query(Course).options(
        joinedload(Course.department),
        joinedload(Course.faculty).joinedload(FacultyProfile.profile),
    )


def list_courses(db: Session, search: Optional[str] = None) -> list:
    """Courses ordered by code with department and faculty expanded."""
    query = _course_query(db)
    clause = _search_clause(search, Course.code, Course.name, Department.name)
    if clause is not None:
        query = query.outerjoin(Department, Course.department_id == Department.id).filter(clause)
    return query.order_by(Course.code).all()


def list_course_options(db: Session) -> list:
    """Courses ordered by name, for the feedback course picker."""
    return _course_query(db).order_by(Course.name).all()


def get_course(db: Session, course_id: str) -> Course:
    course = _course_query(db).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course")
    return course


def _course_values(data: dict) -> dict:
    raise_if_errors(course_errors(data))
    return {
        "code": normalize_code(data["code"]),
        "name": data["name"].strip(),
        "semester": data["semester"],
        "academic_year": data["academic_year"].strip(),
        "credits": data["credits"],
        "department_id": _optional_id(data.get("department_id")),
        "faculty_id": _optional_id(data.get("faculty_id")),
    }


def create_course(db: Session, data: dict) -> Course:
    course = Course(**_course_values(data))
    db.add(course)
    commit_or_raise(db, "create", "course", {"code": course.code})
    log_with_context(logger, "INFO", "Created course {}".format(course.code),
                     context={"course_id": course.id})
    return get_course(db, course.id)


def update_course(db: Session, course_id: str, data: dict) -> Course:
    values = _course_values(data)
    course = get_course(db, course_id)
    for field, value in values.items():
        setattr(course, field, value)
    commit_or_raise(db, "update", "course", {"course_id": course_id})
    return get_course(db, course_id)


def delete_course(db: Session, course_id: str):
    _delete_by_id(db, Course, course_id, "course")


def list_courses_for_faculty(db: Session, faculty_id: str) -> list:
    return _course_query(db).filter(Course.faculty_id == faculty_id).order_by(Course.code).all()


# ── Faculty profiles ─────────────────────────────────────────

def _faculty_query(db: Session):
    return db.query(FacultyProfile).options(
        joinedload(FacultyProfile.profile),
        joinedload(FacultyProfile.department),
    )


def list_faculty(db: Session, search: Optional[str] = None) -> list:
    """Faculty ordered by employee id with profile and department expanded."""
    query = _faculty_query(db)
    clause = _search_clause(search, Profile.first_name, Profile.last_name,
                            FacultyProfile.employee_id, Department.name)
    if clause is not None:
        query = (query.join(Profile, FacultyProfile.profile_id == Profile.id)
                 .outerjoin(Department, FacultyProfile.department_id == Department.id)
                 .filter(clause))
    return query.order_by(FacultyProfile.employee_id).all()


def get_faculty(db: Session, faculty_id: str) -> FacultyProfile:
    faculty = _faculty_query(db).filter(FacultyProfile.id == faculty_id).first()
    if not faculty:
        raise NotFoundError("Faculty profile")
    return faculty


def _faculty_values(data: dict) -> dict:
    raise_if_errors(faculty_errors(data))
    return {
        "employee_id": data["employee_id"].strip(),
        "designation": data["designation"].strip(),
        "department_id": _optional_id(data.get("department_id")),
        "qualification": data.get("qualification") or None,
        "specialization": data.get("specialization") or None,
        "experience_years": data.get("experience_years", 0),
        "date_of_joining": data.get("date_of_joining"),
    }


def create_faculty(db: Session, data: dict) -> FacultyProfile:
    """Attach employment attributes to a profile whose identity holds the faculty role."""
    values = _faculty_values(data)
    profile_id = data.get("profile_id")
    profile = db.query(Profile).filter(Profile.id == profile_id).first() if profile_id else None
    if not profile:
        raise FieldValidationError({"profile_id": "Please select a registered user"})
    role_row = db.query(UserRole).filter(UserRole.user_id == profile.user_id).first()
    if not role_row or role_row.role != Role.FACULTY:
        raise FieldValidationError({"profile_id": "User must hold the faculty role"})

    faculty = FacultyProfile(profile_id=profile.id, **values)
    db.add(faculty)
    commit_or_raise(db, "create", "faculty profile", {"profile_id": profile.id})
    log_with_context(logger, "INFO", "Created faculty profile {}".format(faculty.employee_id),
                     context={"faculty_id": faculty.id})
    return get_faculty(db, faculty.id)


def update_faculty(db: Session, faculty_id: str, data: dict) -> FacultyProfile:
    values = _faculty_values(data)
    faculty = get_faculty(db, faculty_id)
    for field, value in values.items():
        setattr(faculty, field, value)
    commit_or_raise(db, "update", "faculty profile", {"faculty_id": faculty_id})
    return get_faculty(db, faculty_id)


def delete_faculty(db: Session, faculty_id: str):
    _delete_by_id(db, FacultyProfile, faculty_id, "faculty profile")


# ── Profiles & roles ─────────────────────────────────────────

def get_profile(db: Session, profile_id: str) -> Profile:
    profile = db.query(Profile).filter(Profile.id == profile_id).first()
    if not profile:
        raise NotFoundError("Profile")
    return profile


def update_profile(db: Session, profile_id: str, data: dict) -> Profile:
    """Update the editable profile fields. Email is owned by the identity."""
    raise_if_errors(name_errors(data.get("first_name"), data.get("last_name")))
    profile = get_profile(db, profile_id)
    profile.first_name = data["first_name"].strip()
    profile.last_name = data["last_name"].strip()
    profile.phone = data.get("phone") or None
    profile.avatar_url = data.get("avatar_url") or None
    commit_or_raise(db, "update", "profile", {"profile_id": profile_id})
    db.refresh(profile)
    return profile


def list_profiles(db: Session, search: Optional[str] = None) -> list:
    """Profiles with their role row, for picking users to promote."""
    query = db.query(Profile, UserRole.role).outerjoin(UserRole, UserRole.user_id == Profile.user_id)
    clause = _search_clause(search, Profile.first_name, Profile.last_name, Profile.email)
    if clause is not None:
        query = query.filter(clause)
    return [tuple(row) for row in query.order_by(Profile.last_name, Profile.first_name).all()]


def _ensure_not_faculty_bound(db: Session, user_id: str):
    """A faculty profile may only exist while its identity holds the faculty role."""
    bound = (db.query(FacultyProfile.id)
             .join(Profile, FacultyProfile.profile_id == Profile.id)
             .filter(Profile.user_id == user_id)
             .first())
    if bound:
        raise FieldValidationError({"role": "Delete the faculty profile before changing this role"})


def assign_role(db: Session, user_id: str, role: Role) -> UserRole:
    """Give an identity exactly one role, replacing any previous assignment."""
    if not db.query(Identity.id).filter(Identity.id == user_id).first():
        raise NotFoundError("User")

    role_row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    if role_row and role_row.role == role:
        return role_row
    if role_row:
        if role_row.role == Role.FACULTY:
            _ensure_not_faculty_bound(db, user_id)
        role_row.role = role
    else:
        role_row = UserRole(user_id=user_id, role=role, created_at=datetime.now(timezone.utc))
        db.add(role_row)
    commit_or_raise(db, "assign", "role", {"user_id": user_id})
    db.refresh(role_row)

    log_with_context(logger, "INFO", "Assigned role {}".format(role.value),
                     context={"user_id": user_id})
    return role_row


def revoke_role(db: Session, user_id: str):
    role_row = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    if not role_row:
        raise NotFoundError("Role assignment")
    if role_row.role == Role.FACULTY:
        _ensure_not_faculty_bound(db, user_id)
    _delete_by_id(db, UserRole, role_row.id, "role assignment")


# ── Feedback ─────────────────────────────────────────────────

def _feedback_query(db: Session):
    return db.query(StudentFeedback).options(
        joinedload(StudentFeedback.course)
        .joinedload(Course.faculty)
        .joinedload(FacultyProfile.profile)
    )


def list_feedback(db: Session, search: Optional[str] = None,
                  semester: Optional[str] = None, faculty_id: Optional[str] = None) -> list:
    """Feedback newest first, filtered by course code/name/comments and semester."""
    query = _feedback_query(db).join(Course, StudentFeedback.course_id == Course.id)
    clause = _search_clause(search, Course.code, Course.name, StudentFeedback.comments)
    if clause is not None:
        query = query.filter(clause)
    if semester and semester != "all":
        query = query.filter(StudentFeedback.semester == semester)
    if faculty_id:
        query = query.filter(Course.faculty_id == faculty_id)
    return query.order_by(StudentFeedback.submitted_at.desc()).all()


def list_feedback_semesters(db: Session, faculty_id: Optional[str] = None) -> list:
    query = db.query(StudentFeedback.semester).distinct()
    if faculty_id:
        query = query.join(Course, StudentFeedback.course_id == Course.id).filter(
            Course.faculty_id == faculty_id)
    return sorted(row[0] for row in query.all())


def create_feedback(db: Session, feedback: StudentFeedback) -> StudentFeedback:
    """Insert one feedback row. Rows are never updated or deleted."""
    db.add(feedback)
    commit_or_raise(db, "submit", "feedback", {"course_id": feedback.course_id})
    db.refresh(feedback)
    return feedback


# ── Quality metrics (read-only) ──────────────────────────────

def list_quality_metrics(db: Session, faculty_id: Optional[str] = None,
                         semester: Optional[str] = None,
                         academic_year: Optional[str] = None) -> list:
    query = db.query(QualityMetric).options(
        joinedload(QualityMetric.course),
        joinedload(QualityMetric.faculty).joinedload(FacultyProfile.profile),
    )
    if faculty_id:
        query = query.filter(QualityMetric.faculty_id == faculty_id)
    if semester:
        query = query.filter(QualityMetric.semester == semester)
    if academic_year:
        query = query.filter(QualityMetric.academic_year == academic_year)
    return query.order_by(QualityMetric.academic_year.desc(), QualityMetric.semester).all()
