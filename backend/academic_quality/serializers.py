"""
ORM -> dict serializers shared by the API routes.

Optional links (department, faculty) serialize to None; the display
name helpers fall back to "Unassigned" instead of failing.
"""

UNASSIGNED = "Unassigned"


def _iso(value):
    return value.isoformat() if value else None


def serialize_profile(profile) -> dict:
    if profile is None:
        return None
    return {
        "id": str(profile.id),
        "user_id": str(profile.user_id),
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "email": profile.email,
        "phone": profile.phone,
        "avatar_url": profile.avatar_url,
    }


def serialize_department(department, course_count=None, faculty_count=None) -> dict:
    result = {
        "id": str(department.id),
        "name": department.name,
        "code": department.code,
        "created_at": _iso(department.created_at),
    }
    if course_count is not None:
        result["course_count"] = course_count
    if faculty_count is not None:
        result["faculty_count"] = faculty_count
    return result


def department_ref(department) -> dict:
    if department is None:
        return None
    return {"id": str(department.id), "name": department.name, "code": department.code}


def faculty_name(faculty) -> str:
    if faculty is None or faculty.profile is None:
        return UNASSIGNED
    return faculty.profile.full_name


def faculty_ref(faculty) -> dict:
    if faculty is None:
        return None
    return {
        "id": str(faculty.id),
        "employee_id": faculty.employee_id,
        "name": faculty_name(faculty),
    }


def serialize_faculty(faculty) -> dict:
    return {
        "id": str(faculty.id),
        "profile_id": str(faculty.profile_id),
        "employee_id": faculty.employee_id,
        "designation": faculty.designation,
        "qualification": faculty.qualification,
        "specialization": faculty.specialization,
        "experience_years": faculty.experience_years,
        "date_of_joining": _iso(faculty.date_of_joining),
        "department_id": str(faculty.department_id) if faculty.department_id else None,
        "department": department_ref(faculty.department),
        "department_name": faculty.department.name if faculty.department else UNASSIGNED,
        "profile": serialize_profile(faculty.profile),
    }


def serialize_course(course) -> dict:
    return {
        "id": str(course.id),
        "code": course.code,
        "name": course.name,
        "semester": course.semester,
        "academic_year": course.academic_year,
        "credits": course.credits,
        "department_id": str(course.department_id) if course.department_id else None,
        "faculty_id": str(course.faculty_id) if course.faculty_id else None,
        "department": department_ref(course.department),
        "faculty": faculty_ref(course.faculty),
        "department_name": course.department.name if course.department else UNASSIGNED,
        "faculty_name": faculty_name(course.faculty),
    }


def serialize_course_option(course) -> dict:
    """Public course picker entry: nothing beyond what a student needs to choose."""
    return {
        "id": str(course.id),
        "code": course.code,
        "name": course.name,
        "semester": course.semester,
        "academic_year": course.academic_year,
        "faculty_name": faculty_name(course.faculty),
    }


def serialize_feedback(feedback) -> dict:
    """Admin view of a feedback row. The anonymity token is never exposed."""
    course = feedback.course
    return {
        "id": str(feedback.id),
        "course_id": str(feedback.course_id),
        "course": {
            "id": str(course.id),
            "code": course.code,
            "name": course.name,
            "faculty_name": faculty_name(course.faculty),
        } if course else None,
        "teaching_quality": feedback.teaching_quality,
        "course_content": feedback.course_content,
        "communication": feedback.communication,
        "punctuality": feedback.punctuality,
        "availability": feedback.availability,
        "overall_rating": feedback.overall_rating,
        "comments": feedback.comments,
        "semester": feedback.semester,
        "academic_year": feedback.academic_year,
        "submitted_at": _iso(feedback.submitted_at),
    }


def serialize_quality_metric(metric) -> dict:
    return {
        "id": str(metric.id),
        "faculty_id": str(metric.faculty_id),
        "faculty_name": faculty_name(metric.faculty),
        "course_id": str(metric.course_id) if metric.course_id else None,
        "course_code": metric.course.code if metric.course else None,
        "semester": metric.semester,
        "academic_year": metric.academic_year,
        "teaching_score": metric.teaching_score,
        "content_score": metric.content_score,
        "communication_score": metric.communication_score,
        "punctuality_score": metric.punctuality_score,
        "availability_score": metric.availability_score,
        "overall_score": metric.overall_score,
        "total_responses": metric.total_responses,
        "calculated_at": _iso(metric.calculated_at),
    }
