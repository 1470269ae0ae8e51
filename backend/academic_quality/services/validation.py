"""
Shared field validation.

Each *_errors function inspects a payload and returns a field -> message
map (empty when valid). The request layer calls them to report errors to
the caller and the entity store calls them again before every write, so
bounds are never enforced by the caller alone.
"""

from email_validator import EmailNotValidError, validate_email

from academic_quality.config import (
    MIN_RATING, MAX_RATING, MIN_SEMESTER, MAX_SEMESTER, MIN_CREDITS, MAX_CREDITS,
    MAX_COMMENT_LENGTH, MIN_PASSWORD_LENGTH, MAX_NAME_LENGTH, RATING_CATEGORIES,
)
from academic_quality.errors import FieldValidationError


def normalize_code(code) -> str:
    """Department and course codes are stored stripped and uppercased."""
    return (code or "").strip().upper()


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _int_in_range(value, low: int, high: int) -> bool:
    # bool is an int subclass; True must not pass as 1
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return low <= value <= high


def raise_if_errors(errors: dict):
    if errors:
        raise FieldValidationError(errors)


def department_errors(data: dict) -> dict:
    errors = {}
    if _blank(data.get("name")):
        errors["name"] = "Department name is required"
    if _blank(data.get("code")):
        errors["code"] = "Department code is required"
    return errors


def course_errors(data: dict) -> dict:
    errors = {}
    if _blank(data.get("code")):
        errors["code"] = "Course code is required"
    if _blank(data.get("name")):
        errors["name"] = "Course name is required"
    if not _int_in_range(data.get("semester"), MIN_SEMESTER, MAX_SEMESTER):
        errors["semester"] = f"Semester must be between {MIN_SEMESTER} and {MAX_SEMESTER}"
    if not _int_in_range(data.get("credits"), MIN_CREDITS, MAX_CREDITS):
        errors["credits"] = f"Credits must be between {MIN_CREDITS} and {MAX_CREDITS}"
    if _blank(data.get("academic_year")):
        errors["academic_year"] = "Academic year is required"
    return errors


def faculty_errors(data: dict) -> dict:
    errors = {}
    if _blank(data.get("employee_id")):
        errors["employee_id"] = "Employee ID is required"
    if _blank(data.get("designation")):
        errors["designation"] = "Designation is required"
    experience = data.get("experience_years", 0)
    if isinstance(experience, bool) or not isinstance(experience, int) or experience < 0:
        errors["experience_years"] = "Experience must be a non-negative whole number"
    return errors


def rating_errors(ratings: dict) -> dict:
    """A rating of 0 (or missing) means the category was never set."""
    errors = {}
    for field, _label in RATING_CATEGORIES:
        value = ratings.get(field) or 0
        if value == 0:
            errors[field] = "Please provide a rating"
        elif not _int_in_range(value, MIN_RATING, MAX_RATING):
            errors[field] = f"Rating must be between {MIN_RATING} and {MAX_RATING}"
    return errors


def feedback_errors(course_id, ratings: dict, comments) -> dict:
    errors = rating_errors(ratings)
    if _blank(course_id):
        errors["course_id"] = "Please select a course"
    if comments and len(comments) > MAX_COMMENT_LENGTH:
        errors["comments"] = f"Comments must be at most {MAX_COMMENT_LENGTH} characters"
    return errors


def name_errors(first_name, last_name) -> dict:
    errors = {}
    for field, value, label in (("first_name", first_name, "First name"),
                                ("last_name", last_name, "Last name")):
        if _blank(value):
            errors[field] = f"{label} is required"
        elif len(value.strip()) > MAX_NAME_LENGTH:
            errors[field] = f"{label} must be at most {MAX_NAME_LENGTH} characters"
    return errors


def email_is_valid(email) -> bool:
    """Same syntax rules as the API's EmailStr fields; no DNS lookup."""
    if _blank(email):
        return False
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def sign_up_errors(email, password, first_name, last_name) -> dict:
    errors = name_errors(first_name, last_name)
    if not email_is_valid(email):
        errors["email"] = "Please enter a valid email address"
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return errors
