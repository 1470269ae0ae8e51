from academic_quality.models.identity import Identity, AuthSession
from academic_quality.models.profile import Profile, UserRole, Role
from academic_quality.models.department import Department
from academic_quality.models.faculty_profile import FacultyProfile
from academic_quality.models.course import Course
from academic_quality.models.student_feedback import StudentFeedback
from academic_quality.models.quality_metric import QualityMetric

__all__ = [
    "Identity", "AuthSession", "Profile", "UserRole", "Role", "Department",
    "FacultyProfile", "Course", "StudentFeedback", "QualityMetric",
]
