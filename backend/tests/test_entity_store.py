"""
Tests for the Entity Store access layer
"""
import pytest

from academic_quality.errors import FieldValidationError, NotFoundError, StoreError
from academic_quality.models.course import Course
from academic_quality.models.department import Department
from academic_quality.models.profile import Role, UserRole
from academic_quality.serializers import serialize_course
from academic_quality.services import entity_store
from academic_quality.services.feedback import submit_feedback


def course_data(**overrides):
    data = {
        'code': 'MA101',
        'name': 'Calculus',
        'semester': 1,
        'academic_year': '2024-25',
        'credits': 3,
    }
    data.update(overrides)
    return data


class TestDepartments:
    """Test department CRUD"""

    def test_code_stored_uppercase(self, db_session):
        department = entity_store.create_department(db_session, {'name': ' Physics ', 'code': ' ph101 '})

        assert department.code == 'PH101'
        assert department.name == 'Physics'

    def test_duplicate_code(self, db_session, department):
        with pytest.raises(StoreError) as exc_info:
            entity_store.create_department(db_session, {'name': 'Comp Sci', 'code': 'CS'})

        assert exc_info.value.message.startswith('Failed to create department')
        assert entity_store.count_rows(db_session, Department) == 1

    def test_required_fields(self, db_session):
        with pytest.raises(FieldValidationError) as exc_info:
            entity_store.create_department(db_session, {'name': '  ', 'code': ''})

        assert set(exc_info.value.errors) == {'name', 'code'}

    def test_list_ordered_by_name_with_counts(self, db_session, department, course):
        entity_store.create_department(db_session, {'name': 'Applied Mathematics', 'code': 'am'})

        rows = entity_store.list_departments(db_session)

        assert [d.name for d, _courses, _faculty in rows] == ['Applied Mathematics', 'Computer Science']
        assert rows[1][1:] == (1, 0)

    def test_search_name_or_code(self, db_session, department):
        entity_store.create_department(db_session, {'name': 'Mechanical', 'code': 'ME'})

        assert [d.code for d, _c, _f in entity_store.list_departments(db_session, 'comp')] == ['CS']
        assert [d.code for d, _c, _f in entity_store.list_departments(db_session, 'me')] == ['ME']

    def test_update(self, db_session, department):
        updated = entity_store.update_department(db_session, department.id,
                                                 {'name': 'Computing', 'code': 'comp'})

        assert updated.name == 'Computing'
        assert updated.code == 'COMP'

    def test_delete(self, db_session, department):
        department_id = department.id
        entity_store.delete_department(db_session, department_id)

        with pytest.raises(NotFoundError):
            entity_store.get_department(db_session, department_id)

    def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            entity_store.delete_department(db_session, 'missing-id')

    def test_delete_blocked_by_course(self, db_session, department, course):
        with pytest.raises(StoreError) as exc_info:
            entity_store.delete_department(db_session, department.id)

        assert exc_info.value.message.startswith('Failed to delete department')
        assert entity_store.get_department(db_session, department.id).code == 'CS'
        assert entity_store.get_course(db_session, course.id).department_id == department.id


class TestCourses:
    """Test course CRUD and search"""

    def test_code_stored_uppercase(self, db_session, course):
        assert course.code == 'CS201'

    def test_defaults_to_unassigned(self, db_session):
        course = entity_store.create_course(db_session, course_data(department_id='', faculty_id=None))
        data = serialize_course(course)

        assert course.department_id is None
        assert data['department_name'] == 'Unassigned'
        assert data['faculty_name'] == 'Unassigned'

    @pytest.mark.parametrize('field,value', [
        ('semester', 0),
        ('semester', 9),
        ('semester', True),
        ('credits', 0),
        ('credits', 7),
        ('academic_year', ''),
        ('code', '  '),
    ])
    def test_rejects_invalid_fields(self, db_session, field, value):
        with pytest.raises(FieldValidationError) as exc_info:
            entity_store.create_course(db_session, course_data(**{field: value}))

        assert field in exc_info.value.errors
        assert entity_store.count_rows(db_session, Course) == 0

    def test_semester_bounds_accepted(self, db_session):
        entity_store.create_course(db_session, course_data(code='A1', semester=1))
        entity_store.create_course(db_session, course_data(code='A8', semester=8))

        assert entity_store.count_rows(db_session, Course) == 2

    def test_duplicate_code(self, db_session, course):
        with pytest.raises(StoreError):
            entity_store.create_course(db_session, course_data(code='CS201'))

    def test_unknown_department_rejected(self, db_session):
        with pytest.raises(StoreError):
            entity_store.create_course(db_session, course_data(department_id='no-such-department'))

    def test_search(self, db_session, course):
        entity_store.create_course(db_session, course_data())

        assert [c.code for c in entity_store.list_courses(db_session)] == ['CS201', 'MA101']
        assert [c.code for c in entity_store.list_courses(db_session, 'data')] == ['CS201']
        assert [c.code for c in entity_store.list_courses(db_session, 'computer')] == ['CS201']
        assert [c.code for c in entity_store.list_courses(db_session, 'ma1')] == ['MA101']
        assert entity_store.list_courses(db_session, '100%') == []

    def test_options_ordered_by_name(self, db_session, course):
        entity_store.create_course(db_session, course_data())

        assert [c.name for c in entity_store.list_course_options(db_session)] == ['Calculus', 'Data Structures']

    def test_update(self, db_session, course, faculty_profile):
        updated = entity_store.update_course(db_session, course.id, course_data(
            code='cs202', semester=4, faculty_id=faculty_profile.id))

        assert updated.code == 'CS202'
        assert updated.semester == 4
        assert updated.faculty.employee_id == 'EMP001'
        assert updated.department_id is None

    def test_delete_blocked_by_feedback(self, db_session, course, make_ratings):
        submit_feedback(db_session, course.id, make_ratings())

        with pytest.raises(StoreError):
            entity_store.delete_course(db_session, course.id)

        assert entity_store.get_course(db_session, course.id)


class TestFaculty:
    """Test faculty profile CRUD"""

    def test_create(self, faculty_profile, faculty_user):
        assert faculty_profile.profile.user_id == faculty_user.id
        assert faculty_profile.department.code == 'CS'
        assert faculty_profile.designation == 'Associate Professor'

    def test_requires_faculty_role(self, db_session, plain_user):
        with pytest.raises(FieldValidationError) as exc_info:
            entity_store.create_faculty(db_session, {
                'profile_id': plain_user.profile.id,
                'employee_id': 'EMP009',
                'designation': 'Lecturer',
            })

        assert 'profile_id' in exc_info.value.errors

    def test_search(self, db_session, faculty_profile, faculty_user):
        last_name = faculty_user.profile.last_name

        assert [f.id for f in entity_store.list_faculty(db_session, last_name)] == [faculty_profile.id]
        assert [f.id for f in entity_store.list_faculty(db_session, 'emp00')] == [faculty_profile.id]
        assert [f.id for f in entity_store.list_faculty(db_session, 'computer')] == [faculty_profile.id]
        assert entity_store.list_faculty(db_session, 'nobody-matches-this') == []

    def test_delete_blocked_by_assigned_course(self, db_session, faculty_profile, assigned_course):
        with pytest.raises(StoreError):
            entity_store.delete_faculty(db_session, faculty_profile.id)

        assert entity_store.get_faculty(db_session, faculty_profile.id)

    def test_delete_blocks_department_until_gone(self, db_session, department, faculty_profile):
        with pytest.raises(StoreError):
            entity_store.delete_department(db_session, department.id)

        entity_store.delete_faculty(db_session, faculty_profile.id)
        entity_store.delete_department(db_session, department.id)

        assert entity_store.list_departments(db_session) == []


class TestProfilesAndRoles:
    """Test profile edits and role assignment"""

    def test_update_profile(self, db_session, plain_user):
        profile = entity_store.update_profile(db_session, plain_user.profile.id, {
            'first_name': ' Katherine ', 'last_name': 'Johnson', 'phone': '555-0100',
        })

        assert profile.full_name == 'Katherine Johnson'
        assert profile.phone == '555-0100'
        assert profile.email == plain_user.email

    def test_update_profile_requires_names(self, db_session, plain_user):
        with pytest.raises(FieldValidationError):
            entity_store.update_profile(db_session, plain_user.profile.id,
                                        {'first_name': '', 'last_name': 'Johnson'})

    def test_single_role_per_identity(self, db_session, plain_user):
        entity_store.assign_role(db_session, plain_user.id, Role.FACULTY)
        entity_store.assign_role(db_session, plain_user.id, Role.ADMIN)

        rows = db_session.query(UserRole).filter(UserRole.user_id == plain_user.id).all()
        assert [r.role for r in rows] == [Role.ADMIN]

    def test_assign_to_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            entity_store.assign_role(db_session, 'missing-user', Role.ADMIN)

    def test_faculty_role_locked_while_profile_exists(self, db_session, faculty_user, faculty_profile):
        with pytest.raises(FieldValidationError) as exc_info:
            entity_store.assign_role(db_session, faculty_user.id, Role.ADMIN)
        assert 'role' in exc_info.value.errors

        with pytest.raises(FieldValidationError):
            entity_store.revoke_role(db_session, faculty_user.id)

    def test_revoke(self, db_session, admin_user):
        entity_store.revoke_role(db_session, admin_user.id)

        with pytest.raises(NotFoundError):
            entity_store.revoke_role(db_session, admin_user.id)

    def test_list_profiles_with_roles(self, db_session, admin_user, plain_user):
        roles = {profile.user_id: role for profile, role in entity_store.list_profiles(db_session)}

        assert roles == {admin_user.id: Role.ADMIN, plain_user.id: None}


class TestFeedbackListing:
    """Test feedback search and semester filter"""

    def test_filters(self, db_session, course, assigned_course, make_ratings):
        submit_feedback(db_session, course.id, make_ratings(), 'Loved the labs')
        submit_feedback(db_session, assigned_course.id, make_ratings(3, 3, 3, 3, 3), 'Too fast')

        assert len(entity_store.list_feedback(db_session)) == 2
        assert len(entity_store.list_feedback(db_session, semester='all')) == 2
        assert [f.comments for f in entity_store.list_feedback(db_session, search='labs')] == ['Loved the labs']
        assert [f.course_id for f in entity_store.list_feedback(db_session, search='operating')] == [assigned_course.id]
        assert [f.semester for f in entity_store.list_feedback(db_session, semester='Semester 5')] == ['Semester 5']
        assert entity_store.list_feedback_semesters(db_session) == ['Semester 3', 'Semester 5']

    def test_faculty_scope(self, db_session, course, assigned_course, faculty_profile, make_ratings):
        submit_feedback(db_session, course.id, make_ratings())
        submit_feedback(db_session, assigned_course.id, make_ratings())

        rows = entity_store.list_feedback(db_session, faculty_id=faculty_profile.id)

        assert [f.course_id for f in rows] == [assigned_course.id]
        assert entity_store.list_feedback_semesters(db_session, faculty_id=faculty_profile.id) == ['Semester 5']
