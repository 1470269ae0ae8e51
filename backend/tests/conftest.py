"""
Academic Quality Dashboard - Test Configuration and Fixtures
"""
import os
import uuid
from typing import Generator

import pytest
from faker import Faker
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set testing environment before the application reads its configuration
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['REQUIRE_EMAIL_VERIFICATION'] = 'true'
os.environ['LOG_LEVEL'] = 'WARNING'

from academic_quality.main import app
from academic_quality.database import Base, enable_sqlite_pragmas, get_db
import academic_quality.models  # noqa: F401
from academic_quality.models.profile import Role
from academic_quality.services import auth_service, entity_store

fake = Faker()

TEST_PASSWORD = 'correct-horse-42'

# One in-memory database shared by every connection of the test engine
test_engine = create_engine(
    'sqlite://',
    connect_args={'check_same_thread': False},
    poolclass=StaticPool,
)
enable_sqlite_pragmas(test_engine)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def unique_email() -> str:
    return f'{fake.user_name()}.{uuid.uuid4().hex[:8]}@university.edu'


@pytest.fixture(scope='function')
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database for each test"""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session: Session):
    """Factory: register and confirm an identity, optionally assigning a role"""
    def _make_user(role=None, email=None, password=TEST_PASSWORD):
        result = auth_service.sign_up(
            db_session,
            email or unique_email(),
            password,
            fake.first_name(),
            fake.last_name(),
        )
        auth_service.verify_email(db_session, result.verification_token)
        if role is not None:
            entity_store.assign_role(db_session, result.identity.id, role)
        return result.identity

    return _make_user


@pytest.fixture
def headers_for(db_session: Session):
    """Factory: sign an identity in and build its Authorization header"""
    def _headers_for(identity, password=TEST_PASSWORD):
        result = auth_service.sign_in(db_session, identity.email, password)
        return {'Authorization': f'Bearer {result.access_token}'}

    return _headers_for


@pytest.fixture
def admin_user(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def faculty_user(make_user):
    return make_user(Role.FACULTY)


@pytest.fixture
def plain_user(make_user):
    """Signed-up identity that was never given a role"""
    return make_user()


@pytest.fixture
def admin_headers(admin_user, headers_for) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def faculty_headers(faculty_user, headers_for) -> dict:
    return headers_for(faculty_user)


@pytest.fixture
def plain_headers(plain_user, headers_for) -> dict:
    return headers_for(plain_user)


@pytest.fixture
def department(db_session: Session):
    return entity_store.create_department(db_session, {'name': 'Computer Science', 'code': 'cs'})


@pytest.fixture
def faculty_profile(db_session: Session, faculty_user, department):
    """Faculty profile for faculty_user, in the Computer Science department"""
    return entity_store.create_faculty(db_session, {
        'profile_id': faculty_user.profile.id,
        'employee_id': 'EMP001',
        'designation': 'Associate Professor',
        'department_id': department.id,
        'experience_years': 7,
    })


@pytest.fixture
def course(db_session: Session, department):
    """Semester 3 course with no faculty assigned"""
    return entity_store.create_course(db_session, {
        'code': 'cs201',
        'name': 'Data Structures',
        'semester': 3,
        'academic_year': '2024-25',
        'credits': 4,
        'department_id': department.id,
    })


@pytest.fixture
def assigned_course(db_session: Session, department, faculty_profile):
    """Semester 5 course taught by faculty_profile"""
    return entity_store.create_course(db_session, {
        'code': 'CS301',
        'name': 'Operating Systems',
        'semester': 5,
        'academic_year': '2024-25',
        'credits': 3,
        'department_id': department.id,
        'faculty_id': faculty_profile.id,
    })


def ratings(teaching=5, content=4, communication=5, punctuality=4, availability=5) -> dict:
    return {
        'teaching_quality': teaching,
        'course_content': content,
        'communication': communication,
        'punctuality': punctuality,
        'availability': availability,
    }


@pytest.fixture
def make_ratings():
    """Factory for a full set of category ratings"""
    return ratings
