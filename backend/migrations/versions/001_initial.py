"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2024-06-01

Creates all database tables for the Academic Quality Dashboard:
- identities, auth_sessions: authentication service
- profiles, user_roles: identity profile and single role assignment
- departments, faculty_profiles, courses: admin-managed records
- student_feedback: anonymous submissions (no identity column)
- quality_metrics: aggregates written by the refresh batch

Every foreign key is ON DELETE RESTRICT: deleting a referenced row fails.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RATING_COLUMNS = ('teaching_quality', 'course_content', 'communication',
                  'punctuality', 'availability', 'overall_rating')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ── Authentication ────────────────────────────────────────
    op.create_table(
        'identities',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('email_confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('verification_token', sa.Text(), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('identity_id', sa.String(36),
                  sa.ForeignKey('identities.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_auth_sessions_identity_id', 'auth_sessions', ['identity_id'])

    # ── Profiles & roles ──────────────────────────────────────
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36),
                  sa.ForeignKey('identities.id', ondelete='RESTRICT'), nullable=False, unique=True),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('last_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('phone', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'user_roles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36),
                  sa.ForeignKey('identities.id', ondelete='RESTRICT'), nullable=False, unique=True),
        sa.Column('role', sa.Enum('admin', 'faculty', name='app_role'), nullable=False),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
    )

    # ── Departments, faculty, courses ─────────────────────────
    op.create_table(
        'departments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        'faculty_profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('profile_id', sa.String(36),
                  sa.ForeignKey('profiles.id', ondelete='RESTRICT'), nullable=False, unique=True),
        sa.Column('employee_id', sa.Text(), nullable=False, unique=True),
        sa.Column('department_id', sa.String(36),
                  sa.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('designation', sa.Text(), nullable=False,
                  server_default='Assistant Professor'),
        sa.Column('qualification', sa.Text(), nullable=True),
        sa.Column('specialization', sa.Text(), nullable=True),
        sa.Column('experience_years', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('date_of_joining', sa.Date(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_faculty_profiles_department_id', 'faculty_profiles', ['department_id'])

    op.create_table(
        'courses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('academic_year', sa.Text(), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('department_id', sa.String(36),
                  sa.ForeignKey('departments.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('faculty_id', sa.String(36),
                  sa.ForeignKey('faculty_profiles.id', ondelete='RESTRICT'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_courses_department_id', 'courses', ['department_id'])
    op.create_index('ix_courses_faculty_id', 'courses', ['faculty_id'])

    # ── Student feedback ──────────────────────────────────────
    op.create_table(
        'student_feedback',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('course_id', sa.String(36),
                  sa.ForeignKey('courses.id', ondelete='RESTRICT'), nullable=False),
        *[sa.Column(col, sa.Integer(), nullable=False) for col in RATING_COLUMNS],
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('anonymous_token', sa.Text(), nullable=False, unique=True),
        sa.Column('semester', sa.Text(), nullable=False),
        sa.Column('academic_year', sa.Text(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
        *[sa.CheckConstraint(f'{col} BETWEEN 1 AND 5', name=f'ck_student_feedback_{col}')
          for col in RATING_COLUMNS],
    )
    op.create_index('ix_student_feedback_course_id', 'student_feedback', ['course_id'])
    op.create_index('ix_student_feedback_semester', 'student_feedback', ['semester'])

    # ── Quality metrics ───────────────────────────────────────
    op.create_table(
        'quality_metrics',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('faculty_id', sa.String(36),
                  sa.ForeignKey('faculty_profiles.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('course_id', sa.String(36),
                  sa.ForeignKey('courses.id', ondelete='RESTRICT'), nullable=True),
        sa.Column('semester', sa.Text(), nullable=False),
        sa.Column('academic_year', sa.Text(), nullable=False),
        sa.Column('teaching_score', sa.Float(), nullable=True),
        sa.Column('content_score', sa.Float(), nullable=True),
        sa.Column('communication_score', sa.Float(), nullable=True),
        sa.Column('punctuality_score', sa.Float(), nullable=True),
        sa.Column('availability_score', sa.Float(), nullable=True),
        sa.Column('overall_score', sa.Float(), nullable=True),
        sa.Column('total_responses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('calculated_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('faculty_id', 'course_id', 'semester', 'academic_year',
                            name='uq_quality_metrics_scope'),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('quality_metrics')
    op.drop_index('ix_student_feedback_semester', table_name='student_feedback')
    op.drop_index('ix_student_feedback_course_id', table_name='student_feedback')
    op.drop_table('student_feedback')
    op.drop_index('ix_courses_faculty_id', table_name='courses')
    op.drop_index('ix_courses_department_id', table_name='courses')
    op.drop_table('courses')
    op.drop_index('ix_faculty_profiles_department_id', table_name='faculty_profiles')
    op.drop_table('faculty_profiles')
    op.drop_table('departments')
    op.drop_table('user_roles')
    sa.Enum(name='app_role').drop(op.get_bind(), checkfirst=True)
    op.drop_table('profiles')
    op.drop_index('ix_auth_sessions_identity_id', table_name='auth_sessions')
    op.drop_table('auth_sessions')
    op.drop_table('identities')
