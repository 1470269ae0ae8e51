"""
Tests for authentication and the Identity & Role Resolver
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from academic_quality.errors import AuthError, FieldValidationError, StoreError
from academic_quality.models.identity import AuthSession
from academic_quality.models.profile import Role
from academic_quality.services import auth_service
from academic_quality.services.auth_service import AuthEvent, AuthEventStream
from academic_quality.services.entity_store import count_rows
from academic_quality.services.identity import (
    ADMIN_MENU, DEFAULT_MENU, FACULTY_MENU, SessionContext, menu_for_role,
)
from academic_quality.services.validation import sign_up_errors

from conftest import TEST_PASSWORD, unique_email


class TestSignUpAndSignIn:
    """Test the authentication service"""

    def test_sign_up_starts_pending(self, db_session):
        result = auth_service.sign_up(db_session, unique_email(), TEST_PASSWORD, 'Ada', 'Lovelace')

        assert result.status == 'pending_verification'
        assert result.verification_token
        assert not result.identity.is_confirmed
        assert result.profile.full_name == 'Ada Lovelace'

    def test_unconfirmed_email_cannot_sign_in(self, db_session):
        email = unique_email()
        auth_service.sign_up(db_session, email, TEST_PASSWORD, 'Ada', 'Lovelace')

        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_in(db_session, email, TEST_PASSWORD)
        assert exc_info.value.status_code == 403

    def test_sign_up_without_verification(self, db_session, monkeypatch):
        monkeypatch.setattr(auth_service, 'REQUIRE_EMAIL_VERIFICATION', False)
        email = unique_email()
        result = auth_service.sign_up(db_session, email, TEST_PASSWORD, 'Alan', 'Turing')

        assert result.status == 'confirmed'
        assert result.verification_token is None
        assert auth_service.sign_in(db_session, email, TEST_PASSWORD).access_token

    def test_duplicate_email_rejected(self, db_session, plain_user):
        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_up(db_session, plain_user.email.upper(), TEST_PASSWORD, 'Grace', 'Hopper')

        assert exc_info.value.message == 'User already registered'
        assert exc_info.value.status_code == 400

    def test_sign_up_field_errors(self, db_session):
        with pytest.raises(FieldValidationError) as exc_info:
            auth_service.sign_up(db_session, 'not-an-email', '123', '', 'x' * 51)

        assert set(exc_info.value.errors) == {'email', 'password', 'first_name', 'last_name'}

    def test_bad_verification_token(self, db_session):
        with pytest.raises(AuthError) as exc_info:
            auth_service.verify_email(db_session, 'bogus')
        assert exc_info.value.status_code == 400

    def test_wrong_password(self, db_session, plain_user):
        with pytest.raises(AuthError) as exc_info:
            auth_service.sign_in(db_session, plain_user.email, 'wrong-password')

        assert exc_info.value.message == 'Invalid login credentials'
        assert exc_info.value.status_code == 401

    def test_token_valid_until_sign_out(self, db_session, plain_user):
        result = auth_service.sign_in(db_session, plain_user.email, TEST_PASSWORD)
        session = auth_service.authenticate_token(db_session, result.access_token)
        assert session.id == result.session.id

        auth_service.sign_out(db_session, session)

        assert auth_service.authenticate_token(db_session, result.access_token) is None

    def test_expired_session_rejected(self, db_session, plain_user):
        result = auth_service.sign_in(db_session, plain_user.email, TEST_PASSWORD)
        result.session.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db_session.commit()

        assert auth_service.authenticate_token(db_session, result.access_token) is None

    def test_garbage_token(self, db_session):
        assert auth_service.authenticate_token(db_session, 'not.a.jwt') is None
        assert auth_service.authenticate_token(db_session, '') is None

    def test_session_write_failure(self, db_session, plain_user, monkeypatch):
        email = plain_user.email

        def locked_commit():
            raise OperationalError('INSERT INTO auth_sessions', {}, Exception('database is locked'))

        monkeypatch.setattr(db_session, 'commit', locked_commit)
        with pytest.raises(StoreError) as exc_info:
            auth_service.sign_in(db_session, email, TEST_PASSWORD)

        assert exc_info.value.message == 'Failed to open session'
        assert count_rows(db_session, AuthSession) == 0

    def test_email_syntax(self):
        assert sign_up_errors('ada@university.edu', TEST_PASSWORD, 'Ada', 'Lovelace') == {}
        assert 'email' in sign_up_errors('ada@university', TEST_PASSWORD, 'Ada', 'Lovelace')
        assert 'email' in sign_up_errors('not-an-email', TEST_PASSWORD, 'Ada', 'Lovelace')
        assert 'email' in sign_up_errors('   ', TEST_PASSWORD, 'Ada', 'Lovelace')

    def test_password_hash_round_trip(self):
        hashed = auth_service.hash_password(TEST_PASSWORD)

        assert hashed != TEST_PASSWORD
        assert auth_service.verify_password(TEST_PASSWORD, hashed)
        assert not auth_service.verify_password('something-else', hashed)


class TestAuthEventStream:
    """Test session change fan-out"""

    def test_publish_reaches_subscribers(self):
        stream = AuthEventStream()
        received = []
        stream.subscribe(lambda event, session: received.append(event))

        stream.publish(AuthEvent.SIGNED_IN, None)
        stream.publish(AuthEvent.SIGNED_OUT, None)

        assert received == [AuthEvent.SIGNED_IN, AuthEvent.SIGNED_OUT]

    def test_unsubscribe(self):
        stream = AuthEventStream()
        received = []
        unsubscribe = stream.subscribe(lambda event, session: received.append(event))
        unsubscribe()

        stream.publish(AuthEvent.SIGNED_IN, None)

        assert received == []


class TestSessionContext:
    """Test role resolution and gating"""

    def test_admin_resolution(self, db_session, admin_user):
        context = SessionContext().resolve(db_session, admin_user.id)

        assert context.resolved
        assert context.role == Role.ADMIN
        assert context.profile.user_id == admin_user.id
        assert context.faculty_profile is None
        assert context.menu == ADMIN_MENU

    def test_faculty_resolution_loads_faculty_profile(self, db_session, faculty_user, faculty_profile):
        context = SessionContext().resolve(db_session, faculty_user.id)

        assert context.role == Role.FACULTY
        assert context.faculty_profile.id == faculty_profile.id
        assert context.menu == FACULTY_MENU

    def test_no_role_row_means_no_role(self, db_session, plain_user):
        context = SessionContext().resolve(db_session, plain_user.id)

        assert context.role is None
        assert context.allows(set())
        assert not context.allows({Role.ADMIN})
        assert not context.allows({Role.FACULTY})
        assert context.menu == DEFAULT_MENU

    def test_role_membership(self, db_session, faculty_user):
        context = SessionContext().resolve(db_session, faculty_user.id)

        assert context.allows({Role.FACULTY})
        assert context.allows({Role.ADMIN, Role.FACULTY})
        assert not context.allows({Role.ADMIN})

    def test_unauthenticated_denied_everything(self):
        context = SessionContext()

        assert not context.allows()
        assert not context.allows({Role.ADMIN})

    def test_lookup_failure_keeps_previous_values(self, db_session, admin_user):
        context = SessionContext().resolve(db_session, admin_user.id)
        broken = MagicMock()
        broken.query.side_effect = SQLAlchemyError('connection lost')

        context.resolve(broken, admin_user.id)

        assert context.role == Role.ADMIN
        assert context.profile is not None

    def test_lookup_failure_never_grants_a_role(self, plain_user):
        broken = MagicMock()
        broken.query.side_effect = SQLAlchemyError('connection lost')

        context = SessionContext().resolve(broken, plain_user.id)

        assert context.role is None
        assert not context.resolved
        assert not context.allows({Role.ADMIN})

    def test_follows_sign_in_and_sign_out_events(self, db_session, admin_user):
        stream = AuthEventStream()
        context = SessionContext()
        context.bind(stream, db_session)

        result = auth_service.sign_in(db_session, admin_user.email, TEST_PASSWORD, events=stream)
        assert context.role == Role.ADMIN
        assert context.session.id == result.session.id

        auth_service.sign_out(db_session, result.session, events=stream)
        assert context.role is None
        assert context.profile is None
        assert not context.is_authenticated

    def test_role_change_seen_on_next_resolution(self, db_session, plain_user):
        from academic_quality.services import entity_store

        context = SessionContext().resolve(db_session, plain_user.id)
        assert context.role is None

        entity_store.assign_role(db_session, plain_user.id, Role.ADMIN)

        assert context.resolve(db_session, plain_user.id).role == Role.ADMIN


class TestMenus:
    """Test static navigation per role"""

    def test_admin_menu(self):
        labels = [item.label for item in menu_for_role(Role.ADMIN)]
        assert labels == ['Dashboard', 'Faculty Management', 'Departments', 'Courses',
                          'Feedback Analysis', 'Reports', 'Settings']

    def test_faculty_menu(self):
        labels = [item.label for item in menu_for_role(Role.FACULTY)]
        assert labels == ['My Dashboard', 'My Courses', 'My Feedback', 'My Metrics', 'Settings']

    def test_default_menu(self):
        assert [item.label for item in menu_for_role(None)] == ['Dashboard', 'Settings']
