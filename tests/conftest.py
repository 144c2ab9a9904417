"""
Test configuration and shared fixtures for the KM Foundation portal tests.

This file contains:
- Centralized test configuration
- Shared fixtures for the app, database and one account of every kind
- auth_headers: bearer header factory for any account
"""

from datetime import date, timedelta

import pytest

from foundation import create_app
from foundation.models import db, User, AdminUser, StaffUser, Event, Scholar
from foundation.utils.auth_utils import generate_jwt_token, hash_password


# Centralized test configuration
TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'SECRET_KEY': 'test-secret-key',
    'JWT_SECRET_KEY': 'test-jwt-secret-key',
    'MAIL_SUPPRESS_SEND': True,
    'MAIL_DEFAULT_SENDER': 'test@example.com',
    'BCRYPT_LOG_ROUNDS': 4,
    'FRONTEND_URL': 'http://localhost:5173',
    'AUTO_CREATE_TABLES': False,
}

TEST_PASSWORD = 'TestPass123'


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app(TEST_CONFIG)
    return app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()


@pytest.fixture
def app_context(app):
    """Create an application context for database operations."""
    with app.app_context():
        yield


@pytest.fixture
def db_session(app_context):
    """Create a database session and clean up after tests."""
    db.create_all()
    yield db.session
    db.session.remove()
    db.drop_all()


def make_user(db_session, username, role='volunteer', email=None, status='active', **extra):
    user = User(
        username=username,
        email=email or f'{username}@example.com',
        name=extra.pop('name', username.title()),
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        status=status,
        **extra
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def test_user(db_session):
    """Active volunteer account."""
    return make_user(db_session, 'volunteer1', first_name='Vince', last_name='Cruz',
                     name='Vince Cruz')


@pytest.fixture
def scholar_user(db_session):
    """Verified scholar account."""
    return make_user(db_session, 'scholar1', role='scholar', is_verified=True,
                     first_name='Sam', last_name='Reyes', name='Sam Reyes')


@pytest.fixture
def sponsor_user(db_session):
    return make_user(db_session, 'sponsor1', role='sponsor', name='Sofia Lim')


@pytest.fixture
def admin_user(db_session):
    admin = AdminUser(name='Ada Admin', email='admin@example.com',
                      password_hash=hash_password(TEST_PASSWORD))
    db_session.add(admin)
    db_session.commit()
    return admin


@pytest.fixture
def staff_user(db_session):
    staff = StaffUser(name='Stan Staff', email='staff@example.com',
                      password_hash=hash_password(TEST_PASSWORD))
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture
def test_event(db_session):
    """Open event with one volunteer seat and one scholar seat."""
    event = Event(
        title='Feeding Program',
        date=date.today() + timedelta(days=7),
        location='Payatas',
        total_volunteers=1,
        total_scholars=1,
    )
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture
def past_event(db_session):
    event = Event(
        title='Tree Planting',
        date=date.today() - timedelta(days=3),
        end_time='17:00',
        total_volunteers=5,
        total_scholars=5,
    )
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture
def scholar_profile(db_session, scholar_user):
    profile = Scholar(user_id=scholar_user.id, first_name='Sam', last_name='Reyes',
                      amount_needed=5000.0, current_amount=0.0)
    db_session.add(profile)
    db_session.commit()
    return profile


@pytest.fixture
def auth_headers(db_session):
    """Return a factory building Authorization headers for an account."""
    def _headers(account):
        if isinstance(account, AdminUser):
            token = generate_jwt_token(account.id, account_type='admin', role='admin')
        elif isinstance(account, StaffUser):
            token = generate_jwt_token(account.id, account_type='staff', role='staff')
        else:
            token = generate_jwt_token(account.id, account_type='user', role=account.role)
        return {'Authorization': f'Bearer {token}'}
    return _headers
