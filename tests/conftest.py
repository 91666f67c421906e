"""Shared test fixtures for the burnout scoring test suite."""

import os
from datetime import datetime, timedelta

import pytest

# GitPython refuses to import without a git binary unless told to stay quiet
os.environ.setdefault("GIT_PYTHON_REFRESH", "quiet")

import models  # noqa: F401  registers every mapper before models are built
from app import create_app
from config import Config
from extensions import db
from models.activity import MoodRecord, WorkSession
from models.user import User


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    WTF_CSRF_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = 'alerts@touchgrass.test'
    BURNOUT_ALERT_EMAILS = False


# ── Application ─────────────────────────────────────────────────────────

@pytest.fixture
def app():
    """Fresh application with an empty in-memory database per test."""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


# ── Time ────────────────────────────────────────────────────────────────

@pytest.fixture
def now():
    """A fixed 'now' for deterministic scoring: Wednesday 2026-03-18 15:00."""
    return datetime(2026, 3, 18, 15, 0, 0)


# ── Users ───────────────────────────────────────────────────────────────

@pytest.fixture
def make_user(app):
    """Factory fixture that stores users with unique names."""
    _counter = 0

    def _factory(**overrides):
        nonlocal _counter
        _counter += 1
        defaults = {
            'username': f'dev{_counter}',
            'email': f'dev{_counter}@example.com',
        }
        defaults.update(overrides)
        user = User(**defaults)
        db.session.add(user)
        db.session.commit()
        return user

    return _factory


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth_client(client, user):
    """Test client with ``user`` logged in through the Flask-Login session."""
    with client.session_transaction() as sess:
        sess['_user_id'] = str(user.id)
        sess['_fresh'] = True
    return client


# ── Activity seeding ────────────────────────────────────────────────────

@pytest.fixture
def seed_moods():
    def _seed(user_id, values, at):
        for i, value in enumerate(values):
            db.session.add(MoodRecord(user_id=user_id, timestamp=at - timedelta(hours=i + 1), mood_value=value))
        db.session.commit()
    return _seed


@pytest.fixture
def seed_sessions():
    """Closed work sessions starting ``days_ago`` days before ``at``."""
    def _seed(user_id, at, durations, days_ago=None, breaks_taken=0):
        days_ago = days_ago or list(range(1, len(durations) + 1))
        sessions = []
        for minutes, days in zip(durations, days_ago):
            start = at - timedelta(days=days)
            sessions.append(WorkSession(
                user_id=user_id,
                start_time=start,
                end_time=start + timedelta(minutes=minutes),
                duration_minutes=minutes,
                breaks_taken=breaks_taken,
            ))
        db.session.add_all(sessions)
        db.session.commit()
        return sessions
    return _seed
