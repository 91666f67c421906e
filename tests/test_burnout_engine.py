import logging
import threading
from datetime import datetime, timedelta

import pytest

from app import create_app
from extensions import db, mail
from models.activity import MoodRecord
from models.burnout import BurnoutScore
from models.user import User
from services.burnout_engine import BurnoutEngine, calculate_burnout_score
from services.commit_analyzer import CommitAnalytics
from services.errors import AuthenticationError
from services.score_store import update_user_settings, upsert_burnout_score
from tests.conftest import TestingConfig
from utils.notifications import schedule_burnout_checks

# Mood average -0.6 scores 60, seven hours a day scores 30
SCENARIO_MOODS = [-1, 0, -1, 0, -1]
SCENARIO_SESSIONS = [490] * 6


@pytest.fixture
def scenario_user(user, now, seed_moods, seed_sessions):
    seed_moods(user.id, SCENARIO_MOODS, now)
    seed_sessions(user.id, now, SCENARIO_SESSIONS)
    return user


def _failing_provider(*args, **kwargs):
    raise ConnectionError("source-control API is down")


def test_missing_sources_are_reweighted(scenario_user, now):
    result = BurnoutEngine().calculate(scenario_user.id, now)
    payload = result.to_dict()

    assert result.risk_score == 47
    assert payload['riskScore'] == 47
    assert payload['factors']['scores']['mood'] == 60
    assert payload['factors']['scores']['workHours'] == 30
    assert payload['factors']['appliedWeights']['mood'] == pytest.approx(0.575)
    assert payload['factors']['availableDataSources'] == 2
    assert payload['shouldNotify'] is False


def test_failing_source_is_treated_as_absent(scenario_user, now):
    engine = BurnoutEngine(commit_analytics=_failing_provider)
    result = engine.calculate(scenario_user.id, now)

    availability = result.factors.to_dict()['dataAvailability']
    assert availability['hasCommitData'] is False
    assert availability['hasMoodData'] is True
    assert result.risk_score == 47
    assert result.record is not None


def test_commit_data_contributes_when_available(scenario_user, now):
    analytics = CommitAnalytics(
        total_commits=10,
        late_night_commits=10,
        weekend_commits=10,
        average_commits_per_day=1.0,
        recent_commit_trend=[{'date': now.date().isoformat(), 'commits': 1}] * 30,
    )
    engine = BurnoutEngine(commit_analytics=lambda user_id, now: analytics)
    result = engine.calculate(scenario_user.id, now)

    # mood 60, work hours 30, commits 70 share the missing 0.40 weight
    assert result.factors.to_dict()['dataAvailability']['hasCommitData'] is True
    assert result.factors.severity_modifier == 0
    assert result.risk_score == 54


def test_missing_identity_is_rejected(app):
    with pytest.raises(AuthenticationError):
        calculate_burnout_score(None)
    assert BurnoutScore.query.count() == 0


def test_no_data_is_stored_as_insufficient(user, now):
    update_user_settings(user.id, risk_threshold=0)
    result = BurnoutEngine().calculate(user.id, now)

    assert result.risk_score == 0
    assert result.factors.insufficient_data
    assert result.record.factors['insufficientData'] is True
    assert result.should_notify is False


def test_recompute_overwrites_the_days_row(scenario_user, now):
    engine = BurnoutEngine()
    engine.calculate(scenario_user.id, now)

    db.session.add(MoodRecord(user_id=scenario_user.id, timestamp=now - timedelta(minutes=5), mood_value=-3))
    db.session.commit()
    second = engine.calculate(scenario_user.id, now + timedelta(hours=1))

    rows = BurnoutScore.query.filter_by(user_id=scenario_user.id).all()
    assert len(rows) == 1
    assert rows[0].risk_score == second.risk_score
    assert second.risk_score > 47


def test_notification_fires_once_per_day(scenario_user, now):
    update_user_settings(scenario_user.id, risk_threshold=40)
    engine = BurnoutEngine()

    first = engine.calculate(scenario_user.id, now)
    second = engine.calculate(scenario_user.id, now + timedelta(hours=2))

    assert first.should_notify is True
    assert second.should_notify is False
    assert second.record.notification_sent is True


def test_rising_history_adds_trend(scenario_user, now):
    for days_ago, score in [(1, 80), (2, 70), (3, 50)]:
        day = (now - timedelta(days=days_ago)).date().isoformat()
        upsert_burnout_score(scenario_user.id, day, score, {'insufficientData': False})

    result = BurnoutEngine().calculate(scenario_user.id, now)

    assert result.factors.trend_modifier == 5
    assert result.risk_score == 52


def test_days_without_data_do_not_drive_the_trend(scenario_user, now):
    for days_ago, score, empty in [(1, 80, False), (2, 0, True), (3, 0, True), (4, 50, False)]:
        day = (now - timedelta(days=days_ago)).date().isoformat()
        upsert_burnout_score(scenario_user.id, day, score, {'insufficientData': empty})

    result = BurnoutEngine().calculate(scenario_user.id, now)
    assert result.factors.trend_modifier == 0


def test_scheduled_check_sends_alert_email(app, make_user):
    app.config['BURNOUT_ALERT_EMAILS'] = True
    stressed = make_user()
    calm = make_user()
    current = datetime.now()
    for i in range(3):
        db.session.add(MoodRecord(user_id=stressed.id, timestamp=current - timedelta(hours=i + 1), mood_value='angry'))
        db.session.add(MoodRecord(user_id=calm.id, timestamp=current - timedelta(hours=i + 1), mood_value='happy'))
    db.session.commit()

    with mail.record_messages() as outbox:
        notified = schedule_burnout_checks()
        again = schedule_burnout_checks()

    assert notified == [stressed.id]
    assert again == []
    assert len(outbox) == 1
    assert outbox[0].recipients == [stressed.email]
    assert '100/100' in outbox[0].subject


def test_recomputing_with_same_inputs_gives_same_score(scenario_user, now):
    for days_ago, score in [(1, 80), (2, 70), (3, 50)]:
        day = (now - timedelta(days=days_ago)).date().isoformat()
        upsert_burnout_score(scenario_user.id, day, score, {'insufficientData': False})
    engine = BurnoutEngine()

    first = engine.calculate(scenario_user.id, now)
    second = engine.calculate(scenario_user.id, now)
    later = engine.calculate(scenario_user.id, now + timedelta(minutes=5))

    assert first.risk_score == second.risk_score == later.risk_score == 52
    assert second.factors.trend_modifier == 5


@pytest.fixture
def file_app(tmp_path):
    """Application on a sqlite file so worker threads get their own connections."""
    class FileConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'touchgrass.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'timeout': 30}}

    app = create_app(FileConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def test_concurrent_computations_notify_once(file_app, now):
    with file_app.app_context():
        user = User(username='racer', email='racer@example.com')
        db.session.add(user)
        db.session.commit()
        user_id = user.id
        for i, value in enumerate(SCENARIO_MOODS):
            db.session.add(MoodRecord(user_id=user_id, timestamp=now - timedelta(hours=i + 1), mood_value=value))
        db.session.commit()
        update_user_settings(user_id, risk_threshold=40)

    workers = 8
    barrier = threading.Barrier(workers)
    results = []
    errors = []
    lock = threading.Lock()

    def compute():
        with file_app.app_context():
            try:
                barrier.wait()
                result = BurnoutEngine().calculate(user_id, now)
                with lock:
                    results.append(result.should_notify)
            except Exception as e:
                with lock:
                    errors.append(e)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=compute) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert sorted(results) == [False] * (workers - 1) + [True]
    with file_app.app_context():
        assert BurnoutScore.query.filter_by(user_id=user_id).count() == 1
        assert BurnoutScore.query.filter_by(user_id=user_id).one().notification_sent is True


def test_unconnected_source_is_logged_quietly(scenario_user, now, caplog):
    caplog.set_level(logging.INFO, logger='services.burnout_engine')
    BurnoutEngine().calculate(scenario_user.id, now)

    records = [r for r in caplog.records if 'commitPatterns' in r.getMessage()]
    assert len(records) == 1
    assert records[0].levelno == logging.INFO
    assert records[0].exc_info is None


def test_unexpected_source_failure_keeps_traceback(scenario_user, now, caplog):
    caplog.set_level(logging.INFO, logger='services.burnout_engine')
    BurnoutEngine(commit_analytics=_failing_provider).calculate(scenario_user.id, now)

    records = [r for r in caplog.records if 'commitPatterns' in r.getMessage()]
    assert len(records) == 1
    assert records[0].levelno == logging.WARNING
    assert records[0].exc_info is not None
