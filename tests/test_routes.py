from datetime import datetime, timedelta

import pytest

from extensions import db
from models.activity import MoodRecord
from services.score_store import upsert_burnout_score


@pytest.mark.parametrize("method, url", [
    ('post', '/burnout/calculate'),
    ('get', '/burnout/current'),
    ('get', '/burnout/history'),
    ('get', '/burnout/settings'),
    ('post', '/burnout/reset'),
    ('post', '/breaks/start'),
    ('get', '/breaks/today'),
])
def test_endpoints_require_login(client, method, url):
    response = getattr(client, method)(url)
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Authentication required'


def test_calculate_returns_score_and_factors(auth_client, user):
    db.session.add(MoodRecord(user_id=user.id, timestamp=datetime.now() - timedelta(hours=1), mood_value=0))
    db.session.commit()

    response = auth_client.post('/burnout/calculate')
    data = response.get_json()

    assert response.status_code == 200
    assert data['riskScore'] == 50
    assert data['shouldNotify'] is False
    assert data['factors']['dataAvailability']['hasMoodData'] is True
    assert data['factors']['appliedWeights']['mood'] == 1.0

    current = auth_client.get('/burnout/current').get_json()
    assert current['score']['riskScore'] == 50


def test_current_without_score(auth_client):
    assert auth_client.get('/burnout/current').get_json()['score'] is None


def test_history_normalizes_legacy_rows(auth_client, user):
    today = datetime.now().date()
    upsert_burnout_score(user.id, (today - timedelta(days=40)).isoformat(), 10, {})
    upsert_burnout_score(user.id, (today - timedelta(days=2)).isoformat(), 55, {'moodScore': 55})

    data = auth_client.get('/burnout/history?days=30').get_json()

    assert data['days'] == 30
    assert len(data['scores']) == 1
    factors = data['scores'][0]['factors']
    assert factors['schemaVersion'] == 1
    assert factors['dataAvailability']['hasMoodData'] is True


def test_settings_defaults_and_partial_update(auth_client):
    defaults = auth_client.get('/burnout/settings').get_json()['settings']
    assert defaults['riskThreshold'] == 75
    assert defaults['notificationsEnabled'] is True

    response = auth_client.post('/burnout/settings', json={'risk_threshold': 60})
    saved = response.get_json()['settings']
    assert response.status_code == 200
    assert saved['riskThreshold'] == 60
    assert saved['workingHoursStart'] == 9

    response = auth_client.post('/burnout/settings', json={'notifications_enabled': False})
    saved = response.get_json()['settings']
    assert saved['riskThreshold'] == 60
    assert saved['notificationsEnabled'] is False


@pytest.mark.parametrize("payload", [
    {'risk_threshold': 150},
    {'working_hours_start': 24},
    {'target_break_interval': 0},
    {'risk_threshold': 'high'},
])
def test_settings_validation(auth_client, payload):
    response = auth_client.post('/burnout/settings', json=payload)
    assert response.status_code == 400
    assert response.get_json()['status'] == 'error'


def test_reset(auth_client, user):
    upsert_burnout_score(user.id, datetime.now().date().isoformat(), 30, {})
    assert auth_client.post('/burnout/reset').get_json()['deleted'] == 1


def test_break_flow(auth_client):
    start = datetime.now().replace(microsecond=0) - timedelta(minutes=10)

    assert auth_client.post('/breaks/start', json={'timestamp': start.isoformat()}).status_code == 200
    ended = auth_client.post('/breaks/end', json={'timestamp': (start + timedelta(minutes=3)).isoformat()})
    assert ended.get_json()['break']['duration'] == 180

    stats = auth_client.get('/breaks/today').get_json()['stats']
    assert stats['totalBreaks'] == 1
    assert stats['isOnBreak'] is False


def test_end_without_break_starts_one(auth_client):
    data = auth_client.post('/breaks/end', json={}).get_json()
    assert data['break'] is None
    assert auth_client.get('/breaks/today').get_json()['stats']['isOnBreak'] is True


def test_presence_requires_flag(auth_client):
    assert auth_client.post('/breaks/presence', json={'mood': 1}).status_code == 400
    assert auth_client.post('/breaks/presence', json={'isAtDesk': True}).get_json()['session'] == 'started'


def test_bad_timestamp_is_rejected(auth_client):
    response = auth_client.post('/breaks/start', json={'timestamp': 'yesterday-ish'})
    assert response.status_code == 400


def test_analytics_days_are_capped(auth_client):
    data = auth_client.get('/breaks/analytics?days=500').get_json()
    assert data['analytics']['totalBreaks'] == 0


def test_settings_round_trip_with_camel_case_keys(auth_client):
    settings = auth_client.get('/burnout/settings').get_json()['settings']
    settings['riskThreshold'] = 40
    settings['notificationsEnabled'] = False

    response = auth_client.post('/burnout/settings', json=settings)
    assert response.status_code == 200

    saved = auth_client.get('/burnout/settings').get_json()['settings']
    assert saved['riskThreshold'] == 40
    assert saved['notificationsEnabled'] is False
    assert saved['targetBreakInterval'] == 120


@pytest.mark.parametrize("payload", [
    {'riskThresold': 40},
    {'riskThreshold': 40, 'theme': 'dark'},
])
def test_unknown_settings_are_rejected(auth_client, payload):
    response = auth_client.post('/burnout/settings', json=payload)

    assert response.status_code == 400
    assert 'Unknown settings' in response.get_json()['message']
    assert auth_client.get('/burnout/settings').get_json()['settings']['riskThreshold'] == 75


def test_settings_body_must_be_an_object(auth_client):
    assert auth_client.post('/burnout/settings', json=[1, 2]).status_code == 400
