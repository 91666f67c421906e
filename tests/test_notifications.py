from extensions import mail
from utils.notifications import NotificationManager

FACTORS = {'factorDescriptions': {'mood': 'Mood Analysis: high risk (90)', 'breaks': 'Break Frequency: no data'}}


def test_alert_renders_both_bodies(app, user):
    with mail.record_messages() as outbox:
        assert NotificationManager.send_burnout_alert(user, 88, FACTORS) is True

    message = outbox[0]
    assert message.subject == 'Burnout risk at 88/100'
    assert 'Mood Analysis: high risk (90)' in message.body
    assert '<strong>88/100</strong>' in message.html


def test_user_without_email_is_skipped(app, make_user):
    nameless = make_user(email=None)
    with mail.record_messages() as outbox:
        assert NotificationManager.send_burnout_alert(nameless, 90, FACTORS) is False
    assert outbox == []


def test_delivery_failure_is_reported(app, user, monkeypatch):
    def refuse(message):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, 'send', refuse)
    assert NotificationManager.send_burnout_alert(user, 90, FACTORS) is False
