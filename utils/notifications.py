"""Notification utilities for burnout alerts."""
from datetime import datetime
from typing import List
from flask import current_app, render_template
from flask_mail import Message
from extensions import db, mail
from models.user import User
import logging

logger = logging.getLogger(__name__)


class NotificationManager:
    """Email delivery for burnout alerts."""

    @classmethod
    def send_email(cls, user: User, subject: str, template: str, **context) -> bool:
        """Render ``emails/<template>.html`` and ``.txt`` and mail them to the user.

        Delivery problems are logged and reported as False so a failed alert
        never aborts a scheduled run.
        """
        if not user.email:
            logger.warning(f"Skipping '{subject}' for user {user.id}: no email address")
            return False

        try:
            message = Message(
                subject=subject,
                recipients=[user.email],
                html=render_template(f"emails/{template}.html", user=user, **context),
                body=render_template(f"emails/{template}.txt", user=user, **context),
            )
            mail.send(message)
        except Exception as e:
            logger.error(f"Could not deliver '{subject}' to user {user.id}: {str(e)}", exc_info=True)
            return False

        logger.info(f"Delivered '{subject}' to user {user.id}")
        return True

    @classmethod
    def send_burnout_alert(cls, user: User, risk_score: int, factors: dict) -> bool:
        """Mail today's score with one line per factor."""
        descriptions = factors.get('factorDescriptions', {})
        return cls.send_email(
            user=user,
            subject=f"Burnout risk at {risk_score}/100",
            template="burnout_alert",
            risk_score=risk_score,
            descriptions=list(descriptions.values()),
            date=datetime.now().strftime("%A, %B %d, %Y")
        )


def schedule_burnout_checks() -> List[int]:
    """Compute today's burnout score for every user and alert where needed.

    This should be called by a scheduled task (cron, Celery beat or the
    ``flask burnout-check`` command). Returns the ids of users whose
    notification gate fired.
    """
    from services.burnout_engine import BurnoutEngine

    engine = BurnoutEngine()
    notified = []
    send_emails = current_app.config.get('BURNOUT_ALERT_EMAILS', False)

    for user in db.session.scalars(db.select(User)).all():
        try:
            result = engine.calculate(user.id)
        except Exception as e:
            logger.error(f"Burnout check failed for user {user.id}: {str(e)}", exc_info=True)
            db.session.rollback()
            continue

        if result.should_notify:
            notified.append(user.id)
            if send_emails:
                sent = NotificationManager.send_burnout_alert(
                    user, result.risk_score, result.factors.to_dict()
                )
                if not sent:
                    logger.warning(f"Burnout alert for user {user.id} was not delivered")

    logger.info(f"Burnout check complete: {len(notified)} users over threshold")
    return notified
