"""
Storage for burnout scores and user settings.

One ``BurnoutScore`` row exists per (user, calendar day). Writes go through a
single INSERT ... ON CONFLICT statement so two computations racing for the
same day update the row instead of duplicating it, and the notification flag
is flipped with a conditional UPDATE so only one of them can claim it.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from flask import current_app

from extensions import db
from models.burnout import BurnoutScore, UserSettings
from services.errors import UnsupportedDatabaseError

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = (
    'risk_threshold',
    'notifications_enabled',
    'working_hours_start',
    'working_hours_end',
    'target_break_interval',
)


def _dialect_insert(table):
    dialect = db.engine.dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise UnsupportedDatabaseError(f"Atomic upsert is not supported on {dialect}")
    return insert(table)


def upsert_burnout_score(user_id: int, day: str, risk_score: int, factors: Dict[str, Any]) -> BurnoutScore:
    """Insert today's score or overwrite it in place.

    ``notification_sent`` starts False on insert and is never touched by the
    overwrite.
    """
    now = datetime.now()
    stmt = _dialect_insert(BurnoutScore.__table__).values(
        user_id=user_id,
        date=day,
        risk_score=risk_score,
        factors=factors,
        notification_sent=False,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=['user_id', 'date'],
        set_={
            'risk_score': stmt.excluded.risk_score,
            'factors': stmt.excluded.factors,
            'updated_at': stmt.excluded.updated_at,
        },
    )

    try:
        db.session.execute(stmt)
        db.session.commit()
    except Exception as e:
        logger.error(f"Error storing burnout score for user {user_id} on {day}: {str(e)}")
        db.session.rollback()
        raise

    return get_score(user_id, day)


def claim_notification(user_id: int, day: str) -> bool:
    """Set notification_sent for (user, day); True only for the caller that flipped it."""
    try:
        result = db.session.execute(
            db.update(BurnoutScore)
            .where(
                BurnoutScore.user_id == user_id,
                BurnoutScore.date == day,
                BurnoutScore.notification_sent.is_(False),
            )
            .values(notification_sent=True)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
    except Exception as e:
        logger.error(f"Error marking notification for user {user_id} on {day}: {str(e)}")
        db.session.rollback()
        raise
    return result.rowcount == 1


def get_score(user_id: int, day: str) -> Optional[BurnoutScore]:
    return BurnoutScore.query.filter_by(user_id=user_id, date=day).first()


def get_recent_scores(user_id: int, today: date, limit: int = 7) -> List[BurnoutScore]:
    """Stored scores from the week before ``today``, most recent first.

    Today's own row is excluded.
    """
    since = (today - timedelta(days=7)).isoformat()
    return BurnoutScore.query\
        .filter(
            BurnoutScore.user_id == user_id,
            BurnoutScore.date >= since,
            BurnoutScore.date < today.isoformat(),
        )\
        .order_by(BurnoutScore.date.desc())\
        .limit(limit)\
        .all()


def get_history(user_id: int, today: date, days: int = 30) -> List[BurnoutScore]:
    since = (today - timedelta(days=days)).isoformat()
    return BurnoutScore.query\
        .filter(BurnoutScore.user_id == user_id, BurnoutScore.date >= since)\
        .order_by(BurnoutScore.date.asc())\
        .all()


def reset_scores(user_id: int) -> int:
    """Administrative reset: delete every stored score for the user."""
    try:
        deleted = BurnoutScore.query.filter_by(user_id=user_id).delete()
        db.session.commit()
    except Exception as e:
        logger.error(f"Error resetting burnout scores for user {user_id}: {str(e)}")
        db.session.rollback()
        raise
    logger.info(f"Cleared {deleted} burnout scores for user {user_id}")
    return deleted


def default_settings(user_id: int) -> UserSettings:
    config = current_app.config
    return UserSettings(
        user_id=user_id,
        risk_threshold=config.get('DEFAULT_RISK_THRESHOLD', 75),
        notifications_enabled=config.get('DEFAULT_NOTIFICATIONS_ENABLED', True),
        working_hours_start=config.get('DEFAULT_WORKING_HOURS_START', 9),
        working_hours_end=config.get('DEFAULT_WORKING_HOURS_END', 17),
        target_break_interval=config.get('DEFAULT_TARGET_BREAK_INTERVAL', 120),
    )


def get_user_settings(user_id: int) -> UserSettings:
    """Stored settings, or an unsaved object carrying the configured defaults."""
    settings = UserSettings.query.filter_by(user_id=user_id).first()
    return settings if settings is not None else default_settings(user_id)


def update_user_settings(user_id: int, **changes) -> UserSettings:
    """Apply the given fields; fields not passed keep their current value."""
    unknown = set(changes) - set(SETTINGS_FIELDS)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

    settings = UserSettings.query.filter_by(user_id=user_id).first()
    if settings is None:
        settings = default_settings(user_id)
        db.session.add(settings)

    for name, value in changes.items():
        if value is not None:
            setattr(settings, name, value)

    try:
        db.session.commit()
    except Exception as e:
        logger.error(f"Error updating settings for user {user_id}: {str(e)}")
        db.session.rollback()
        raise
    return settings
