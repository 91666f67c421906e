"""Story points completed in the issue tracker."""
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from flask import current_app

from extensions import db
from models.activity import VelocityRecord

logger = logging.getLogger(__name__)


def store_story_points(user_id: int, project_id: str, issue_id: str, points: float,
                       completed_at: datetime) -> VelocityRecord:
    """Record a completed issue once; a re-synced issue returns the stored row."""
    existing = VelocityRecord.query.filter_by(project_id=project_id, issue_id=issue_id).first()
    if existing:
        return existing

    record = VelocityRecord(
        user_id=user_id,
        points_completed=points,
        completed_at=completed_at,
        project_id=project_id,
        issue_id=issue_id,
    )
    db.session.add(record)
    try:
        db.session.commit()
    except Exception as e:
        logger.error(f"Error storing story points for issue {issue_id} in {project_id}: {str(e)}")
        db.session.rollback()
        raise
    return record


def get_velocity_metrics(user_id: int, days: Optional[int] = None,
                         now: Optional[datetime] = None) -> Dict[str, Any]:
    """Points completed per day over the trailing window.

    ``currentTrend`` is the change between the last two days with points.
    """
    now = now or datetime.now()
    days = days or current_app.config.get('VELOCITY_METRICS_DAYS', 30)

    records = VelocityRecord.query.filter(
        VelocityRecord.user_id == user_id,
        VelocityRecord.completed_at >= now - timedelta(days=days),
    ).all()

    daily = defaultdict(float)
    for record in records:
        daily[record.completed_at.date().isoformat()] += record.points_completed or 0

    velocity_data = [{'date': day, 'points': points} for day, points in sorted(daily.items())]
    total = sum(daily.values())

    return {
        'velocityData': velocity_data,
        'totalPoints': total,
        'averageVelocity': total / len(velocity_data) if velocity_data else 0,
        'currentTrend': (
            velocity_data[-1]['points'] - velocity_data[-2]['points']
            if len(velocity_data) >= 2 else 0
        ),
    }
