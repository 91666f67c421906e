import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app

from extensions import db
from models.integrations import CodingTimeConnection, CodingTimeRecord

logger = logging.getLogger(__name__)


@dataclass
class CodingTimeAnalytics:
    is_connected: bool = False
    total_coding_seconds: float = 0.0
    average_daily_seconds: float = 0.0
    # Oldest first: {"date": "YYYY-MM-DD", "hours": float}
    coding_trend: List[Dict[str, Any]] = field(default_factory=list)
    top_languages: List[Dict[str, Any]] = field(default_factory=list)
    top_projects: List[Dict[str, Any]] = field(default_factory=list)
    last_sync: Optional[datetime] = None

    @property
    def average_daily_hours(self) -> float:
        return self.average_daily_seconds / 3600

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isConnected': self.is_connected,
            'totalCodingTime': self.total_coding_seconds,
            'averageDailyCodingTime': self.average_daily_seconds,
            'codingTrend': self.coding_trend,
            'mostUsedLanguages': self.top_languages,
            'mostUsedProjects': self.top_projects,
            'lastSync': self.last_sync.isoformat() if self.last_sync else None,
        }


def _top_breakdown(records: List[CodingTimeRecord], attr: str, total: float, limit: int = 10):
    totals = defaultdict(float)
    for record in records:
        for item in getattr(record, attr) or []:
            totals[item['name']] += item.get('time', 0)
    ranked = sorted(totals.items(), key=lambda x: x[1], reverse=True)[:limit]
    return [
        {'name': name, 'time': time, 'percentage': (time / total * 100) if total > 0 else 0}
        for name, time in ranked
    ]


def build_coding_time_analytics(records: Iterable[CodingTimeRecord], is_connected: bool = True,
                                last_sync: Optional[datetime] = None) -> CodingTimeAnalytics:
    if not is_connected:
        return CodingTimeAnalytics()

    records = sorted(records, key=lambda r: r.date)
    total = sum(r.coding_time_seconds or 0 for r in records)
    days_with_data = sum(1 for r in records if (r.coding_time_seconds or 0) > 0)

    return CodingTimeAnalytics(
        is_connected=True,
        total_coding_seconds=total,
        average_daily_seconds=total / days_with_data if days_with_data else 0.0,
        coding_trend=[
            {'date': r.date, 'hours': (r.coding_time_seconds or 0) / 3600} for r in records
        ],
        top_languages=_top_breakdown(records, 'languages', total),
        top_projects=_top_breakdown(records, 'projects', total),
        last_sync=last_sync,
    )


def get_coding_time_analytics(user_id: int, days: Optional[int] = None) -> CodingTimeAnalytics:
    """Analytics over the user's most recent ``days`` daily coding-time records."""
    connection = CodingTimeConnection.query.filter_by(user_id=user_id).first()
    if connection is None or not connection.is_active:
        return CodingTimeAnalytics()

    days = days or current_app.config.get('CODING_TIME_DAYS', 7)
    records = CodingTimeRecord.query\
        .filter_by(user_id=user_id)\
        .order_by(CodingTimeRecord.date.desc())\
        .limit(days)\
        .all()
    return build_coding_time_analytics(records, True, connection.last_sync)


def store_daily_coding_time(user_id: int, day: date, coding_time_seconds: float,
                            languages=None, projects=None) -> CodingTimeRecord:
    """Create or replace the coding-time record for one user and calendar day."""
    day_str = day.isoformat()
    record = CodingTimeRecord.query.filter_by(user_id=user_id, date=day_str).first()
    if not record:
        record = CodingTimeRecord(user_id=user_id, date=day_str, coding_time_seconds=coding_time_seconds)
        db.session.add(record)

    record.coding_time_seconds = coding_time_seconds
    record.languages = languages or []
    record.projects = projects or []

    connection = CodingTimeConnection.query.filter_by(user_id=user_id).first()
    if connection:
        connection.last_sync = datetime.now()

    try:
        db.session.commit()
    except Exception as e:
        logger.error(f"Error storing coding time for user {user_id} on {day_str}: {str(e)}")
        db.session.rollback()
        raise
    return record
