"""
Break and work-session bookkeeping driven by desk presence.

The webcam pipeline reports whether the user is at their desk. Leaving the
desk opens a break, coming back closes it; a closed break of at least a
minute counts toward the work session's ``breaks_taken``.
"""
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from flask import current_app

from extensions import db
from models.activity import BreakRecord, MoodRecord, WorkSession

logger = logging.getLogger(__name__)


def _commit(action):
    try:
        db.session.commit()
    except Exception as e:
        logger.error(f"Error while {action}: {str(e)}")
        db.session.rollback()
        raise


def get_open_session(user_id: int) -> Optional[WorkSession]:
    return WorkSession.query\
        .filter_by(user_id=user_id, end_time=None)\
        .order_by(WorkSession.start_time.desc())\
        .first()


def get_open_break(user_id: int) -> Optional[BreakRecord]:
    return BreakRecord.query\
        .filter_by(user_id=user_id, end_time=None)\
        .order_by(BreakRecord.start_time.desc())\
        .first()


def _close_break(break_record: BreakRecord, at: datetime) -> bool:
    is_valid = break_record.close(at)
    if is_valid and break_record.work_session is not None:
        break_record.work_session.breaks_taken = (break_record.work_session.breaks_taken or 0) + 1
    return is_valid


def _break_summary(break_record: BreakRecord) -> Dict[str, Any]:
    return {
        'breakId': break_record.id,
        'duration': break_record.duration_seconds,
        'isValidBreak': break_record.is_valid_break,
        'breakMinutes': round(break_record.duration_seconds / 60, 1),
    }


def start_break(user_id: int, at: datetime) -> BreakRecord:
    """Open a break; an already open break is moved to the new start time."""
    open_break = get_open_break(user_id)
    if open_break:
        open_break.start_time = at
        open_break.date = at.date().isoformat()
        _commit(f"restarting break for user {user_id}")
        return open_break

    session = get_open_session(user_id)
    break_record = BreakRecord(
        user_id=user_id,
        start_time=at,
        work_session_id=session.id if session else None,
    )
    db.session.add(break_record)
    _commit(f"starting break for user {user_id}")
    return break_record


def end_break(user_id: int, at: datetime) -> Optional[Dict[str, Any]]:
    """Close the most recent open break. Returns None if there was none."""
    open_break = get_open_break(user_id)
    if not open_break:
        return None

    _close_break(open_break, at)
    _commit(f"ending break for user {user_id}")
    return _break_summary(open_break)


def process_presence(user_id: int, is_at_desk: bool, at: datetime, mood=None) -> Dict[str, Any]:
    """Record a presence sample and update breaks and work sessions."""
    last_sample = MoodRecord.query\
        .filter_by(user_id=user_id)\
        .order_by(MoodRecord.timestamp.desc())\
        .first()
    was_at_desk = last_sample.is_at_desk if last_sample else True

    result = {'breakStarted': False, 'breakEnded': None, 'session': None}

    if was_at_desk and not is_at_desk:
        start_break(user_id, at)
        result['breakStarted'] = True
    elif not was_at_desk and is_at_desk:
        result['breakEnded'] = end_break(user_id, at)

    db.session.add(MoodRecord(user_id=user_id, timestamp=at, mood_value=mood, is_at_desk=is_at_desk))

    session = get_open_session(user_id)
    if is_at_desk and session is None:
        db.session.add(WorkSession(user_id=user_id, start_time=at))
        result['session'] = 'started'
    elif not is_at_desk and session is not None:
        session.close(at)
        result['session'] = 'ended'

    _commit(f"processing presence for user {user_id}")
    return result


def cleanup_orphaned_breaks(now: Optional[datetime] = None, max_age_minutes: Optional[int] = None) -> Dict[str, int]:
    """Close breaks whose end event never arrived.

    Breaks open for longer than ``max_age_minutes`` are closed at ``now`` and
    counted against their work session exactly like a normal break end.
    """
    now = now or datetime.now()
    if max_age_minutes is None:
        max_age_minutes = current_app.config.get('ORPHANED_BREAK_MAX_AGE_MINUTES', 60)
    cutoff = now - timedelta(minutes=max_age_minutes)

    orphaned = BreakRecord.query.filter(
        BreakRecord.end_time.is_(None),
        BreakRecord.start_time < cutoff,
    ).all()

    cleaned = 0
    for break_record in orphaned:
        _close_break(break_record, now)
        cleaned += 1

    _commit("cleaning up orphaned breaks")
    if orphaned:
        logger.info(f"Closed {cleaned} orphaned breaks older than {max_age_minutes} minutes")
    return {'cleaned_count': cleaned, 'total_orphaned': len(orphaned)}


def today_break_stats(user_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    breaks = BreakRecord.query.filter_by(user_id=user_id, date=now.date().isoformat()).all()
    valid = [b for b in breaks if b.is_valid_break]
    total_seconds = sum(b.duration_seconds or 0 for b in valid)
    average_seconds = total_seconds / len(valid) if valid else 0
    active = next((b for b in breaks if b.is_open), None)

    return {
        'totalBreaks': len(valid),
        'totalBreakMinutes': round(total_seconds / 60, 1),
        'averageBreakMinutes': round(average_seconds / 60, 1),
        'isOnBreak': active is not None,
        'currentBreakStart': active.start_time.isoformat() if active else None,
        'currentBreakMinutes': round((now - active.start_time).total_seconds() / 60, 1) if active else 0,
    }


def break_analytics(user_id: int, days: int = 7, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now()
    since = now - timedelta(days=days)

    breaks = BreakRecord.query.filter(
        BreakRecord.user_id == user_id,
        BreakRecord.date >= since.date().isoformat(),
    ).all()
    sessions = WorkSession.query.filter(
        WorkSession.user_id == user_id,
        WorkSession.start_time >= since,
    ).all()

    daily = defaultdict(lambda: {'count': 0, 'break_seconds': 0, 'work_minutes': 0})
    for b in breaks:
        day = daily[b.date]
        if b.is_valid_break:
            day['count'] += 1
            day['break_seconds'] += b.duration_seconds or 0
    for s in sessions:
        daily[s.start_time.date().isoformat()]['work_minutes'] += s.duration_minutes or 0

    trend = [
        {
            'date': day,
            'breakCount': data['count'],
            'breakMinutes': round(data['break_seconds'] / 60, 1),
            'workMinutes': data['work_minutes'],
            'breaksPerHour': round(data['count'] / (data['work_minutes'] / 60), 2) if data['work_minutes'] else 0,
        }
        for day, data in sorted(daily.items())
    ]

    total_breaks = sum(d['count'] for d in daily.values())
    total_break_seconds = sum(d['break_seconds'] for d in daily.values())
    total_work_minutes = sum(s.duration_minutes or 0 for s in sessions)

    return {
        'breakTrend': trend,
        'totalBreaks': total_breaks,
        'totalBreakMinutes': round(total_break_seconds / 60, 1),
        'averageBreaksPerDay': round(total_breaks / len(trend), 2) if trend else 0,
        'averageBreakMinutes': round(total_break_seconds / total_breaks / 60, 1) if total_breaks else 0,
        'breaksPerWorkHour': round(total_breaks / (total_work_minutes / 60), 2) if total_work_minutes else 0,
    }
