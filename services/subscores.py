"""
Sub-score calculators.

Each calculator maps the raw records of one source to a 0-100 risk estimate
(higher means more burnout risk) or to ``SubScore.unavailable()`` when the
source has nothing to say for the window. Calculators take every candidate
record plus ``now`` and select their own window, so they never touch the
database.
"""
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Union

import numpy as np

from services.coding_time import CodingTimeAnalytics
from services.commit_analyzer import CommitAnalytics
from services.factors import SubScore

MoodValue = Union[int, float, str, None]


class MoodCategory(str, Enum):
    """Mood labels emitted by the video-mood service."""
    VERY_HAPPY = 'very happy'
    HAPPY = 'happy'
    CONTENT = 'content'
    SATISFIED = 'satisfied'
    NEUTRAL = 'neutral'
    CALM = 'calm'
    TIRED = 'tired'
    STRESSED = 'stressed'
    FRUSTRATED = 'frustrated'
    SAD = 'sad'
    ANGRY = 'angry'
    UNKNOWN = 'unknown'

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


MOOD_SCALE = {
    MoodCategory.VERY_HAPPY: 3,
    MoodCategory.HAPPY: 2,
    MoodCategory.CONTENT: 1,
    MoodCategory.SATISFIED: 1,
    MoodCategory.NEUTRAL: 0,
    MoodCategory.CALM: 0,
    MoodCategory.TIRED: -1,
    MoodCategory.STRESSED: -2,
    MoodCategory.FRUSTRATED: -2,
    MoodCategory.SAD: -3,
    MoodCategory.ANGRY: -3,
    MoodCategory.UNKNOWN: 0,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_mood(value: MoodValue) -> float:
    """Map a stored mood (number, numeric string or label) onto -3..3."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        numeric = float(value)
    else:
        text = str(value).strip().lower()
        try:
            numeric = float(text)
        except ValueError:
            return float(MOOD_SCALE[MoodCategory(text)])
    if math.isnan(numeric):
        return 0.0
    return max(-3.0, min(3.0, numeric))


def velocity_score(records: Iterable, now: datetime) -> SubScore:
    """Compare points completed in the last 7 days against the 7 days before."""
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)

    recent = 0.0
    previous = 0.0
    for record in records:
        if week_ago <= record.completed_at < now:
            recent += record.points_completed or 0
        elif two_weeks_ago <= record.completed_at < week_ago:
            previous += record.points_completed or 0

    if previous == 0:
        return SubScore.unavailable()

    change = (recent - previous) / previous
    if change > 0.5:
        return SubScore.of(80)
    if change > 0.3:
        return SubScore.of(60)
    if change > 0.1:
        return SubScore.of(40)
    if change < -0.3:
        return SubScore.of(70)
    return SubScore.of(20)


def mood_score(records: Iterable, now: datetime) -> SubScore:
    week_ago = now - timedelta(days=7)
    moods = [
        normalize_mood(record.mood_value) for record in records
        if record.timestamp >= week_ago and record.mood_value is not None
    ]
    if not moods:
        return SubScore.unavailable()

    average = sum(moods) / len(moods)
    # -3 maps to 100, 0 to 50, +3 to 0
    return SubScore.of(round_half_up(50 - average * 16.67))


def work_hours_score(sessions: Iterable, now: datetime) -> SubScore:
    week_ago = now - timedelta(days=7)
    window = [s for s in sessions if s.start_time >= week_ago]
    if not window:
        return SubScore.unavailable()

    total_hours = sum(s.duration_minutes or 0 for s in window) / 60
    average_per_day = total_hours / 7

    if average_per_day > 10:
        return SubScore.of(90)
    if average_per_day > 8:
        return SubScore.of(60)
    if average_per_day > 6:
        return SubScore.of(30)
    if average_per_day < 2:
        return SubScore.of(20)  # too little work can signal disengagement
    return SubScore.of(10)


def break_score(breaks: Iterable, sessions: Iterable, now: datetime) -> SubScore:
    """Score today's break habits, escalated by long unbroken sessions this week."""
    today = now.date()
    midnight = datetime.combine(today, datetime.min.time())
    week_ago = now - timedelta(days=7)
    sessions = list(sessions)

    valid_breaks = [b for b in breaks if b.date == today.isoformat() and b.is_valid_break]
    total_work_minutes = sum(s.duration_minutes or 0 for s in sessions if s.start_time >= midnight)
    if total_work_minutes == 0:
        return SubScore.unavailable()

    breaks_per_hour = len(valid_breaks) / (total_work_minutes / 60)
    if breaks_per_hour < 0.3:
        score = 90
    elif breaks_per_hour < 0.5:
        score = 80
    elif breaks_per_hour < 1:
        score = 50
    else:
        score = 10

    if valid_breaks:
        average_break = sum(b.duration_seconds or 0 for b in valid_breaks) / len(valid_breaks)
        if average_break < 120:
            score = min(100, score + 20)  # rushed breaks

    if total_work_minutes > 120 and not valid_breaks:
        score = 95
    elif total_work_minutes > 60 and not valid_breaks:
        score = max(score, 70)

    long_sessions = sum(
        1 for s in sessions
        if s.start_time >= week_ago and (s.duration_minutes or 0) > 180 and (s.breaks_taken or 0) == 0
    )
    if long_sessions > 2:
        score = max(score, 85)

    return SubScore.of(score)


def commit_pattern_score(analytics: Optional[CommitAnalytics]) -> SubScore:
    if analytics is None or analytics.total_commits == 0:
        return SubScore.unavailable()

    score = analytics.late_night_ratio * 40
    score += analytics.weekend_ratio * 30

    average = analytics.average_commits_per_day
    if average < 0.5:
        score += 10
    elif average > 10:
        score += 20

    if analytics.recent_average(3) > average * 1.5:
        score += 15  # recent spike

    return SubScore.of(score)


def coding_time_score(analytics: Optional[CodingTimeAnalytics]) -> SubScore:
    if analytics is None or not analytics.is_connected or not analytics.coding_trend:
        return SubScore.unavailable()

    score = 0
    average_hours = analytics.average_daily_hours
    if average_hours > 10:
        score += 30
    elif average_hours > 8:
        score += 20
    elif average_hours > 6:
        score += 10

    if average_hours < 1:
        score += 10

    hours = np.array([day['hours'] for day in analytics.coding_trend], dtype=float)
    if len(hours) > 3 and hours.std() < 1 and hours.mean() > 6:
        score += 15  # sustained long days with little variation

    weekend_days = sum(
        1 for day in analytics.coding_trend
        if datetime.strptime(day['date'], '%Y-%m-%d').weekday() >= 5
    )
    if weekend_days / len(analytics.coding_trend) > 0.3:
        score += 15

    return SubScore.of(score)
