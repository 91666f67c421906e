import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

import git
from flask import current_app

from extensions import db
from models.integrations import CommitRecord, SourceControlAccount
from services.errors import SourceUnavailableError

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']
TREND_DAYS = 30


@dataclass
class CommitAnalytics:
    total_commits: int = 0
    late_night_commits: int = 0
    weekend_commits: int = 0
    average_commits_per_day: float = 0.0
    weekly_pattern: Dict[str, int] = field(default_factory=dict)
    hourly_pattern: Dict[str, int] = field(default_factory=dict)
    # Oldest first, one entry per calendar day
    recent_commit_trend: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def late_night_ratio(self) -> float:
        return self.late_night_commits / max(self.total_commits, 1)

    @property
    def weekend_ratio(self) -> float:
        return self.weekend_commits / max(self.total_commits, 1)

    def recent_average(self, days: int = 3) -> float:
        recent = self.recent_commit_trend[-days:]
        return sum(day['commits'] for day in recent) / days

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalCommits': self.total_commits,
            'lateNightCommits': self.late_night_commits,
            'weekendCommits': self.weekend_commits,
            'averageCommitsPerDay': self.average_commits_per_day,
            'weeklyPattern': self.weekly_pattern,
            'hourlyPattern': self.hourly_pattern,
            'recentCommitTrend': self.recent_commit_trend,
        }


def is_late_night_commit(commit_time: datetime) -> bool:
    """Check if commit was made late at night (10 PM to 6 AM inclusive)."""
    return commit_time.hour >= 22 or commit_time.hour <= 6


def is_weekend_commit(commit_time: datetime) -> bool:
    """Check if commit was made on a weekend."""
    return commit_time.weekday() >= 5  # 5=Saturday, 6=Sunday


def build_commit_analytics(timestamps: Iterable[datetime], now: datetime, days: int) -> CommitAnalytics:
    """Summarize commit timing over the trailing ``days`` window.

    Timestamps are wall-clock times in the committer's timezone.
    """
    since = now - timedelta(days=days)
    commit_times = [ts for ts in timestamps if ts >= since]

    weekly = Counter(WEEKDAY_NAMES[ts.weekday()] for ts in commit_times)
    hourly = Counter(ts.hour for ts in commit_times)
    per_day = Counter(ts.date() for ts in commit_times)

    trend = []
    for offset in range(TREND_DAYS - 1, -1, -1):
        day = (now - timedelta(days=offset)).date()
        trend.append({'date': day.isoformat(), 'commits': per_day.get(day, 0)})

    return CommitAnalytics(
        total_commits=len(commit_times),
        late_night_commits=sum(1 for ts in commit_times if is_late_night_commit(ts)),
        weekend_commits=sum(1 for ts in commit_times if is_weekend_commit(ts)),
        average_commits_per_day=len(commit_times) / days if days else 0.0,
        weekly_pattern={name: weekly.get(name, 0) for name in WEEKDAY_NAMES},
        hourly_pattern={str(hour): hourly.get(hour, 0) for hour in range(24)},
        recent_commit_trend=trend,
    )


def get_commit_analytics(user_id: int, now: Optional[datetime] = None,
                         days: Optional[int] = None) -> CommitAnalytics:
    """Commit analytics for a user's connected source-control account."""
    account = SourceControlAccount.query.filter_by(user_id=user_id).first()
    if account is None:
        raise SourceUnavailableError('commitPatterns', 'no source-control account connected')

    now = now or datetime.now()
    days = days or current_app.config.get('COMMIT_ANALYTICS_DAYS', 365)
    since = now - timedelta(days=days)

    timestamps = [
        row.timestamp for row in
        db.session.query(CommitRecord.timestamp)
        .filter(CommitRecord.user_id == user_id, CommitRecord.timestamp >= since)
        .all()
    ]
    return build_commit_analytics(timestamps, now, days)


def store_commits(account: SourceControlAccount, commits: List[Dict[str, Any]]) -> int:
    """Insert commits for an account, skipping SHAs already stored.

    Returns the number of new rows.
    """
    existing = {
        row.sha for row in
        db.session.query(CommitRecord.sha).filter_by(username=account.username).all()
    }

    added = 0
    for commit in commits:
        if commit['sha'] in existing:
            continue
        existing.add(commit['sha'])
        db.session.add(CommitRecord(
            user_id=account.user_id,
            username=account.username,
            sha=commit['sha'],
            timestamp=commit['timestamp'],
            repository=commit.get('repository'),
            message=commit.get('message'),
            additions=commit.get('additions'),
            deletions=commit.get('deletions'),
            files_changed=commit.get('files_changed'),
        ))
        added += 1

    account.last_sync = datetime.now()
    try:
        db.session.commit()
    except Exception as e:
        logger.error(f"Error storing commits for {account.username}: {str(e)}")
        db.session.rollback()
        raise

    logger.info(f"Stored {added} new of {len(commits)} commits for {account.username}")
    return added


class GitAnalyzer:
    """Reads commits authored by a connected account out of a local clone."""

    def __init__(self):
        self.repo: Optional[git.Repo] = None

    def _to_wall_clock(self, dt: datetime) -> datetime:
        # Keep the committer's local hour, drop the offset
        return dt.replace(tzinfo=None)

    def collect_commits(self, repo_path: str, author: str, days_back: int = 60) -> List[Dict[str, Any]]:
        try:
            self.repo = git.Repo(repo_path)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            raise ValueError(f"Invalid git repository: {repo_path}")

        since_date = datetime.now() - timedelta(days=days_back)
        repository = self.repo.working_tree_dir or repo_path

        commits = []
        for commit in self.repo.iter_commits(since=since_date.isoformat(), author=author):
            stats = commit.stats.total
            commits.append({
                'sha': commit.hexsha,
                'message': commit.message,
                'timestamp': self._to_wall_clock(commit.authored_datetime),
                'repository': os.path.basename(os.path.normpath(str(repository))),
                'additions': stats.get('insertions', 0),
                'deletions': stats.get('deletions', 0),
                'files_changed': stats.get('files', 0),
            })
        return commits

    def import_repository(self, repo_path: str, account: SourceControlAccount, days_back: int = 60) -> int:
        commits = self.collect_commits(repo_path, account.username, days_back)
        return store_commits(account, commits)
