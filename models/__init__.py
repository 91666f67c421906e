# Import all models to ensure they are registered with SQLAlchemy
from .user import User
from .activity import VelocityRecord, MoodRecord, WorkSession, BreakRecord
from .integrations import (
    SourceControlAccount,
    CommitRecord,
    CodingTimeConnection,
    CodingTimeRecord,
)
from .burnout import BurnoutScore, UserSettings

# Make models available at package level
__all__ = [
    'User',
    'VelocityRecord',
    'MoodRecord',
    'WorkSession',
    'BreakRecord',
    'SourceControlAccount',
    'CommitRecord',
    'CodingTimeConnection',
    'CodingTimeRecord',
    'BurnoutScore',
    'UserSettings',
]
