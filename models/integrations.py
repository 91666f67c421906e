from datetime import datetime
from extensions import db


class SourceControlAccount(db.Model):
    __tablename__ = 'source_control_accounts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    username = db.Column(db.String(200), nullable=False)
    last_sync = db.Column(db.DateTime)

    def __init__(self, user_id, username):
        self.user_id = user_id
        self.username = username

    def __repr__(self):
        return f'<SourceControlAccount {self.username}>'


class CommitRecord(db.Model):
    __tablename__ = 'commit_records'
    __table_args__ = (
        db.UniqueConstraint('username', 'sha', name='uq_commit_username_sha'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    username = db.Column(db.String(200), nullable=False)
    sha = db.Column(db.String(64), nullable=False)
    message = db.Column(db.Text)
    timestamp = db.Column(db.DateTime, nullable=False, index=True)
    repository = db.Column(db.String(200))
    additions = db.Column(db.Integer)
    deletions = db.Column(db.Integer)
    files_changed = db.Column(db.Integer)

    def __init__(self, user_id, username, sha, timestamp, repository=None, message=None,
                 additions=None, deletions=None, files_changed=None):
        self.user_id = user_id
        self.username = username
        self.sha = sha
        self.timestamp = timestamp
        self.repository = repository
        self.message = message
        self.additions = additions
        self.deletions = deletions
        self.files_changed = files_changed

    def __repr__(self):
        return f'<CommitRecord {self.sha[:7]}>'


class CodingTimeConnection(db.Model):
    __tablename__ = 'coding_time_connections'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_sync = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.now)

    def __init__(self, user_id, is_active=True):
        self.user_id = user_id
        self.is_active = is_active


class CodingTimeRecord(db.Model):
    __tablename__ = 'coding_time_records'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_coding_time_user_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD
    coding_time_seconds = db.Column(db.Float, nullable=False, default=0.0)
    # Lists of {"name": ..., "time": seconds}
    languages = db.Column(db.JSON, default=list)
    projects = db.Column(db.JSON, default=list)

    def __init__(self, user_id, date, coding_time_seconds, languages=None, projects=None):
        self.user_id = user_id
        self.date = date
        self.coding_time_seconds = coding_time_seconds
        self.languages = languages or []
        self.projects = projects or []

    def __repr__(self):
        return f'<CodingTimeRecord {self.date} {self.coding_time_seconds}s>'
