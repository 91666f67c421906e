"""Raw activity records fed by the issue tracker and the webcam pipeline."""
from datetime import datetime
from extensions import db

# Breaks shorter than this do not count as rest
MIN_VALID_BREAK_SECONDS = 60


class VelocityRecord(db.Model):
    __tablename__ = 'velocity_records'
    __table_args__ = (
        db.UniqueConstraint('project_id', 'issue_id', name='uq_velocity_project_issue'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    project_id = db.Column(db.String(100))
    issue_id = db.Column(db.String(100))
    points_completed = db.Column(db.Float, nullable=False, default=0.0)
    completed_at = db.Column(db.DateTime, nullable=False, index=True)

    def __init__(self, user_id, points_completed, completed_at, project_id=None, issue_id=None):
        self.user_id = user_id
        self.points_completed = points_completed
        self.completed_at = completed_at
        self.project_id = project_id
        self.issue_id = issue_id

    def __repr__(self):
        return f'<VelocityRecord {self.points_completed} pts @ {self.completed_at}>'


class MoodRecord(db.Model):
    __tablename__ = 'mood_records'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, index=True)
    is_at_desk = db.Column(db.Boolean, default=True)
    # Older pipeline versions stored labels ("stressed"), newer ones numbers
    mood_value = db.Column(db.String(50))

    def __init__(self, user_id, timestamp, mood_value=None, is_at_desk=True):
        self.user_id = user_id
        self.timestamp = timestamp
        self.mood_value = None if mood_value is None else str(mood_value)
        self.is_at_desk = is_at_desk

    def __repr__(self):
        return f'<MoodRecord {self.mood_value} @ {self.timestamp}>'


class WorkSession(db.Model):
    __tablename__ = 'work_sessions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime)
    duration_minutes = db.Column(db.Integer)
    breaks_taken = db.Column(db.Integer, nullable=False, default=0)

    breaks = db.relationship('BreakRecord', backref='work_session', lazy='dynamic')

    def __init__(self, user_id, start_time, end_time=None, duration_minutes=None, breaks_taken=0):
        self.user_id = user_id
        self.start_time = start_time
        self.end_time = end_time
        self.duration_minutes = duration_minutes
        self.breaks_taken = breaks_taken

    @property
    def is_open(self):
        return self.end_time is None

    def close(self, at):
        self.end_time = at
        self.duration_minutes = int((at - self.start_time).total_seconds() // 60)

    def __repr__(self):
        return f'<WorkSession {self.start_time} ({self.duration_minutes} min)>'


class BreakRecord(db.Model):
    __tablename__ = 'break_records'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    work_session_id = db.Column(db.Integer, db.ForeignKey('work_sessions.id'))
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime)
    duration_seconds = db.Column(db.Integer)
    is_valid_break = db.Column(db.Boolean, nullable=False, default=False)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD

    def __init__(self, user_id, start_time, work_session_id=None):
        self.user_id = user_id
        self.start_time = start_time
        self.work_session_id = work_session_id
        self.is_valid_break = False
        self.date = start_time.date().isoformat()

    @property
    def is_open(self):
        return self.end_time is None

    def close(self, at):
        """Close the break and return True when it counts as a valid break."""
        self.end_time = at
        self.duration_seconds = int((at - self.start_time).total_seconds())
        self.is_valid_break = self.duration_seconds >= MIN_VALID_BREAK_SECONDS
        return self.is_valid_break

    def __repr__(self):
        return f'<BreakRecord {self.start_time} ({self.duration_seconds}s)>'
