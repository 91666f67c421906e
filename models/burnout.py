from datetime import datetime
from extensions import db


class BurnoutScore(db.Model):
    __tablename__ = 'burnout_scores'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'date', name='uq_burnout_user_date'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    risk_score = db.Column(db.Integer, nullable=False)
    factors = db.Column(db.JSON, nullable=False)
    notification_sent = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'date': self.date,
            'riskScore': self.risk_score,
            'factors': self.factors,
            'notificationSent': self.notification_sent,
        }

    def __repr__(self):
        return f'<BurnoutScore {self.date} {self.risk_score}>'


class UserSettings(db.Model):
    __tablename__ = 'user_settings'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True)
    risk_threshold = db.Column(db.Integer, nullable=False, default=75)
    notifications_enabled = db.Column(db.Boolean, nullable=False, default=True)
    working_hours_start = db.Column(db.Integer, nullable=False, default=9)
    working_hours_end = db.Column(db.Integer, nullable=False, default=17)
    target_break_interval = db.Column(db.Integer, nullable=False, default=120)

    def to_dict(self):
        return {
            'riskThreshold': self.risk_threshold,
            'notificationsEnabled': self.notifications_enabled,
            'workingHoursStart': self.working_hours_start,
            'workingHoursEnd': self.working_hours_end,
            'targetBreakInterval': self.target_break_interval,
        }

    def __repr__(self):
        return f'<UserSettings user={self.user_id} threshold={self.risk_threshold}>'
