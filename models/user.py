from datetime import datetime
from flask_login import UserMixin
from extensions import db


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True)
    timezone = db.Column(db.String(64), default='UTC')
    created_at = db.Column(db.DateTime, default=datetime.now)

    burnout_scores = db.relationship('BurnoutScore', backref='user', lazy='dynamic')
    settings = db.relationship('UserSettings', backref='user', uselist=False)

    def __init__(self, username, email=None, timezone='UTC'):
        self.username = username
        self.email = email
        self.timezone = timezone

    def __repr__(self):
        return f'<User {self.username}>'
