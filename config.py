import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv("secrets.env")


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Secret key for session management
    SECRET_KEY = os.environ.get("SECRET_KEY") or "touchgrass-secret-key-123"

    # Database configuration
    basedir = os.path.abspath(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL"
    ) or "sqlite:///" + os.path.join(basedir, "touchgrass.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT") or 25)
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", False)
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER")

    # Per-user settings defaults (used until the user saves their own)
    DEFAULT_RISK_THRESHOLD = int(os.environ.get("DEFAULT_RISK_THRESHOLD") or 75)
    DEFAULT_NOTIFICATIONS_ENABLED = _env_bool("DEFAULT_NOTIFICATIONS_ENABLED", True)
    DEFAULT_WORKING_HOURS_START = 9
    DEFAULT_WORKING_HOURS_END = 17
    DEFAULT_TARGET_BREAK_INTERVAL = 120  # minutes

    # Scoring windows
    COMMIT_ANALYTICS_DAYS = int(os.environ.get("COMMIT_ANALYTICS_DAYS") or 365)
    CODING_TIME_DAYS = int(os.environ.get("CODING_TIME_DAYS") or 7)
    BURNOUT_HISTORY_DAYS = 30
    VELOCITY_METRICS_DAYS = 30

    # Breaks left open longer than this are closed by the cleanup job
    ORPHANED_BREAK_MAX_AGE_MINUTES = int(
        os.environ.get("ORPHANED_BREAK_MAX_AGE_MINUTES") or 60
    )

    # Send an email when the notification gate fires
    BURNOUT_ALERT_EMAILS = _env_bool("BURNOUT_ALERT_EMAILS", False)
