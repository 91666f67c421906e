from datetime import datetime
from functools import wraps
from flask import jsonify, request
from flask_login import current_user


def login_required_api(f):
    """API route decorator to require authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({
                'status': 'error',
                'message': 'Authentication required'
            }), 401
        return f(*args, **kwargs)
    return decorated_function


def parse_timestamp(value):
    """Parse an ISO-8601 string or epoch milliseconds into a naive local datetime."""
    if value is None or value == '':
        return datetime.now()
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000)
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def get_days_arg(default, maximum=365):
    """Read a ?days= query argument, falling back to the default when invalid."""
    days = request.args.get('days', default, type=int)
    if days is None or days < 1:
        return default
    return min(days, maximum)
