from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user

from services.velocity import get_velocity_metrics, store_story_points
from utils.helpers import get_days_arg, login_required_api, parse_timestamp

# Create blueprint
velocity_bp = Blueprint('velocity', __name__)


@velocity_bp.route('/points', methods=['POST'])
@login_required_api
def points():
    payload = request.get_json(silent=True) or {}
    missing = [key for key in ('projectId', 'issueId', 'points') if payload.get(key) in (None, '')]
    if missing:
        return jsonify({'status': 'error', 'message': f"Missing fields: {', '.join(missing)}"}), 400

    try:
        completed_at = parse_timestamp(payload.get('completedAt'))
        points_completed = float(payload['points'])
    except (TypeError, ValueError):
        return jsonify({'status': 'error', 'message': 'Invalid points or completedAt'}), 400

    record = store_story_points(
        current_user.id,
        str(payload['projectId']),
        str(payload['issueId']),
        points_completed,
        completed_at,
    )
    current_app.logger.debug(f'Stored {record.points_completed} points for issue {record.issue_id}')
    return jsonify({'status': 'success', 'recordId': record.id})


@velocity_bp.route('/metrics')
@login_required_api
def metrics():
    days = get_days_arg(current_app.config.get('VELOCITY_METRICS_DAYS', 30))
    return jsonify({'status': 'success', 'metrics': get_velocity_metrics(current_user.id, days)})
