from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user

from services.break_tracker import (
    break_analytics,
    end_break,
    process_presence,
    start_break,
    today_break_stats,
)
from utils.helpers import get_days_arg, login_required_api, parse_timestamp

# Create blueprint
breaks_bp = Blueprint('breaks', __name__)


def _timestamp_from_request():
    payload = request.get_json(silent=True) or {}
    return payload, parse_timestamp(payload.get('timestamp'))


@breaks_bp.route('/start', methods=['POST'])
@login_required_api
def start():
    try:
        _, at = _timestamp_from_request()
    except ValueError:
        return jsonify({'status': 'error', 'message': 'Invalid timestamp'}), 400

    break_record = start_break(current_user.id, at)
    return jsonify({'status': 'success', 'breakId': break_record.id})


@breaks_bp.route('/end', methods=['POST'])
@login_required_api
def end():
    try:
        _, at = _timestamp_from_request()
    except ValueError:
        return jsonify({'status': 'error', 'message': 'Invalid timestamp'}), 400

    summary = end_break(current_user.id, at)
    if summary is None:
        # No open break: treat the event as the start of one
        start_break(current_user.id, at)
        return jsonify({'status': 'success', 'break': None})
    return jsonify({'status': 'success', 'break': summary})


@breaks_bp.route('/presence', methods=['POST'])
@login_required_api
def presence():
    try:
        payload, at = _timestamp_from_request()
    except ValueError:
        return jsonify({'status': 'error', 'message': 'Invalid timestamp'}), 400

    if 'isAtDesk' not in payload:
        return jsonify({'status': 'error', 'message': 'isAtDesk is required'}), 400

    result = process_presence(current_user.id, bool(payload['isAtDesk']), at, payload.get('mood'))
    current_app.logger.debug(f'Presence update for user {current_user.id}: {result}')
    return jsonify({'status': 'success', **result})


@breaks_bp.route('/today')
@login_required_api
def today():
    return jsonify({'status': 'success', 'stats': today_break_stats(current_user.id)})


@breaks_bp.route('/analytics')
@login_required_api
def analytics():
    days = get_days_arg(7, maximum=90)
    return jsonify({'status': 'success', 'analytics': break_analytics(current_user.id, days)})
