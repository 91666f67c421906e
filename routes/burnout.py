from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user

from forms import SettingsForm
from services.burnout_engine import calculate_burnout_score
from services.errors import AuthenticationError
from services.factors import BurnoutFactors
from services.score_store import (
    get_history,
    get_score,
    get_user_settings,
    reset_scores,
    update_user_settings,
)
from utils.helpers import get_days_arg, login_required_api
from utils.notifications import NotificationManager

# Create blueprint
burnout_bp = Blueprint('burnout', __name__)


def _score_payload(record):
    payload = record.to_dict()
    # Normalize rows written by older releases
    payload['factors'] = BurnoutFactors.from_dict(record.factors or {}).to_dict()
    return payload


@burnout_bp.route('/calculate', methods=['POST'])
@login_required_api
def calculate():
    try:
        result = calculate_burnout_score(current_user.id)
    except AuthenticationError as e:
        return jsonify({'status': 'error', 'message': str(e)}), 401
    except Exception as e:
        current_app.logger.error(f'Error calculating burnout score: {str(e)}', exc_info=True)
        return jsonify({
            'status': 'error',
            'message': 'Could not store the burnout score'
        }), 500

    if result.should_notify and current_app.config.get('BURNOUT_ALERT_EMAILS'):
        NotificationManager.send_burnout_alert(current_user, result.risk_score, result.factors.to_dict())

    return jsonify(result.to_dict())


@burnout_bp.route('/current')
@login_required_api
def current():
    record = get_score(current_user.id, datetime.now().date().isoformat())
    if record is None:
        return jsonify({'status': 'success', 'score': None})
    return jsonify({'status': 'success', 'score': _score_payload(record)})


@burnout_bp.route('/history')
@login_required_api
def history():
    days = get_days_arg(current_app.config.get('BURNOUT_HISTORY_DAYS', 30))
    records = get_history(current_user.id, datetime.now().date(), days)
    return jsonify({
        'status': 'success',
        'days': days,
        'scores': [_score_payload(record) for record in records]
    })


@burnout_bp.route('/settings', methods=['GET', 'POST'])
@login_required_api
def settings():
    if request.method == 'GET':
        return jsonify({'status': 'success', 'settings': get_user_settings(current_user.id).to_dict()})

    submitted = request.get_json(silent=True) or request.form.to_dict()
    if not isinstance(submitted, dict):
        return jsonify({'status': 'error', 'message': 'Settings must be a JSON object'}), 400
    form, unknown = SettingsForm.from_payload(submitted)
    if unknown:
        return jsonify({
            'status': 'error',
            'message': f"Unknown settings: {', '.join(unknown)}"
        }), 400
    if not form.validate():
        return jsonify({'status': 'error', 'errors': form.errors}), 400

    try:
        saved = update_user_settings(current_user.id, **form.changed_fields())
    except Exception as e:
        current_app.logger.error(f'Error updating settings: {str(e)}', exc_info=True)
        return jsonify({'status': 'error', 'message': 'Could not save settings'}), 500

    return jsonify({'status': 'success', 'settings': saved.to_dict()})


@burnout_bp.route('/reset', methods=['POST'])
@login_required_api
def reset():
    deleted = reset_scores(current_user.id)
    current_app.logger.info(f'User {current_user.id} reset {deleted} burnout scores')
    return jsonify({'status': 'success', 'deleted': deleted})
