from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField, IntegerField
from wtforms.validators import NumberRange, Optional

# JSON keys as returned by GET /burnout/settings
SETTINGS_KEYS = {
    'riskThreshold': 'risk_threshold',
    'notificationsEnabled': 'notifications_enabled',
    'workingHoursStart': 'working_hours_start',
    'workingHoursEnd': 'working_hours_end',
    'targetBreakInterval': 'target_break_interval',
}


class SettingsForm(FlaskForm):
    """Validates burnout alert settings posted as JSON or form data."""

    class Meta:
        csrf = False

    risk_threshold = IntegerField(
        "Risk threshold", validators=[Optional(), NumberRange(min=0, max=100)]
    )
    notifications_enabled = BooleanField("Notifications enabled")
    working_hours_start = IntegerField(
        "Working hours start", validators=[Optional(), NumberRange(min=0, max=23)]
    )
    working_hours_end = IntegerField(
        "Working hours end", validators=[Optional(), NumberRange(min=0, max=23)]
    )
    target_break_interval = IntegerField(
        "Target break interval (minutes)", validators=[Optional(), NumberRange(min=1, max=480)]
    )

    @classmethod
    def from_payload(cls, payload):
        """Build the form from camelCase or snake_case keys.

        Returns the form and the sorted list of keys it does not know.
        """
        known = set(SETTINGS_KEYS.values())
        data = {}
        unknown = []
        for key, value in payload.items():
            name = SETTINGS_KEYS.get(key, key)
            if name in known:
                data[name] = value
            else:
                unknown.append(key)
        form = cls(formdata=MultiDict(data))
        form.submitted = set(data)
        return form, sorted(unknown)

    def changed_fields(self):
        """Field values for the settings the client actually sent."""
        return {field.name: field.data for field in self if field.name in self.submitted}
