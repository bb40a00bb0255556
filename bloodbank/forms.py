from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import (
    StringField,
    PasswordField,
    IntegerField,
    SelectField,
    BooleanField
)
from wtforms.validators import DataRequired, NumberRange, Length, Optional
from bloodbank.models import BLOOD_GROUPS, MAX_INTEGER


class ApiForm(FlaskForm):
    """Base form fed from a JSON request body.

    ``FIELD_ALIASES`` maps the camelCase keys sent by the dashboard onto
    the form's field names.
    """
    FIELD_ALIASES = {}

    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, payload=None):
        if payload is None:
            payload = request.get_json(silent=True) or {}
        if not isinstance(payload, dict):
            payload = {}
        formdata = MultiDict()
        for key, value in payload.items():
            if value is None or value is False:
                continue
            if value is True:
                value = 'y'
            # Stringify so 2.5 fails integer coercion instead of truncating
            formdata[cls.FIELD_ALIASES.get(key, key)] = str(value)
        return cls(formdata=formdata)


def blood_group_choices():
    return [(group, group) for group in BLOOD_GROUPS]


class BloodRequestForm(ApiForm):
    """Hospital submission of a blood request.

    Fields:
        lab_id: Target blood lab
        blood_group: One of the eight ABO/Rh groups
        units: Number of units, at least 1
    """
    FIELD_ALIASES = {
        'labId': 'lab_id',
        'bloodLab': 'lab_id',
        'bloodGroup': 'blood_group',
    }
    REQUIRED = ('lab_id', 'blood_group', 'units')

    lab_id = IntegerField('Blood Lab', validators=[
        DataRequired(),
        NumberRange(min=1, max=MAX_INTEGER, message="Selected blood lab does not exist")
    ])
    blood_group = SelectField(
        'Blood Group',
        choices=blood_group_choices(),
        validators=[DataRequired()]
    )
    units = IntegerField('Units', validators=[
        DataRequired(),
        NumberRange(
            min=1,
            max=MAX_INTEGER,
            message=f"Units must be between 1 and {MAX_INTEGER}"
        )
    ])

    def missing_fields(self):
        return [name for name in self.REQUIRED if not self[name].data]


class RejectRequestForm(ApiForm):
    reason = StringField('Reason', validators=[Optional(), Length(max=500)])


class StockForm(ApiForm):
    """Add or remove units of one blood group."""
    FIELD_ALIASES = {
        'bloodGroup': 'blood_group',
        'quantity': 'units',
    }

    blood_group = SelectField(
        'Blood Group',
        choices=blood_group_choices(),
        validators=[DataRequired()]
    )
    units = IntegerField('Units', validators=[
        DataRequired(),
        NumberRange(
            min=1,
            max=MAX_INTEGER,
            message=f"Units must be between 1 and {MAX_INTEGER}"
        )
    ])


class LoginForm(ApiForm):
    """Form for facility login.

    Fields:
        email: Facility email
        password: Password field
        remember_me: Remember login flag
    """
    FIELD_ALIASES = {'rememberMe': 'remember_me'}

    email = StringField(
        'Email',
        validators=[DataRequired(message='Email is required')]
    )
    password = PasswordField(
        'Password',
        validators=[DataRequired(message='Password is required')]
    )
    remember_me = BooleanField('Remember Me')
