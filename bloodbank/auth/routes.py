from flask import jsonify
from flask_login import current_user, login_user, logout_user, login_required
from bloodbank.auth import bp
from bloodbank.errors import ValidationError
from bloodbank.forms import LoginForm
from bloodbank.models import Facility
from bloodbank.extensions import limiter
from bloodbank.utils import form_errors


@bp.route('/login', methods=['POST'])
@limiter.limit("5 per minute")  # Protect against brute force
def login():
    form = LoginForm.from_json()
    if not form.validate():
        raise ValidationError(form_errors(form))

    facility = Facility.query.filter_by(
        email=form.email.data.strip().lower()
    ).first()
    if facility is None or not facility.check_password(form.password.data):
        return jsonify({
            'error': 'Unauthorized',
            'message': 'Invalid email or password'
        }), 401

    if not login_user(facility, remember=form.remember_me.data):
        return jsonify({
            'error': 'Unauthorized',
            'message': 'This facility account is disabled'
        }), 401

    return jsonify({'message': 'Logged in', 'facility': facility.to_dict()})


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out'})


@bp.route('/me')
@limiter.exempt
@login_required
def me():
    return jsonify(current_user.to_dict())
