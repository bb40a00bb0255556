from functools import wraps
from flask import jsonify
from flask_login import current_user
from bloodbank.errors import ForbiddenError


def _role_required(check, role_name):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({
                    'error': 'Unauthorized',
                    'message': 'Please log in to access this resource.'
                }), 401

            if not check(current_user):
                raise ForbiddenError(f'Only {role_name} accounts can do this')

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def hospital_required(f):
    """Decorator to restrict access to hospital facilities.

    Returns 401 when nobody is logged in and 403 when the logged in
    facility is not a hospital.

    Args:
        f: The view function to decorate

    Returns:
        decorated_function: The decorated view function
    """
    return _role_required(lambda facility: facility.is_hospital(), 'hospital')(f)


def lab_required(f):
    """Decorator to restrict access to blood lab facilities.

    Args:
        f: The view function to decorate

    Returns:
        decorated_function: The decorated view function
    """
    return _role_required(lambda facility: facility.is_lab(), 'blood lab')(f)
