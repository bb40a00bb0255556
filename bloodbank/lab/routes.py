# bloodbank/lab/routes.py

from flask import jsonify
from flask_login import current_user

from bloodbank.lab import bp
from bloodbank.auth.decorators import lab_required
from bloodbank.errors import ValidationError
from bloodbank.extensions import limiter
from bloodbank.forms import RejectRequestForm
from bloodbank.utils import form_errors
from bloodbank import services


@bp.route('/requests')
@limiter.exempt
@lab_required
def incoming_requests():
    """Requests addressed to this lab, newest first, with hospital details."""
    requests = services.list_lab_requests(current_user)
    return jsonify([r.to_dict(populate='hospital') for r in requests])


@bp.route('/requests/<int:request_id>/accept', methods=['PUT', 'POST'])
@lab_required
def accept_blood_request(request_id):
    """Accept a request, reserving units from this lab's stock."""
    blood_request = services.accept_request(current_user, request_id)
    return jsonify({
        'message': 'Request Accepted',
        'request': blood_request.to_dict()
    })


@bp.route('/requests/<int:request_id>/reject', methods=['PUT', 'POST'])
@lab_required
def reject_blood_request(request_id):
    """Reject a request with an optional reason."""
    form = RejectRequestForm.from_json()
    if not form.validate():
        raise ValidationError(form_errors(form))

    blood_request = services.reject_request(
        current_user,
        request_id,
        reason=form.reason.data
    )
    return jsonify({
        'message': 'Request Rejected',
        'request': blood_request.to_dict()
    })
