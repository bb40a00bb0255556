# bloodbank/hospital/routes.py

from flask import jsonify
from flask_login import current_user

from bloodbank.hospital import bp
from bloodbank.auth.decorators import hospital_required
from bloodbank.errors import ValidationError
from bloodbank.extensions import limiter
from bloodbank.forms import BloodRequestForm
from bloodbank.utils import form_errors
from bloodbank import services


@bp.route('/requests', methods=['POST'])
@hospital_required
@limiter.limit("30 per minute")
def send_blood_request():
    """Hospital sends a blood request to a lab."""
    form = BloodRequestForm.from_json()
    if form.missing_fields():
        raise ValidationError(details=form.missing_fields())
    if not form.validate():
        raise ValidationError(form_errors(form))

    blood_request = services.submit_request(
        current_user,
        lab_id=form.lab_id.data,
        blood_group=form.blood_group.data,
        units=form.units.data
    )
    return jsonify({
        'message': 'Blood request sent successfully',
        'request': blood_request.to_dict()
    })


@bp.route('/requests')
@limiter.exempt
@hospital_required
def request_history():
    """Hospital's own requests, newest first, with lab contact details."""
    requests = services.list_hospital_requests(current_user)
    return jsonify([r.to_dict(populate='lab') for r in requests])
