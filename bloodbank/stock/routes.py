# bloodbank/stock/routes.py

from flask import jsonify
from flask_login import current_user, login_required

from bloodbank.stock import bp
from bloodbank.errors import ValidationError
from bloodbank.extensions import limiter
from bloodbank.forms import StockForm
from bloodbank.models import BloodStock
from bloodbank.utils import form_errors
from bloodbank import services


def _stock_form():
    form = StockForm.from_json()
    if not form.validate():
        raise ValidationError(form_errors(form))
    return form


@bp.route('/add', methods=['POST'])
@login_required
def add_blood_stock():
    form = _stock_form()
    record = services.add_stock(current_user, form.blood_group.data, form.units.data)
    return jsonify({'message': 'Blood stock added', 'stock': record.to_dict()})


@bp.route('/remove', methods=['POST'])
@login_required
def remove_blood_stock():
    form = _stock_form()
    record = services.remove_stock(current_user, form.blood_group.data, form.units.data)
    return jsonify({'message': 'Blood stock removed', 'stock': record.to_dict()})


@bp.route('/stock')
@limiter.exempt
@login_required
def blood_stock():
    levels = BloodStock.levels_for(current_user.id)
    return jsonify({
        'stock': [
            {'bloodGroup': group, 'quantity': quantity}
            for group, quantity in levels.items()
        ],
        'total': sum(levels.values())
    })
