from flask import Blueprint

bp = Blueprint('stock', __name__)

from bloodbank.stock import routes  # noqa: E402,F401
