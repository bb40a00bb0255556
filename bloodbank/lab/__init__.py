from flask import Blueprint

bp = Blueprint('lab', __name__)

from bloodbank.lab import routes  # noqa: E402,F401
