from flask import Blueprint

bp = Blueprint('hospital', __name__)

from bloodbank.hospital import routes  # noqa: E402,F401
