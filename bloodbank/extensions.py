# bloodbank/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy.engine.url import make_url


def engine_options(config):
    """Build SQLALCHEMY_ENGINE_OPTIONS for the configured database.

    Args:
        config: Flask config mapping

    Returns:
        dict: keyword arguments for ``create_engine``
    """
    # Common options safe for all databases
    options = {
        'pool_pre_ping': True,
    }

    uri = config.get('SQLALCHEMY_DATABASE_URI')
    if not uri:
        return options
    url = make_url(uri)

    if url.drivername.startswith('sqlite'):
        # Request threads share pooled connections; writers wait on the
        # database lock instead of failing straight away.
        options['connect_args'] = {
            'check_same_thread': False,
            'timeout': config.get('SQLALCHEMY_CONNECT_TIMEOUT', 10) * 3,
        }
        return options

    options.update({
        'pool_size': config.get('SQLALCHEMY_POOL_SIZE', 10),
        'pool_recycle': config.get('SQLALCHEMY_POOL_RECYCLE', 300),
        'pool_timeout': config.get('SQLALCHEMY_POOL_TIMEOUT', 20),
        'max_overflow': config.get('SQLALCHEMY_MAX_OVERFLOW', 5),
    })

    if url.drivername.startswith('postgresql'):
        options['connect_args'] = {
            'connect_timeout': config.get('SQLALCHEMY_CONNECT_TIMEOUT', 10),
            'keepalives': 1,
            'keepalives_idle': 30,
            'keepalives_interval': 10,
            'keepalives_count': 5
        }
    elif url.drivername.startswith('mysql'):
        options['connect_args'] = {
            'connect_timeout': config.get('SQLALCHEMY_CONNECT_TIMEOUT', 10)
        }

    return options


# Initialize Flask extensions
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)
