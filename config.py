import os
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from .env file, fallback to .env.development
env_path = os.path.join(os.path.dirname(__file__), '.env')
if not os.path.exists(env_path):
    env_path = os.path.join(os.path.dirname(__file__), '.env.development')
load_dotenv(env_path)


def _database_url():
    # Render and Heroku still hand out the old postgres:// scheme
    url = os.environ.get('DATABASE_URL')
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration class"""
    ENV_NAME = 'default'

    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        if os.environ.get('FLASK_ENV') == 'production':
            raise ValueError("SECRET_KEY must be set in production")
        SECRET_KEY = 'dev-secret-key'

    SQLALCHEMY_DATABASE_URI = _database_url() or 'sqlite:///' + os.path.join(basedir, 'blood_bank.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_POOL_SIZE = int(os.environ.get('SQLALCHEMY_POOL_SIZE', 10))
    SQLALCHEMY_POOL_RECYCLE = 300
    SQLALCHEMY_POOL_TIMEOUT = 20
    SQLALCHEMY_MAX_OVERFLOW = 5
    SQLALCHEMY_CONNECT_TIMEOUT = 10
    DEBUG = os.environ.get('FLASK_ENV') == 'development'

    # Secure cookie settings
    SESSION_COOKIE_SECURE = os.environ.get('FLASK_ENV') == 'production'
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SECURE = os.environ.get('FLASK_ENV') == 'production'
    REMEMBER_COOKIE_HTTPONLY = True

    # Rate limiting
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379')
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_STRATEGY = 'fixed-window'
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_DEFAULT = "200 per day"

    # Timezone for timestamps in API responses and CLI reports
    TIMEZONE = os.environ.get('TIMEZONE', 'Asia/Kolkata')

    # Blood request lifecycle
    ACCEPT_MAX_RETRIES = int(os.environ.get('ACCEPT_MAX_RETRIES', 3))
    DEFAULT_REJECTION_REASON = 'Not specified'

    LOG_TO_STDOUT = os.environ.get('LOG_TO_STDOUT', 'false').lower() == 'true'


class ProductionConfig(Config):
    """Production configuration"""
    ENV_NAME = 'production'
    DEBUG = False
    TESTING = False

    SQLALCHEMY_DATABASE_URI = _database_url()

    # Shared limiter storage across gunicorn workers
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or Config.REDIS_URL

    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SECURE = True
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_DURATION = 3600 * 24 * 7  # 7 days in production

    LOG_TO_STDOUT = os.environ.get('LOG_TO_STDOUT', 'true').lower() == 'true'


class DevelopmentConfig(Config):
    """Development configuration"""
    ENV_NAME = 'development'
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""
    ENV_NAME = 'testing'
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False
    TIMEZONE = 'UTC'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration class based on environment"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
