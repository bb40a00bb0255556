# bloodbank/__init__.py

from flask import Flask, jsonify
from config import Config, ProductionConfig
from bloodbank.extensions import db, login_manager, migrate, limiter, engine_options
from bloodbank.errors import BloodBankError, ServerError
from bloodbank.models import Facility
from flask_migrate import upgrade
import os
import logging
from logging.handlers import RotatingFileHandler
from sqlalchemy.exc import SQLAlchemyError, OperationalError, DisconnectionError


def configure_logging(app):
    """Attach the production log handler to ``app.logger``."""
    if app.config['LOG_TO_STDOUT']:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.INFO)
        app.logger.addHandler(stream_handler)
    else:
        if not os.path.exists('logs'):
            os.mkdir('logs')
        file_handler = RotatingFileHandler('logs/blood_bank.log',
                                           maxBytes=10240000,
                                           backupCount=10)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s '
            '[in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

    app.logger.setLevel(logging.INFO)
    app.logger.info('Blood Bank Manager startup')


def create_app(config_class=Config, test_config=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Force production config if FLASK_ENV is production
    if os.environ.get('FLASK_ENV') == 'production':
        app.config.from_object(ProductionConfig)

    if test_config:
        app.config.update(test_config)

    if app.config.get('ENV_NAME') == 'production':
        configure_logging(app)

    app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', engine_options(app.config))

    # Initialize Flask extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db, render_as_batch=True)
    limiter.init_app(app)

    login_manager.session_protection = 'strong'

    @login_manager.user_loader
    def load_facility(facility_id):
        return db.session.get(Facility, int(facility_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({
            'error': 'Unauthorized',
            'message': 'Please log in to access this resource.'
        }), 401

    from bloodbank.auth import bp as auth_bp
    from bloodbank.hospital import bp as hospital_bp
    from bloodbank.lab import bp as lab_bp
    from bloodbank.stock import bp as stock_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(hospital_bp, url_prefix='/hospital')
    app.register_blueprint(lab_bp, url_prefix='/lab')
    app.register_blueprint(stock_bp, url_prefix='/blood')

    # Register CLI commands
    from bloodbank.cli import init_cli
    init_cli(app)

    with app.app_context():
        if app.config.get('ENV_NAME') == 'production':
            # Run migrations in production
            upgrade()
        else:
            # Just create tables in development
            db.create_all()

    @app.route('/health')
    @limiter.exempt
    def health_check():
        return jsonify({'status': 'healthy', 'message': 'Blood Bank API is running'})

    @app.errorhandler(BloodBankError)
    def handle_blood_bank_error(error):
        if error.status_code >= 500:
            app.logger.error(f'{error.kind}: {error.message}')
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'NotFoundError', 'message': 'Endpoint not found'}), 404

    @app.errorhandler(429)
    def handle_rate_limited(error):
        return jsonify({'error': 'RateLimited', 'message': str(error.description)}), 429

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error):
        app.logger.error(f'Database error occurred: {str(error)}')
        db.session.rollback()
        if isinstance(error, OperationalError):
            message = 'Database connection error. Please try again later.'
        elif isinstance(error, DisconnectionError):
            db.session.remove()  # Clean up the session
            message = 'Lost connection to database. Please try again.'
        else:
            message = 'An unexpected database error occurred.'
        return jsonify(ServerError(message).to_dict()), 500

    @app.teardown_appcontext
    def cleanup(resp_or_exc):
        """Ensure proper cleanup of database sessions"""
        db.session.remove()

    return app
