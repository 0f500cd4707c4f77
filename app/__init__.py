"""
CacEasy Rewards Backend
Flask application factory
"""
import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS

from .extensions import db, migrate, limiter
from .config import get_config, validate_config
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, config_overrides: dict = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)
        config_overrides: Extra config values applied after the config class

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    # Setup logging before anything else
    setup_logging()

    app = Flask(__name__)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    validate_config(config_name)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    CORS(app, origins=app.config['CORS_ORIGINS'], allow_headers=[
        'Content-Type', 'Authorization', 'X-Admin-Key', 'X-Request-ID'
    ])

    # Lock timeout / SQLite pragmas on every pooled connection
    from .utils.locking import configure_engine
    with app.app_context():
        configure_engine(db.engine, app.config.get('DB_LOCK_TIMEOUT_MS'))

    # Initialize request ID tracking for request tracing
    from .middleware import init_request_id_tracking
    init_request_id_tracking(app)

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Register error handlers
    register_error_handlers(app)

    @app.route('/health')
    def health_check():
        return {'status': 'ok'}

    @app.route('/version')
    def version():
        return {'version': app.config['API_VERSION'], 'env': config_name}

    logger.info(f"Rewards backend created (config={config_name})")
    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    # Auth
    from .api.auth import auth_bp

    # Redemption
    from .api.scan import scan_bp
    from .api.dealer import dealer_bp

    # Wallets
    from .api.users import users_bp

    # Provisioning
    from .api.batches import batches_bp
    from .api.coupons import coupons_bp

    # Admin API
    from .api.admin import admin_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(scan_bp, url_prefix='/scan')
    app.register_blueprint(dealer_bp, url_prefix='/dealer')
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(batches_bp, url_prefix='/batches')
    app.register_blueprint(coupons_bp, url_prefix='/coupons')
    app.register_blueprint(admin_bp, url_prefix='/admin')


def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from .utils.errors import error_response, from_exception, ErrorCode
    from .utils.exceptions import RewardsError

    @app.errorhandler(RewardsError)
    def rewards_error(error):
        return from_exception(error)

    @app.errorhandler(400)
    def bad_request(error):
        return error_response('Bad request', ErrorCode.INVALID_REQUEST, 400, log_error=False)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Not found', ErrorCode.NOT_FOUND, 404, log_error=False)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': {'message': 'Method not allowed', 'code': 'METHOD_NOT_ALLOWED'}}), 405

    @app.errorhandler(429)
    def rate_limited(error):
        return error_response(
            'Too many requests', ErrorCode.RATE_LIMITED, 429, log_error=True,
            details={'limit': str(getattr(error, 'description', ''))}
        )

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return error_response('Internal server error', ErrorCode.INTERNAL_ERROR, 500)
