"""Flask application factory."""
from flask import Flask, jsonify, request
from pos.database import Database
import os


def create_app(config_object='config.Config', overrides=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Initialize Sentry for error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize database
    Database(app)

    # Initialize Redis Cache
    from pos.services.cache_service import CacheService
    CacheService(app)

    # Setup Prometheus metrics instrumentation
    from pos.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Error Handlers
    from pos.exceptions import PosError

    @app.errorhandler(PosError)
    def handle_pos_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"PosError [{error.status_code}] {error.kind}: {error.message}")
        else:
            app.logger.info(f"PosError [{error.status_code}] {error.kind}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'kind': 'NotFound', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'kind': 'MethodNotAllowed', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        import traceback
        app.logger.error(f"Unhandled Exception on {request.path}: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'kind': 'InternalError', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from pos.blueprints.main import main_bp
    from pos.blueprints.products import products_bp
    from pos.blueprints.checkout import checkout_bp
    from pos.blueprints.bills import bills_bp
    from pos.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(bills_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from pos.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(f"Bill numbers: prefix={app.config.get('BILL_NUMBER_PREFIX')} "
                    f"width={app.config.get('BILL_NUMBER_WIDTH')}")

    return app
