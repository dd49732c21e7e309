"""Flask application factory."""
from flask import Flask, request, jsonify
from app.database import init_db
import logging


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.debug and not app.testing:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
        )

    # Initialize Sentry for error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=app.config.get('ENV', 'production'),
        )

    # Initialize database
    init_db(app)

    # Register blueprints
    from app.blueprints.pricing import pricing_bp
    from app.blueprints.orders import orders_bp
    app.register_blueprint(pricing_bp)
    app.register_blueprint(orders_bp)

    # CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    # Error Handlers
    from app.exceptions import SalesOrderError

    @app.errorhandler(SalesOrderError)
    def handle_sales_order_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"SalesOrderError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"SalesOrderError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception on {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    return app
