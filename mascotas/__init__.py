"""Flask application factory."""
from flask import Flask, request, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError, generate_csrf
from werkzeug.exceptions import HTTPException
import logging


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.debug and not app.testing:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    # Initialize CSRF protection
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'La sesión ha expirado. Recarga la página.'}), 400

    # Error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV', 'production')
        )

    # Redis cache for settings and catalog listings
    from mascotas.services.cache_service import init_cache
    init_cache(app)

    # REST backend client, shared so the connection pool is reused
    from mascotas.services.api_client import BackendClient
    app.extensions['backend'] = BackendClient(
        app.config['BACKEND_API_URL'],
        timeout=app.config.get('BACKEND_TIMEOUT', 10)
    )

    # Production: trust the reverse proxy's forwarded headers
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Identified caller (customer or admin) for each request
    from mascotas.middleware import load_user

    @app.before_request
    def before_request_handler():
        load_user()

    # Error Handlers
    from mascotas.exceptions import MascotasError

    @app.errorhandler(MascotasError)
    def handle_mascotas_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"MascotasError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"MascotasError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.description}), error.code

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception on {request.method} {request.path}: {error}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from mascotas.blueprints.cart import cart_bp
    from mascotas.blueprints.checkout import checkout_bp
    from mascotas.blueprints.catalog import catalog_bp
    from mascotas.blueprints.admin import admin_bp

    app.register_blueprint(cart_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(admin_bp)

    @app.route('/csrf-token')
    def csrf_token():
        """CSRF token for the browser client (send it back as X-CSRFToken)."""
        return jsonify({'csrf_token': generate_csrf()})

    @app.route('/health')
    def health():
        cache = app.extensions.get('cache')
        return jsonify({'status': 'ok', 'cache': bool(cache and cache.is_available())})

    return app
