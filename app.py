"""
app.py - Flask Application Factory
Snippet Catalog

Provides the create_app() factory function following Flask 2.x patterns.
Handles database initialization, seed data, blueprint registration and
the preview session registry.
"""

import os
from flask import Flask, request
from database import init_db
from storage import seed_initial_data
from preview import PreviewRegistry
from routes import catalog_bp
from preview_routes import preview_bp, frame_bp


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def create_app(test_config: dict = None) -> Flask:
    """
    Application factory for the Snippet Catalog.

    Creates and configures the Flask application with:
    - Database initialization (and seed data) on startup
    - Catalog and preview blueprint registration
    - An in-process registry of preview sessions
    - Error handlers for common HTTP errors

    Args:
        test_config: Optional dictionary of configuration overrides for testing

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    app.secret_key = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['DATABASE'] = os.environ.get('SNIPPETS_DB_PATH', 'snippets.db')
    app.config['SEED_DATA'] = _env_flag('SNIPPETS_SEED', True)
    app.config['PREVIEW_REFRESH_DELAY_MS'] = int(os.environ.get('PREVIEW_REFRESH_DELAY_MS', 250))
    app.config['PREVIEW_MAX_SESSIONS'] = int(os.environ.get('PREVIEW_MAX_SESSIONS', 256))

    # Apply test configuration if provided
    if test_config:
        app.config.update(test_config)

    try:
        init_db(app.config['DATABASE'])
        app.logger.info(f"Database initialized: {app.config['DATABASE']}")
    except Exception as e:
        app.logger.error(f"Failed to initialize database: {e}")
        raise

    if app.config['SEED_DATA']:
        with app.app_context():
            if seed_initial_data():
                app.logger.info("Seeded catalog with sample categories and snippets")

    app.extensions['snippet_previews'] = PreviewRegistry(
        max_sessions=app.config['PREVIEW_MAX_SESSIONS'],
        refresh_delay=app.config['PREVIEW_REFRESH_DELAY_MS'] / 1000.0,
    )

    # Register blueprints
    app.register_blueprint(catalog_bp)
    app.register_blueprint(preview_bp)
    app.register_blueprint(frame_bp)

    @app.after_request
    def after_request(response):
        """Add security headers after each request. Preview frames keep their own framing policy."""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers.setdefault('X-Frame-Options', 'DENY')
        return response

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        if request.path.startswith('/api/'):
            return {'success': False, 'error': 'Endpoint not found'}, 404
        return 'Not Found', 404

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal error: {error}")
        if request.path.startswith('/api/'):
            return {'success': False, 'error': 'Internal server error'}, 500
        return 'Internal Server Error', 500

    @app.errorhandler(405)
    def method_not_allowed(error):
        if request.path.startswith('/api/'):
            return {'success': False, 'error': 'Method not allowed'}, 405
        return 'Method Not Allowed', 405

    # Handle SCRIPT_NAME for subpath deployment
    @app.before_request
    def handle_script_name():
        script_name = request.headers.get('X-Script-Name')
        if script_name:
            request.environ['SCRIPT_NAME'] = script_name

    # API root endpoint
    @app.route('/')
    def index():
        return {
            'service': 'Snippet Catalog API',
            'version': '1.0.0',
            'status': 'running',
            'endpoints': {
                'categories': '/api/categories',
                'snippets': '/api/snippets',
                'previews': '/api/previews',
                'health': '/api/health'
            }
        }

    app.logger.info("Snippet Catalog API initialized")
    return app


# For running directly (development)
if __name__ == '__main__':
    app = create_app()
    app.run(debug=True, host='0.0.0.0', port=5000)
