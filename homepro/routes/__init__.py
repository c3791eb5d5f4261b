"""Routes package for the HomePro Assist API."""

from flask import jsonify


def register_routes(app):
    """Register all route blueprints with the application."""
    from .auth import auth_bp
    from .help_requests import requests_bp
    from .sessions import sessions_bp
    from .payments import payments_bp
    from .notifications import notifications_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(requests_bp, url_prefix='/api/requests')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(payments_bp, url_prefix='/api/payments')
    app.register_blueprint(notifications_bp, url_prefix='/api/notifications')

    @app.route('/api/health', methods=['GET'])
    def api_health():
        return jsonify({'status': 'ok'}), 200
