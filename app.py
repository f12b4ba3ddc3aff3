"""
FitGym Pro - Staff API
Main entry point
"""
import os
import socket
from datetime import datetime, timedelta, timezone
from pathlib import Path

from flask import Flask, jsonify, request
from dotenv import load_dotenv

# Load environment variables
# Always load `.env` next to this file (if it exists) regardless of the current
# working directory.
#
# IMPORTANT for production: do NOT override real environment variables
# injected by the host.
_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
_dotenv_path = Path(__file__).resolve().parent / '.env'
if _dotenv_path.exists():
    load_dotenv(dotenv_path=_dotenv_path, override=(not _is_production))

# Import extensions and routes
from extensions import init_extensions, db
from config.database import SQLALCHEMY_DATABASE_URI, SQLALCHEMY_TRACK_MODIFICATIONS
from config.settings import get_config
from routes import register_blueprints
from utils.scheduler import start_pin_sweep
from utils.security import InMemoryAttemptStore, PinAttemptTracker


def _get_lan_ip() -> str | None:
    """Best-effort LAN IP discovery for printing a clickable URL."""
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        # Doesn't need to be reachable; no packets are sent.
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return None


def build_pin_tracker(config) -> PinAttemptTracker:
    """Attempt tracker configured from PIN_* settings"""
    return PinAttemptTracker(
        InMemoryAttemptStore(),
        max_attempts=int(config.get('PIN_MAX_ATTEMPTS', PinAttemptTracker.MAX_ATTEMPTS)),
        lockout_duration=timedelta(minutes=int(config.get('PIN_LOCKOUT_MINUTES', 15))),
        attempt_window=timedelta(minutes=int(config.get('PIN_ATTEMPT_WINDOW_MINUTES', 5))),
    )


def create_app(config_class=None, pin_tracker=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Disable strict slashes to prevent 308 redirects
    app.url_map.strict_slashes = False

    # Load configuration
    if config_class is None:
        config_class = get_config()

    app.config.from_object(config_class)
    app.config.setdefault('SQLALCHEMY_DATABASE_URI', SQLALCHEMY_DATABASE_URI)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = SQLALCHEMY_TRACK_MODIFICATIONS

    # Initialize extensions
    init_extensions(app)

    # PIN attempt tracker is owned by the app; the sweep is wired here, not
    # by the tracker itself.
    tracker = pin_tracker or build_pin_tracker(app.config)
    app.extensions['pin_attempt_tracker'] = tracker
    start_pin_sweep(app, tracker)

    # Register blueprints
    register_blueprints(app)

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            'status': 'success',
            'message': f"{app.config['APP_NAME']} is running",
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': app.config['APP_VERSION']
        }), 200

    @app.route('/api', methods=['GET'])
    def api_index():
        return jsonify({
            'name': app.config['APP_NAME'],
            'version': app.config['APP_VERSION'],
            'description': 'Branch staff management and PIN authentication API',
            'endpoints': {
                'auth': '/api/auth',
                'branches': '/api/branches',
                'staff': '/api/staff',
                'verify_pin': '/api/staff/verify-pin'
            }
        }), 200

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        app.logger.info('404 - Route not found: %s %s', request.method, request.path)
        return jsonify({
            'status': 'error',
            'error': 'Route not found',
            'path': request.path
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        allowed = getattr(error, 'valid_methods', None)
        allowed_str = f" Allowed: {', '.join(sorted(set(allowed)))}" if allowed else ''

        # Include method/path so client logs immediately reveal what endpoint
        # was actually called.
        msg = f"Method not allowed ({request.method} {request.path}).{allowed_str}".strip()
        return jsonify({'status': 'error', 'error': msg}), 405

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error('Unhandled error: %s', error)
        return jsonify({
            'status': 'error',
            'error': 'Internal server error'
        }), 500

    return app


# Create application instance
app = create_app()


if __name__ == '__main__':
    # Development server
    port = int(os.getenv('PORT', 5001))
    debug = os.getenv('DEBUG', 'False').lower() == 'true'

    lan_ip = _get_lan_ip()
    lan_base = f"http://{lan_ip}:{port}" if lan_ip else None
    local_base = f"http://localhost:{port}"

    print(f"""
    ╔══════════════════════════════════════════════════════════╗
    ║              FitGym Pro - Staff API Server               ║
    ╠══════════════════════════════════════════════════════════╣
    ║  Local: {local_base:<46}║
    ║  LAN:   {(lan_base or 'Unavailable'):<46}║
    ║  Debug mode: {debug}                                       ║
    ║                                                          ║
    ║  API:  /api/*  (health: /api/health)                      ║
    ║  Endpoints:                                              ║
    ║  • GET  /api/branches            - List branches         ║
    ║  • GET  /api/staff/branch/<id>   - Branch staff          ║
    ║  • POST /api/staff/verify-pin    - Verify staff PIN      ║
    ║  • GET  /api/auth/me             - Current staff         ║
    ╚══════════════════════════════════════════════════════════╝
    """)

    app.run(host='0.0.0.0', port=port, debug=debug, use_reloader=False)
