"""
Flask extensions initialization
"""
from flask import current_app, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_migrate import Migrate

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
cors = CORS()
migrate = Migrate()


def init_extensions(app):
    """Initialize all Flask extensions"""
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get('CORS_ORIGINS', '*')}},
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    )
    migrate.init_app(app, db)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        current_app.logger.info('JWT expired for subject %s', jwt_payload.get('sub'))
        return jsonify({
            'status': 'error',
            'error': 'token_expired',
            'message': 'Token has expired. Please verify your PIN again.'
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        current_app.logger.info('JWT invalid: %s', error)
        return jsonify({
            'status': 'error',
            'error': 'invalid_token',
            'message': 'Invalid token. Please verify your PIN again.'
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'status': 'error',
            'error': 'Authentication required',
            'message': error
        }), 401

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        current_app.logger.info('JWT revoked for subject %s', jwt_payload.get('sub'))
        return jsonify({
            'status': 'error',
            'error': 'token_revoked',
            'message': 'Token has been revoked. Please verify your PIN again.'
        }), 401

    return app
