"""
API Routes package
"""
from .auth import auth_bp
from .branches import branches_bp
from .staff import staff_bp

__all__ = [
    'auth_bp',
    'branches_bp',
    'staff_bp'
]


def register_blueprints(app):
    """Register all API blueprints"""
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(branches_bp, url_prefix='/api/branches')
    app.register_blueprint(staff_bp, url_prefix='/api/staff')
    
    return app
