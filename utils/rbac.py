"""Role-based access control helpers.

Staff roles are embedded in JWT claims ('manager', 'senior_staff',
'associate'). These helpers standardize authorization checks across routes.
"""

from __future__ import annotations

from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt

STAFF_ROLES = ('manager', 'senior_staff', 'associate')


def current_role() -> str:
    claims = get_jwt() or {}
    role = claims.get("role")
    return str(role or "").lower()


def require_roles(*roles: str):
    """Decorator to require one of the allowed roles.

    Must be used with @jwt_required() on the route.
    """

    allowed = {str(r).lower() for r in roles if str(r).strip()}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role = current_role()
            if role not in allowed:
                if allowed == {"manager"}:
                    msg = "Manager access required"
                else:
                    msg = "Access denied"
                return jsonify({"status": "error", "error": msg}), 403
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def require_manager(fn):
    return require_roles("manager")(fn)
