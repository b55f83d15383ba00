"""
Authorization helpers for this application.

Authentication itself lives outside this service: callers present a bearer
JWT carrying ``{sub, role}``. Flask-Login's request loader (registered in
``salon.main``) turns that token into a :class:`~salon.domain.entities.Principal`
and these decorators gate routes on it.

DECORATOR GUIDE:
- @principal_required: any authenticated principal (customers included)
- @role_required("admin", "staff"): privileged operations

Examples:
    @appointment_bp.route("/<int:appointment_id>/reschedule", methods=["PUT"])
    @role_required("admin", "staff")
    def reschedule(appointment_id):
        pass
"""

from functools import wraps
from typing import Optional

from flask import jsonify
from flask_login import current_user

from salon.domain.entities import Principal


def get_current_principal() -> Optional[Principal]:
    """Return the authenticated principal for this request, if any."""
    if current_user and getattr(current_user, "is_authenticated", False):
        return current_user  # type: ignore[return-value]
    return None


def _unauthorized():
    return (
        jsonify(
            {
                "success": False,
                "error": "unauthorized",
                "message": "Authentication required",
            }
        ),
        401,
    )


def principal_required(f):
    """Require any authenticated principal."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_principal() is None:
            return _unauthorized()
        return f(*args, **kwargs)

    return decorated_function


def role_required(*roles: str):
    """Require an authenticated principal holding one of ``roles``.

    Returns:
        - 401 if not authenticated
        - 403 if authenticated with a role outside ``roles``
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            principal = get_current_principal()
            if principal is None:
                return _unauthorized()
            if principal.role not in roles:
                return (
                    jsonify(
                        {
                            "success": False,
                            "error": "forbidden",
                            "message": "Insufficient role for this operation",
                        }
                    ),
                    403,
                )
            return f(*args, **kwargs)

        return decorated_function

    return decorator
