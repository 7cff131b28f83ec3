from functools import wraps
from flask import g

from models.enums import RoleName
from services.errors import AuthenticationError, AuthorizationError


def can_manage_facility(user, facility) -> bool:
    if user is None or facility is None:
        return False
    return user.is_admin or user.owns(facility)


def can_manage_court(user, court) -> bool:
    """Facility owner or ADMIN. Consumed as a plain boolean by the slot services."""
    if court is None:
        return False
    return can_manage_facility(user, court.facility)


def require_roles(*role_names):
    """
    Usage: @require_roles("OWNER", "ADMIN")
    ADMIN passes every role check.
    """
    wanted = {RoleName(name) for name in role_names}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                raise AuthenticationError("Authentication required")
            if not user.is_admin and not any(user.has_role(r) for r in wanted):
                raise AuthorizationError("Forbidden")
            return fn(*args, **kwargs)
        return wrapper
    return decorator
