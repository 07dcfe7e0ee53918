# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, g, current_app

from .permissions import Action, Resource, has_any_permission, has_permission
from .responses import fail
from .services import session_service


def _is_authenticated() -> bool:
    return getattr(g, "current_user", None) is not None and getattr(g, "store_id", None) is not None


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.store_id: The tenant (store) ID from the session record
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, or revoked token
    - User or store deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None
        g.store_id = None
        g.session_context = None

        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return fail("Authentication required", 401)

        token = auth_header.split(" ", 1)[1].strip()

        context = session_service.validate_session(token)

        if not context:
            return fail("Invalid or expired token", 401)

        g.current_user = context.user
        g.store_id = context.store_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def _deny(resource: Resource, actions: tuple):
    user = g.current_user
    current_app.logger.warning(
        "Permission denied: user=%s role=%s resource=%s required=%s path=%s",
        user.id, user.role, resource.value, ",".join(a.value for a in actions), request.path,
    )
    return fail(
        "Permission denied",
        403,
        details={"resource": resource.value, "required_any_of": [a.value for a in actions]},
    )


def require_permission(resource: Resource, action: Action):
    """Require one action on a resource in the caller's role matrix row."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return fail("Authentication required", 401)

            if not has_permission(g.current_user.role, resource, action):
                return _deny(resource, (action,))

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(resource: Resource, *actions: Action):
    """
    Require any of the specified actions on a resource.

    Used where a broader and a narrower grant share one endpoint
    (e.g. READ vs READ_OWN, CREATE vs CREATE_PENDING).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return fail("Authentication required", 401)

            if not has_any_permission(g.current_user.role, resource, *actions):
                return _deny(resource, actions)

            return f(*args, **kwargs)

        return decorated_function
    return decorator
