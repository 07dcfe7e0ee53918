"""
Permission checks against the static role matrix.

WHY: Routes decide "may this caller touch this resource at all";
mutation services decide "commit directly or file an approval request".
Both questions are answered from crm.permissions.PERMISSION_MATRIX.
"""

from __future__ import annotations

from flask import current_app

from ..permissions import Action, Resource, has_permission


class PermissionDeniedError(Exception):
    """Raised when the caller's role lacks the required action."""
    def __init__(self, message: str, resource: str | None = None, action: str | None = None):
        super().__init__(message)
        self.resource = resource
        self.action = action


def require_permission(user, resource: Resource, action: Action) -> None:
    if not has_permission(user.role, resource, action):
        current_app.logger.warning(
            "Permission denied: user=%s role=%s resource=%s action=%s",
            user.id, user.role, Resource(resource).value, Action(action).value,
        )
        raise PermissionDeniedError(
            f"Role {user.role} may not {Action(action).value} {Resource(resource).value}",
            resource=Resource(resource).value,
            action=Action(action).value,
        )


def can_commit(user, resource: Resource, commit: Action, pending: Action) -> bool:
    """
    True when the caller may apply the change directly, False when they may
    only request it.

    Raises PermissionDeniedError when the caller holds neither action.
    """
    if has_permission(user.role, resource, commit):
        return True
    if pending is not None and has_permission(user.role, resource, pending):
        return False
    require_permission(user, resource, commit)
    return False
