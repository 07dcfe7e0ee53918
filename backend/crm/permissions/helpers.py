# Overview: Utility functions for permission lookups.

from .categories import Role, Resource, Action
from .matrix import PERMISSION_MATRIX


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def has_permission(role, resource, action) -> bool:
    """
    Pure lookup in the permission matrix.

    Accepts enum members or their string values. Anything not explicitly
    listed (unknown role, resource, or action) is denied.
    """
    role = _coerce(Role, role)
    resource = _coerce(Resource, resource)
    action = _coerce(Action, action)
    if role is None or resource is None or action is None:
        return False
    return action in PERMISSION_MATRIX.get(role, {}).get(resource, frozenset())


def has_any_permission(role, resource, *actions) -> bool:
    return any(has_permission(role, resource, a) for a in actions)


def get_role_permissions(role) -> dict:
    """Resource -> sorted action names for a role (empty for unknown roles)."""
    role = _coerce(Role, role)
    if role is None:
        return {}
    return {
        resource.value: sorted(a.value for a in actions)
        for resource, actions in PERMISSION_MATRIX[role].items()
    }


def validate_role(value) -> bool:
    return _coerce(Role, value) is not None
