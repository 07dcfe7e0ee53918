# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import Role, Resource, Action
from .matrix import PERMISSION_MATRIX
from .helpers import (
    has_permission,
    has_any_permission,
    get_role_permissions,
    validate_role,
)

__all__ = [
    "Role",
    "Resource",
    "Action",
    "PERMISSION_MATRIX",
    "has_permission",
    "has_any_permission",
    "get_role_permissions",
    "validate_role",
]
