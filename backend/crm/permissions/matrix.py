# Overview: Static role -> resource -> allowed-action table.

from .categories import Role, Resource as R, Action as A


_CRUD_APPROVE = frozenset({A.READ, A.CREATE, A.UPDATE, A.DELETE, A.APPROVE})
_CRUD_MANAGE = frozenset({A.READ, A.CREATE, A.UPDATE, A.DELETE, A.MANAGE})
_REQUEST_ONLY = frozenset({A.READ, A.CREATE_PENDING, A.UPDATE_PENDING})
_READ = frozenset({A.READ})


def _staff_permissions(analytics_scope: A) -> dict:
    return {
        R.CUSTOMERS: _REQUEST_ONLY,
        R.SALES: _REQUEST_ONLY,
        R.PRODUCTS: _READ,
        R.FLOORS: _READ,
        R.TEAM: _READ,
        R.ANALYTICS: frozenset({analytics_scope}),
        R.SETTINGS: _READ,
        R.APPROVALS: frozenset({A.READ_OWN, A.REQUEST}),
        R.ESCALATIONS: frozenset({A.READ_OWN, A.CREATE}),
        R.AUDIT: frozenset({A.READ_OWN}),
    }


PERMISSION_MATRIX = {
    Role.BUSINESS_ADMIN: {
        R.CUSTOMERS: _CRUD_APPROVE,
        R.SALES: _CRUD_APPROVE,
        R.PRODUCTS: _CRUD_APPROVE,
        R.FLOORS: _CRUD_MANAGE,
        R.TEAM: _CRUD_MANAGE,
        R.ANALYTICS: frozenset({A.READ, A.EXPORT, A.CONFIGURE}),
        R.SETTINGS: frozenset({A.READ, A.UPDATE, A.CONFIGURE}),
        R.APPROVALS: frozenset({A.READ, A.APPROVE, A.REJECT, A.ESCALATE}),
        R.ESCALATIONS: frozenset({A.READ, A.ASSIGN, A.RESOLVE, A.CLOSE}),
        R.AUDIT: frozenset({A.READ, A.EXPORT}),
    },
    # Floor staff can request customer/sale changes but never commit them.
    Role.FLOOR_MANAGER: _staff_permissions(A.READ_FLOOR_ONLY),
    Role.SALESPERSON: _staff_permissions(A.READ_OWN_ONLY),
}
