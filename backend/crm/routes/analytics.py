# Overview: Flask API routes for analytics; role-scoped dashboard, sales, customer, and product reports.

"""
Analytics routes.

SECURITY: the report scope follows the caller's analytics grant.
- READ (business admin): whole store, optional floor_id filter.
- READ_FLOOR_ONLY (floor manager): pinned to the caller's floor.
- READ_OWN_ONLY (salesperson): pinned to the caller's own sales and customers.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth, require_any_permission
from ..permissions import Action, Resource, has_permission
from ..responses import ok, fail, service_error, internal_error, SERVICE_ERRORS
from ..services.reporting_service import REPORT_TYPES, ReportScope, parse_range, run_report

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


def _scope(start, end):
    user = g.current_user
    scope = ReportScope(store_id=g.store_id, start=start, end=end)
    if has_permission(user.role, Resource.ANALYTICS, Action.READ):
        scope.floor_id = request.args.get("floor_id", type=int)
    elif has_permission(user.role, Resource.ANALYTICS, Action.READ_FLOOR_ONLY):
        if user.floor_id is None:
            return None
        scope.floor_id = user.floor_id
    else:
        scope.user_id = user.id
    return scope


@analytics_bp.get("")
@require_auth
@require_any_permission(Resource.ANALYTICS, Action.READ, Action.READ_FLOOR_ONLY, Action.READ_OWN_ONLY)
def analytics_route():
    """
    Query params: type (dashboard|sales|customers|products; default dashboard),
    floor_id (admins only), start, end.
    """
    report_type = (request.args.get("type") or "dashboard").lower()
    try:
        start, end = parse_range(request.args.get("start"), request.args.get("end"))
        scope = _scope(start, end)
        if scope is None:
            return fail("No floor assigned", 403)
        data = run_report(report_type, scope)
        return ok(data, type=report_type if report_type in REPORT_TYPES else "dashboard")
    except SERVICE_ERRORS as e:
        return service_error(e)
    except Exception:
        return internal_error("build analytics report")
