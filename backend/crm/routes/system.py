# backend/crm/routes/system.py
"""
System health and version endpoints.

Public (no authentication). Health answers 503 when a dependency is down so
load balancers can take the instance out of rotation.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import SessionToken, Store, User
from crm.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api")

API_VERSION = "1.0.0"


def _timed(check):
    start_time = time.time()
    try:
        details = check()
        status = "healthy"
        error = None
    except SQLAlchemyError:
        current_app.logger.exception("Health check failed")
        details = None
        status = "unhealthy"
        error = "Database error"
    result = {"status": status, "latency_ms": round((time.time() - start_time) * 1000, 2)}
    if details is not None:
        result["details"] = details
    if error:
        result["error"] = error
    return result


def _database():
    return {
        "stores": db.session.query(Store).count(),
        "users": db.session.query(User).count(),
    }


def _sessions():
    now = utcnow()
    return {
        "active_sessions": db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False), SessionToken.expires_at >= now
        ).count(),
        "expired_pending_cleanup": db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False), SessionToken.expires_at < now
        ).count(),
    }


@system_bp.get("/health")
def health():
    """
    Health check covering database connectivity and the session table.

    Returns 200 when healthy, 503 otherwise.
    """
    start_time = time.time()
    checks = {"database": _timed(_database), "session_service": _timed(_sessions)}
    healthy = all(c["status"] == "healthy" for c in checks.values())
    if not healthy:
        db.session.rollback()

    return {
        "success": healthy,
        "data": {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": to_utc_z(utcnow()),
            "total_latency_ms": round((time.time() - start_time) * 1000, 2),
            "checks": checks,
        },
    }, 200 if healthy else 503


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info."""
    return {
        "success": True,
        "data": {
            "api_version": API_VERSION,
            "environment": "development" if current_app.debug else "production",
            "python_version": sys.version.split()[0],
            "server_time": to_utc_z(utcnow()),
        },
    }
