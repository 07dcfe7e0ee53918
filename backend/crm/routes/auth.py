# Overview: Flask API routes for authentication; login, logout, and current-session lookup.

# backend/crm/routes/auth.py
"""
Authentication routes.

Login exchanges email + password for a bearer token. Every other API route
expects `Authorization: Bearer <token>`.
"""

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..permissions import get_role_permissions
from ..responses import ok, fail, internal_error
from ..services import auth_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Body: {"email", "password", "store_id"?}
    store_id is only needed when the email exists in more than one store.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = (data.get("email") or "").strip()
        password = data.get("password") or ""
        store_id = data.get("store_id")

        if not email or not password:
            return fail("email and password required", 400)

        user = auth_service.authenticate(email, password, store_id=store_id)
        if not user:
            return fail("Invalid credentials", 401)

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return ok({
            "user": user.to_dict(),
            "permissions": get_role_permissions(user.role),
            "token": token,
            "session": session.to_dict(),
            "store_id": session.store_id,
        }, message="Login successful")

    except Exception:
        return internal_error("login user")


@auth_bp.post("/logout")
def logout_route():
    """Revoke the bearer token."""
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return fail("Authorization header required", 401)

        token = auth_header.split(" ", 1)[1].strip()
        if not session_service.revoke_session(token, reason="User logout"):
            return fail("Invalid or expired token", 401)

        return ok(message="Logout successful")

    except Exception:
        return internal_error("logout user")


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user, tenant, and the role's permission matrix row."""
    user = g.current_user
    return ok({
        "user": user.to_dict(),
        "permissions": get_role_permissions(user.role),
        "store_id": g.store_id,
    })
