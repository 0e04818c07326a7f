"""
dependencies.py — FastAPI auth dependencies

Business Rules:
- Admin routes need a valid admin session cookie (HS256 JWT signed with ADMIN_JWT_SECRET)
- Session issuance lives elsewhere; this module only verifies
- Cron route needs `Authorization: Bearer <CRON_SECRET>`
- With no secret configured the matching routes are closed, not open

Called by: routers/*.py
Depends on: config.py, PyJWT
"""

import hmac

import jwt
from fastapi import HTTPException, Request

from .config import settings


def verify_admin_session(token: str) -> dict:
    """Decode and verify an admin session token. Raises jwt.InvalidTokenError."""
    if not settings.admin_jwt_secret:
        raise jwt.InvalidTokenError("ADMIN_JWT_SECRET is not configured")
    claims = jwt.decode(token, settings.admin_jwt_secret, algorithms=["HS256"])
    if claims.get("role", "admin") != "admin":
        raise jwt.InvalidTokenError("Not an admin session")
    return claims


def require_admin(request: Request) -> dict:
    """Dependency: raises 401 unless the request carries a valid admin session."""
    token = request.cookies.get(settings.admin_session_cookie)
    if not token:
        raise HTTPException(401, "Admin login required")
    try:
        return verify_admin_session(token)
    except jwt.InvalidTokenError:
        raise HTTPException(401, "Admin session invalid or expired")


def require_cron_secret(request: Request) -> None:
    """Dependency: raises 401 unless the bearer token matches CRON_SECRET."""
    auth = request.headers.get("Authorization", "")
    expected = f"Bearer {settings.cron_secret}"
    if not settings.cron_secret or not hmac.compare_digest(auth.encode(), expected.encode()):
        raise HTTPException(401, "Unauthorized")
