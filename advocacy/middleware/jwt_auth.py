"""
JWT Auth Middleware — parses the Bearer token and sets the request identity.

    g.current_user_id     ← "sub"
    g.current_user_email  ← "email"
    g.session_id          ← "sid" (falls back to "jti")

A missing, expired or invalid token leaves the request anonymous; route
guards and admin actions decide what an anonymous caller gets.
"""

import logging

import jwt as pyjwt
from flask import g, request

from advocacy.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/health",
    "/static/",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user_id = None
        g.current_user_email = None
        g.session_id = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired access token on %s", path)
            return
        except pyjwt.InvalidTokenError:
            logger.debug("Invalid access token on %s", path)
            return

        g.current_user_id = payload.get("sub")
        g.current_user_email = payload.get("email")
        g.session_id = payload.get("sid") or payload.get("jti")
