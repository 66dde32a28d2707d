"""
Token auth for the API: credential check, JWT issuance and validation.

HS256 tokens via PyJWT, signed with Settings.jwt_secret. The FastAPI
dependency require_user reads settings from app.state, so nothing here
depends on module-level secrets.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Header, Request

from backend_walletpnl.config.settings import Settings
from backend_walletpnl.core.exceptions import AuthenticationError, InvalidTokenError


def check_credentials(settings: Settings, email: str, password: str) -> bool:
    """Constant-time comparison against the configured login; False if login is disabled."""
    if not settings.login_enabled:
        return False
    email_ok = secrets.compare_digest(email.encode(), settings.auth_email.encode())
    password_ok = secrets.compare_digest(password.encode(), settings.auth_password.encode())
    return email_ok and password_ok


def create_access_token(settings: Settings, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": email,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expiration_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    """Return the token payload; raises InvalidTokenError on bad signature or expiry."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError("Invalid token") from e


def require_user(request: Request, authorization: str | None = Header(None)) -> dict[str, Any]:
    """Dependency: Bearer token from the Authorization header, validated."""
    if not authorization:
        raise AuthenticationError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authentication required")
    return decode_access_token(request.app.state.settings, token.strip())
