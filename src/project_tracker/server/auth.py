"""Bearer-token session lookup for the tracker API."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import AuthSettings
from ..errors import Unauthorized

_bearer = HTTPBearer(auto_error=False)


def create_access_token(
    subject: str,
    settings: AuthSettings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create JWT access token.

    Args:
        subject: User id to encode as the ``sub`` claim.
        settings: Auth settings providing the secret and algorithm.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "iat": now, "exp": now + expires_delta}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: AuthSettings) -> Optional[str]:
    """Decode and verify JWT access token.

    Args:
        token: JWT token to decode.
        settings: Auth settings providing the secret and algorithm.

    Returns:
        User id from the token, or None if the token is invalid or expired.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) and subject else None


def get_owner_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> str:
    """Resolve the owner identity for the current request or raise 401."""
    settings: AuthSettings = request.app.state.settings.auth
    if not settings.enabled:
        return settings.default_user
    if credentials is None:
        raise Unauthorized()
    owner_id = decode_access_token(credentials.credentials, settings)
    if owner_id is None:
        raise Unauthorized()
    return owner_id
