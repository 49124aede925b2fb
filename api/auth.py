"""
API Authentication Module

Issues and verifies short-lived signed tokens. A token is a JWT signed with
HMAC-SHA512 carrying the holder's email and an absolute expiry, so the server
keeps no session state and there is nothing to revoke.
"""

import hmac
import logging
import secrets
import time
from typing import Optional

import jwt
from fastapi import Depends, Request

from .config import Settings, get_settings
from .errors import InvalidRequest, ServiceUnavailable, Unauthorized

logger = logging.getLogger(__name__)

ALGORITHM = "HS512"
BEARER_PREFIX = "Bearer "


def _secret_matches(given: str, expected: Optional[str]) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(given.encode(), expected.encode())


def issue_token(secret: Optional[str], email: Optional[str], settings: Optional[Settings] = None) -> str:
    """
    Issue a signed token for an email address.

    Args:
        secret: Shared secret supplied by the caller.
        email: Email address to embed in the token.
        settings: Settings to use. Defaults to the process settings.

    Returns:
        Serialized JWT string.

    Raises:
        Unauthorized: If the secret does not match (checked before the email).
        InvalidRequest: If the email is missing or empty.
        ServiceUnavailable: If no signing key is configured.
    """
    settings = settings or get_settings()

    if not _secret_matches(secret or "", settings.user_secret):
        if not settings.user_secret:
            logger.warning("Token requested but no shared secret is configured")
        raise Unauthorized()

    if not email:
        raise InvalidRequest("Email required")

    if not settings.jwt_secret:
        logger.error("Token requested but JWT_SECRET is not set")
        raise ServiceUnavailable("Token signing key not configured")

    now = int(time.time())
    payload = {
        "email": email,
        "iat": now,
        "exp": now + settings.token_ttl_seconds,
        # Two tokens issued in the same second must still differ.
        "jti": secrets.token_urlsafe(12),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def verify_token(authorization: Optional[str], settings: Optional[Settings] = None) -> Optional[str]:
    """
    Verify a bearer credential and return the email inside it.

    Args:
        authorization: Raw `Authorization` header value, `Bearer <token>`.
        settings: Settings to use. Defaults to the process settings.

    Returns:
        The embedded email, or None if the header is missing or malformed,
        the signature is wrong, or the token has expired.
    """
    settings = settings or get_settings()

    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    if not settings.jwt_secret:
        return None

    token = authorization[len(BEARER_PREFIX):]
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "email"]},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None
    return email


async def require_token(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """
    Dependency that only lets requests with a valid token through.

    Usage:
        @app.post("/api/questions")
        async def questions(data: NotesRequest, email: str = Depends(require_token)):
            ...
    """
    email = verify_token(request.headers.get("Authorization"), settings)
    if email is None:
        raise Unauthorized()
    return email
