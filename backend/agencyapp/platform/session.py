"""
Session provider: resolves the authenticated agent from the request.

The hosted auth service issues HS256 JWTs signed with the project's JWT
secret. The `sub` claim is the user id used as the key for profile,
subscription and client rows.

Configuration (environment variables):
- AUTH_JWT_SECRET:   Shared secret used to verify access tokens
- AUTH_JWT_AUDIENCE: Expected `aud` claim (default: "authenticated")

SECURITY: user_id is always taken from the verified token, never from the
request body or query parameters.
"""

import logging
import os
from typing import Optional

import jwt
from fastapi import Request

from agencyapp.access.models import Identity
from agencyapp.config.access import LOGIN_REDIRECT, is_inactivity_logout_enabled
from agencyapp.middleware.inactivity import get_inactivity_tracker
from agencyapp.platform.errors import AuthenticationError, ServiceUnavailableError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def _get_jwt_secret() -> Optional[str]:
    return os.getenv("AUTH_JWT_SECRET")


def _get_jwt_audience() -> str:
    return os.getenv("AUTH_JWT_AUDIENCE", "authenticated")


def _login_required(message: str, code: str = "AUTHENTICATION_ERROR") -> AuthenticationError:
    return AuthenticationError(
        message=message,
        details={"redirect_to": LOGIN_REDIRECT},
        code=code,
    )


def extract_bearer_token(request: Request) -> Optional[str]:
    """Return the bearer token from the Authorization header, if any."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_identity(token: str) -> Identity:
    """
    Verify a session token and return the identity it carries.

    Raises:
        AuthenticationError: If the token is expired, invalid or has no subject
        ServiceUnavailableError: If AUTH_JWT_SECRET is not configured
    """
    secret = _get_jwt_secret()
    if not secret:
        logger.error("AUTH_JWT_SECRET is not set. Cannot verify sessions.")
        raise ServiceUnavailableError("Authentication is not configured")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=_get_jwt_audience(),
        )
    except jwt.ExpiredSignatureError:
        raise _login_required("Session has expired", code="SESSION_EXPIRED")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected session token", extra={"error": str(e)})
        raise _login_required("Invalid session token")

    user_id = claims.get("sub")
    if not user_id:
        raise _login_required("Session token has no subject")

    return Identity(user_id=user_id, email=claims.get("email"), issued_at=claims.get("iat"))


def enforce_activity(identity: Identity) -> None:
    """
    Raise AuthenticationError if the agent was signed out for inactivity.

    Records the request as activity otherwise. Once a session has expired,
    the same token keeps failing until the agent signs in again.
    """
    if not is_inactivity_logout_enabled():
        return

    result = get_inactivity_tracker().check_and_touch(identity.user_id, issued_at=identity.issued_at)
    if result.expired:
        logger.info(
            "Session expired due to inactivity",
            extra={"user_id": identity.user_id, "idle_seconds": int(result.idle_seconds)},
        )
        raise _login_required(
            "You were signed out after a period of inactivity",
            code="SESSION_EXPIRED",
        )


def get_identity(request: Request) -> Identity:
    """
    FastAPI dependency returning the authenticated identity.

    Every authenticated route goes through here, so the inactivity check runs
    once per request. The identity is cached on request.state so guards and
    routes share it.
    """
    cached = getattr(request.state, "identity", None)
    if cached is not None:
        return cached

    token = extract_bearer_token(request)
    if token is None:
        raise _login_required("Authentication required")

    identity = decode_identity(token)
    enforce_activity(identity)
    request.state.identity = identity
    return identity
