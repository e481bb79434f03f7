"""
Owner session tokens (python-jose).

The identity provider signs an HS256 token per signed-in farmer:

    sub                      owner user id; scopes logs, herd and dashboard
    role / app_metadata.role "admin" unlocks the all-devices console
    type                     always "access"

issue_owner_token mints the same shape for local development and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from growt.config import get_settings

ADMIN_ROLE = "admin"


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign a token carrying ``data`` plus exp/iat/type claims.

    Args:
        data: Claims to encode, normally {"sub": owner_user_id}
        expires_delta: Lifetime; defaults to jwt_expiration_minutes
    """
    settings = get_settings()
    claims = dict(data)
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.jwt_expiration_minutes)

    claims.update({"exp": issued_at + lifetime, "iat": issued_at, "type": "access"})
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def issue_owner_token(user_id: str, role: Optional[str] = None) -> str:
    """Token for one livestock owner; role="admin" for the device console."""
    claims: Dict[str, Any] = {"sub": user_id}
    if role is not None:
        claims["role"] = role
    return create_access_token(claims)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature, expiry and token type.

    Raises:
        JWTError: If the token is invalid, expired or not an access token
    """
    settings = get_settings()

    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise JWTError(f"Token validation failed: {e}")

    if payload.get("type") != "access":
        raise JWTError("Token validation failed: not an access token")
    return payload


def is_admin(payload: Dict[str, Any]) -> bool:
    """Admin either as a top-level claim or in the provider's app_metadata."""
    app_metadata = payload.get("app_metadata") or {}
    return ADMIN_ROLE in (payload.get("role"), app_metadata.get("role"))
