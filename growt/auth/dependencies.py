"""
FastAPI dependencies for authentication.

- get_current_user_id: bearer JWT of a signed-in owner
- get_device_scope: owner id for the device console, None for admins
- require_iot_key: shared key sent by IoT scales
"""

import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from growt.auth.jwt import decode_access_token, is_admin
from growt.config import get_settings
from growt.utils.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)

IOT_KEY_HEADER = "x-growt-iot-key"


async def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """
    Validated claims of the bearer token; the subject must be present.

    Raises:
        HTTPException: 401 if token is missing or invalid
    """
    if not credentials:
        logger.warning("auth_failed", reason="missing_token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.warning("auth_failed", reason="invalid_token", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub"):
        logger.warning("auth_failed", reason="missing_user_id")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload


async def get_current_user_id(payload: Dict[str, Any] = Depends(get_token_payload)) -> str:
    user_id: str = payload["sub"]
    logger.debug("auth_success", user_id=user_id)
    return user_id


async def get_device_scope(payload: Dict[str, Any] = Depends(get_token_payload)) -> Optional[str]:
    """Owner whose devices are visible; None lets an admin see every device."""
    if is_admin(payload):
        logger.debug("auth_success", user_id=payload["sub"], role="admin")
        return None
    return payload["sub"]


async def require_iot_key(
    x_growt_iot_key: Optional[str] = Header(default=None, alias=IOT_KEY_HEADER),
) -> None:
    """
    Check the IoT shared key.

    Raises:
        HTTPException: 500 when no key is configured, 401 on mismatch
    """
    expected = get_settings().iot_api_key
    if not expected:
        logger.error("iot_auth_misconfigured", reason="missing_iot_api_key")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="server_misconfigured",
        )

    # compare_digest rejects non-ASCII str operands
    if x_growt_iot_key is None or not secrets.compare_digest(
        x_growt_iot_key.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("iot_auth_failed", reason="key_mismatch")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
