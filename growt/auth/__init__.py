"""JWT authentication and IoT key checks."""

from growt.auth.dependencies import get_current_user_id, get_device_scope, require_iot_key
from growt.auth.jwt import create_access_token, decode_access_token, issue_owner_token

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_current_user_id",
    "get_device_scope",
    "issue_owner_token",
    "require_iot_key",
]
