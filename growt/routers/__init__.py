"""API routers for all endpoints."""

from growt.routers import (
    dashboard,
    devices,
    iot,
    livestock,
    logs,
    public,
    system,
)

__all__ = [
    "logs",
    "livestock",
    "dashboard",
    "public",
    "iot",
    "devices",
    "system",
]
