"""API routers for all endpoints."""

from anticheat.routers import detection

__all__ = [
    "detection",
]
