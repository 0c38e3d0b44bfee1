"""
Unprefixed service routes (/ and /health); the dashboard API lives under
api.v1.
"""

from .health import router as health_router
from .root import router as root_router

__all__ = ["health_router", "root_router"]
