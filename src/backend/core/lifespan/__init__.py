"""
Startup and shutdown for the dashboard API: logging, schema creation and
the bootstrap admin account.
"""

from .manager import lifespan

__all__ = ["lifespan"]
