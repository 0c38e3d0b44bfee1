"""
Middleware classes for the FastAPI application.
"""

from .correlation import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
