"""
Shared slowapi limiter.

Endpoints decorate themselves with @limiter.limit(...) and must take the
Request as a parameter; create_app() registers the limiter on app.state.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit.enabled)
