"""Rate limiting shared by every router."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from marketplace.config import settings

# Counters live in the configured storage (Redis in production) so every
# API process shares the same window.
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
