"""Shared slowapi limiter."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from fansite.config import get_settings

settings = get_settings()

# Per-IP default limit; auth endpoints tighten it via @limiter.limit
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)
