"""
PrintVault — Shared slowapi rate limiter instance.

Routers import `limiter` for @limiter.limit() decorators; create_app() attaches
it to app.state. Limits are keyed by client IP and switched off entirely with
RATE_LIMIT_ENABLED=false.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

# Upload and job-start endpoints do real work per request
UPLOAD_LIMIT = "30/minute"
JOB_START_LIMIT = "10/minute"
