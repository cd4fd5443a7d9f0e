"""Request rate limiting.

Every API route shares the default per-client limit; the credential endpoints
carry a stricter limit of their own.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from src.config import get_settings

settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)
