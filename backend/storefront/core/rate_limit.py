"""
Request rate limiting.

A single ``slowapi`` limiter keyed by client address, shared by the
application and the routes that declare limits.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from storefront.core.config import get_settings

settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    enabled=not settings.is_test,
)
