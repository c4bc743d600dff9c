"""
Internal API key used by catalog administration endpoints.

A missing INTERNAL_API_KEY falls back to an insecure default with a loud
warning (see shared.config.settings) so local development still works.
"""
import secrets

from shared.config.settings import settings

INTERNAL_API_KEY: str = settings.internal_api_key


def verify_api_key(provided_key: str) -> bool:
    """Verify an API key using constant-time comparison to prevent timing attacks."""
    if not provided_key:
        return False
    return secrets.compare_digest(str(provided_key), str(INTERNAL_API_KEY))
