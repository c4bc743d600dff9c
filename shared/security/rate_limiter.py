from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config.settings import settings

from .jwt_handler import verify_access_token


def user_id_or_ip(request: Request) -> str:
    """
    Rate limit key: the buyer's token subject, so one account cannot spread
    checkouts across addresses. Anonymous and invalid-token callers are keyed
    by client address.
    """
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        payload = verify_access_token(token)
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"

    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=user_id_or_ip, storage_uri=settings.rate_limit_storage_uri)
