from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials

from ..core.config import settings
from ..core.database import get_redis
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, TokenPayload, ADMIN_ROLE
)

def revoked_token_key(jti: str) -> str:
    return f"revoked_token:{jti}"

async def get_admin_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    redis_client = Depends(get_redis)
) -> TokenPayload:
    """Extract and verify the admin session token from the Authorization header."""
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    if not token_payload.jti or redis_client.get(revoked_token_key(token_payload.jti)):
        raise AuthenticationError("Session has been logged out")

    if token_payload.role != ADMIN_ROLE:
        raise AuthorizationError("Admin access required")

    return token_payload

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for the admin login endpoint."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)  # One hour window
    else:
        if int(current_requests) >= settings.ADMIN_LOGIN_RATE_LIMIT:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
