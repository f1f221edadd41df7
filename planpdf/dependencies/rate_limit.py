"""
Rate limit dependency for FastAPI routes.
"""
from fastapi import Depends, HTTPException
from planpdf.dependencies.auth import get_current_user, TokenPayload
from planpdf.routes.metrics import track_rate_limit_exceeded
from planpdf.services.rate_limiter import rate_limiter


async def check_rate_limit(current_user: TokenPayload = Depends(get_current_user)):
    """
    Check report-creation rate limit for the caller.

    Raises 429 if limit exceeded.
    """
    allowed, retry_after = await rate_limiter.is_allowed(current_user.sub)

    if not allowed:
        track_rate_limit_exceeded()
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(retry_after)}
        )
