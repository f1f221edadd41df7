"""
Authentication dependencies for FastAPI.

SECURITY: Admin checks read the role from the profiles table, never
from token claims.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from planpdf.database import get_db
from planpdf.models.profile import Profile, UserRole
from planpdf.services.jwt_service import JWTService
from planpdf.services.profile_service import ProfileService


# Security scheme; auto_error off so a missing header is a 401, not a 403
security = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    """JWT token payload model."""
    sub: str      # user_id
    email: str | None = None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> TokenPayload:
    """
    Dependency that requires valid JWT token.

    Returns token payload if valid, raises 401 if missing or invalid.

    Usage:
        @app.get("/protected")
        async def protected_route(user: TokenPayload = Depends(get_current_user)):
            ...
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = JWTService().verify_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenPayload(sub=payload["sub"], email=payload.get("email"))


def has_admin_role(profile: Profile | None) -> bool:
    return profile is not None and profile.role == UserRole.ADMIN


async def is_admin(user_id: str, db: AsyncSession) -> bool:
    return has_admin_role(await ProfileService(db).get_by_user_id(user_id))


async def require_admin(
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> TokenPayload:
    """
    Dependency that requires admin role.

    Returns user if admin, raises 403 otherwise.
    """
    if not await is_admin(current_user.sub, db):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )

    return current_user
