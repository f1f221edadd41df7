"""
JWT token service for bearer authentication.

Access tokens are issued by the identity provider and signed with the
shared project secret; this service only verifies them. create_token
mints compatible tokens for scripts and tests.
"""
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from planpdf.config import settings


class JWTService:
    """Service for creating and verifying JWT tokens."""

    def create_token(self, user_id: str, email: str | None = None) -> str:
        """
        Create a JWT token for a user.

        Args:
            user_id: User's unique ID (becomes the sub claim)
            email: User's email

        Returns:
            Encoded JWT token string
        """
        expires = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

        payload = {
            "sub": user_id,
            "email": email,
            "exp": expires
        }
        if settings.JWT_AUDIENCE:
            payload["aud"] = settings.JWT_AUDIENCE

        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict | None:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token string

        Returns:
            Decoded payload dict or None if invalid
        """
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                audience=settings.JWT_AUDIENCE,
                options={"verify_aud": bool(settings.JWT_AUDIENCE)}
            )
        except JWTError:
            return None
        if not payload.get("sub"):
            return None
        return payload
