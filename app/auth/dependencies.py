# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# Tokens are HS256 JWTs signed with JWT_SECRET. The bearer scheme is
# registered under the name "JWT-auth" so it shows up as the "Authorize"
# option in the API docs.
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.delete("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.auth.models import AuthUser
from app.config import Settings
from app.dependencies import get_app_settings

logger = logging.getLogger(__name__)

BEARER_SCHEME_NAME = "JWT-auth"
JWT_ALGORITHM = "HS256"

# HTTP Bearer token extractor
security = HTTPBearer(
    scheme_name=BEARER_SCHEME_NAME,
    bearerFormat="JWT",
    description="Enter JWT token",
    auto_error=False,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_app_settings),
) -> AuthUser:
    """
    Extract and validate user from the bearer token.

    This dependency:
    1. Extracts the Bearer token from the Authorization header
    2. Verifies the HS256 signature with JWT_SECRET
    3. Validates the token hasn't expired
    4. Returns an AuthUser with the user's ID, email and role

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured; rejecting bearer token")
        raise _unauthorized("Authentication is not configured")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")

    logger.debug(f"Authenticated user: {user_id}")
    return AuthUser(
        id=str(user_id),
        email=payload.get("email"),
        role=payload.get("role"),
    )
