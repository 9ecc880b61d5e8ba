# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides bearer-token authentication (HS256 JWT signed with JWT_SECRET).
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.delete("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.dependencies import BEARER_SCHEME_NAME, get_current_user
from app.auth.models import AuthUser

__all__ = [
    "BEARER_SCHEME_NAME",
    "get_current_user",
    "AuthUser",
]
