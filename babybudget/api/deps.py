"""
FastAPI dependencies (DB session, ceiling lookup, authentication)
"""
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from babybudget.config import Settings, get_settings
from babybudget.infrastructure.cache.ceiling import UserCeilingLookup
from babybudget.infrastructure.db.session import get_db as _get_db


# Re-export get_db for convenience
get_db = _get_db

bearer_scheme = HTTPBearer(auto_error=False)


def get_ceiling_lookup(request: Request) -> UserCeilingLookup:
    """Ceiling lookup over the cache client owned by the app"""
    return UserCeilingLookup(request.app.state.cache)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Extract the user identifier from the bearer token

    Raises:
        HTTPException(401): missing, invalid or expired token, or no user claim

    Usage:
        @router.get("/budget")
        def list_budgets(user_id: str = Depends(get_current_user_id)):
            ...
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = claims.get(settings.JWT_USER_CLAIM)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return str(user_id)
