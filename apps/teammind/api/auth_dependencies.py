"""
Authentication dependencies for FastAPI routes.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from teammind.services import auth_service, profile_service
from teammind.database.db import get_db_session

security = HTTPBearer()


async def get_current_user(
    session: AsyncSession = Depends(get_db_session),
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from the bearer token.

    The profile row is created on first sight of a new auth subject.

    Returns:
        Profile dictionary

    Raises:
        HTTPException: If the token is invalid
    """
    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = auth_service.get_subject(payload)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await profile_service.ensure_profile(session, user_id, email=payload.get("email"))


async def get_current_user_optional(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(HTTPBearer(auto_error=False)),
) -> Optional[dict]:
    """
    Optional dependency to get the current authenticated user.
    Returns None if no token is provided or the token is invalid.
    """
    if credentials is None:
        return None
    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        return None
    user_id = auth_service.get_subject(payload)
    if user_id is None:
        return None
    return await profile_service.get_profile(session, user_id)


async def require_user(user: dict = Depends(get_current_user)) -> dict:
    """Require any authenticated user."""
    return user


async def require_onboarded_player(user: dict = Depends(get_current_user)) -> dict:
    """
    Require a user whose profile has a skill level and preferred position.

    Raises 403 if onboarding hasn't been completed.
    """
    if not user.get("skill_level") or not user.get("preferred_position"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Complete onboarding first",
        )
    return user
