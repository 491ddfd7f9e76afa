"""Profile and onboarding route handlers."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.api.auth_dependencies import require_user
from teammind.database.db import get_db_session
from teammind.models.schemas import OnboardingRequest, ProfileResponse, UpdateProfileRequest
from teammind.services import profile_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/profiles/me", response_model=ProfileResponse)
async def get_my_profile(user: dict = Depends(require_user)):
    """Get the caller's profile."""
    return user


@router.put("/api/profiles/me", response_model=ProfileResponse)
async def update_my_profile(
    payload: UpdateProfileRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update the caller's profile."""
    try:
        profile = await profile_service.update_profile(
            session, user["id"], **payload.model_dump(exclude_none=True)
        )
        if profile is None:
            raise HTTPException(status_code=404, detail="Profile not found")
        return profile
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating profile: {e}")
        raise HTTPException(status_code=500, detail="Error updating profile")


@router.post("/api/profiles/me/onboarding", response_model=ProfileResponse)
async def complete_onboarding(
    payload: OnboardingRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Save onboarding answers (skill, position, home field, role)."""
    try:
        return await profile_service.complete_onboarding(
            session,
            user["id"],
            skill_level=payload.skill_level,
            preferred_position=payload.preferred_position,
            preferred_match_type=payload.preferred_match_type,
            home_field_id=payload.home_field_id,
            role=payload.role,
            full_name=payload.full_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error completing onboarding: {e}")
        raise HTTPException(status_code=500, detail="Error completing onboarding")
