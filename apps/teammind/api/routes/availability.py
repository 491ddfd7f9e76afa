"""Daily availability ("looking to play") route handlers."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from teammind.api.auth_dependencies import require_user
from teammind.database.db import get_db_session
from teammind.models.schemas import (
    AvailabilityResponse,
    AvailabilityStatsResponse,
    SetAvailabilityRequest,
)
from teammind.services import availability_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/availability/today", response_model=Optional[AvailabilityResponse])
async def get_today_status(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """The caller's status for today, or null."""
    try:
        return await availability_service.get_today_status(session, user["id"])
    except Exception as e:
        logger.error(f"Error loading availability for {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Error loading availability")


@router.put("/api/availability/today", response_model=AvailabilityResponse)
async def set_today_status(
    payload: SetAvailabilityRequest,
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Mark the caller as looking to play in a time slot today."""
    try:
        return await availability_service.set_daily_availability(
            session, user["id"], payload.time_slot
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error setting availability for {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Error setting availability")


@router.delete("/api/availability/today", response_model=AvailabilityResponse)
async def clear_today_status(
    user: dict = Depends(require_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Stop looking for games today."""
    try:
        status = await availability_service.clear_daily_availability(session, user["id"])
        if status is None:
            raise HTTPException(status_code=404, detail="No availability set for today")
        return status
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error clearing availability for {user['id']}: {e}")
        raise HTTPException(status_code=500, detail="Error clearing availability")


@router.get("/api/availability/stats", response_model=AvailabilityStatsResponse)
async def get_stats(session: AsyncSession = Depends(get_db_session)):
    """Live counters for the home screen (public)."""
    try:
        return await availability_service.get_availability_stats(session)
    except Exception as e:
        logger.error(f"Error loading availability stats: {e}")
        raise HTTPException(status_code=500, detail="Error loading stats")
